"""
Query and Scan pagination.

A single-page operation is wrapped in three stages, innermost first::

    Backoff(StartKey(Limit(Call(operation))))

Every stage takes the mutable keyword arguments of the operation and returns the page
together with a :class:`PaginationStatus`. The :class:`PageIterator` calls the chain
once per page, yields the page and stops as soon as a stage answers ``STOP``.

http://docs.aws.amazon.com/amazondynamodb/latest/developerguide/Query.html#Query.Pagination
http://docs.aws.amazon.com/amazondynamodb/latest/developerguide/Scan.html#Scan.Pagination
"""
import enum
from typing import Any, Callable, Dict, Iterator, Optional, Sequence, Tuple

from dynamap.backoff import BackoffPolicy
from dynamap.constants import CAMEL_COUNT, LAST_EVALUATED_KEY, SCANNED_COUNT

Page = Dict[str, Any]
Request = Dict[str, Any]


class PaginationStatus(enum.Enum):
    CONTINUE = 'continue'
    STOP = 'stop'


StageResult = Tuple[Page, PaginationStatus]
Stage = Callable[[Request], StageResult]


class Call:
    """
    Innermost stage: issues one request
    """
    def __init__(self, operation: Callable[..., Page], args: Sequence[Any] = ()) -> None:
        self._operation = operation
        self._args = tuple(args)

    def __call__(self, request: Request) -> StageResult:
        return self._operation(*self._args, **request), PaginationStatus.CONTINUE


class Limit:
    """
    Enforces the record and scan budgets across pages.

    Before a request the page size is lowered to what is left of each budget.
    After the response both counters grow and the chain stops once either budget is spent.
    """
    def __init__(self, next_stage: Stage, record_limit: Optional[int] = None, scan_limit: Optional[int] = None) -> None:
        self._next_stage = next_stage
        self.record_limit = record_limit
        self.scan_limit = scan_limit
        self.record_count = 0
        self.scan_count = 0

    def __call__(self, request: Request) -> StageResult:
        # both adjustments only ever lower the limit, so the smaller budget wins
        if request.get('limit') and self.record_limit is not None:
            request['limit'] = min(self.record_limit - self.record_count, request['limit'])
        if request.get('limit') and self.scan_limit is not None:
            request['limit'] = min(self.scan_limit - self.scan_count, request['limit'])

        page, status = self._next_stage(request)

        self.record_count += page.get(CAMEL_COUNT, 0)
        if self.record_limit is not None and self.record_count >= self.record_limit:
            return page, PaginationStatus.STOP

        self.scan_count += page.get(SCANNED_COUNT, 0)
        if self.scan_limit is not None and self.scan_count >= self.scan_limit:
            return page, PaginationStatus.STOP

        return page, status


class StartKey:
    """
    Carries the continuation cursor of a page into the next request
    """
    def __init__(self, next_stage: Stage) -> None:
        self._next_stage = next_stage

    def __call__(self, request: Request) -> StageResult:
        page, status = self._next_stage(request)
        if status is PaginationStatus.STOP:
            return page, status

        last_evaluated_key = page.get(LAST_EVALUATED_KEY)
        if not last_evaluated_key:
            return page, PaginationStatus.STOP
        request['exclusive_start_key'] = last_evaluated_key
        return page, PaginationStatus.CONTINUE


class Backoff:
    """
    Waits between pages. Nothing is applied after the last page.
    """
    def __init__(self, next_stage: Stage, backoff: Optional[BackoffPolicy] = None) -> None:
        self._next_stage = next_stage
        self._backoff = backoff

    def __call__(self, request: Request) -> StageResult:
        page, status = self._next_stage(request)
        if status is PaginationStatus.STOP:
            return page, status
        if self._backoff is not None:
            self._backoff()
        return page, status


def initial_limit(
    record_limit: Optional[int] = None,
    scan_limit: Optional[int] = None,
    batch_size: Optional[int] = None,
) -> Optional[int]:
    limits = [limit for limit in (record_limit, scan_limit, batch_size) if limit is not None]
    return min(limits) if limits else None


class PageIterator(Iterator[Page]):
    """
    PageIterator handles Query and Scan result pagination.

    Each call to ``next`` issues one request through the stage chain and returns the raw page.
    The iterator is not restartable.
    """
    def __init__(
        self,
        operation: Callable[..., Page],
        args: Sequence[Any],
        kwargs: Dict[str, Any],
        record_limit: Optional[int] = None,
        scan_limit: Optional[int] = None,
        backoff: Optional[BackoffPolicy] = None,
    ) -> None:
        self._kwargs = dict(kwargs)
        self._limit = Limit(Call(operation, args), record_limit=record_limit, scan_limit=scan_limit)
        self._chain: Stage = Backoff(StartKey(self._limit), backoff=backoff)
        self._done = False
        self._last_evaluated_key = self._kwargs.get('exclusive_start_key')

    def __iter__(self) -> Iterator[Page]:
        return self

    def __next__(self) -> Page:
        if self._done:
            raise StopIteration()

        page, status = self._chain(self._kwargs)
        self._last_evaluated_key = page.get(LAST_EVALUATED_KEY)
        if status is PaginationStatus.STOP:
            self._done = True
        return page

    def next(self) -> Page:
        return self.__next__()

    @property
    def page_size(self) -> Optional[int]:
        return self._kwargs.get('limit')

    @property
    def last_evaluated_key(self) -> Optional[Dict[str, Dict[str, Any]]]:
        return self._last_evaluated_key

    @property
    def total_count(self) -> int:
        return self._limit.record_count
