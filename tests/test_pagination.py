import pytest

from dynamap.backoff import build_backoff, constant_backoff, exponential_backoff
from dynamap.pagination import (
    Backoff, Call, Limit, PageIterator, PaginationStatus, StartKey, initial_limit,
)
from .fakes import MockTime


class FakeOperation():
    """
    Returns the given pages in order and records the requests
    """
    def __init__(self, *pages):
        self.pages = list(pages)
        self.requests = []

    def __call__(self, table_name, **kwargs):
        self.requests.append((table_name, dict(kwargs)))
        return self.pages.pop(0)


def page(count, scanned_count=None, last_evaluated_key=None):
    data = {'Items': [{'id': {'N': str(i)}} for i in range(count)], 'Count': count}
    data['ScannedCount'] = count if scanned_count is None else scanned_count
    if last_evaluated_key is not None:
        data['LastEvaluatedKey'] = last_evaluated_key
    return data


def test_constant_backoff():
    mock_time = MockTime()
    backoff = constant_backoff(0.5, mock_time)
    backoff()
    backoff()
    assert mock_time.sleeps == [0.5, 0.5]


def test_exponential_backoff():
    mock_time = MockTime()
    backoff = exponential_backoff(base_backoff=0.5, ceiling=3, time_module=mock_time)
    for _ in range(5):
        backoff()
    assert mock_time.sleeps == [0.5, 1.0, 2.0, 2.0, 2.0]


@pytest.mark.parametrize('setting, expected', [
    ('constant', [1, 1]),
    ({'constant': 0.25}, [0.25, 0.25]),
    ({'exponential': {'base_backoff': 1, 'ceiling': 2}}, [1, 2]),
])
def test_build_backoff(setting, expected):
    mock_time = MockTime()
    backoff = build_backoff(setting, mock_time)
    backoff()
    backoff()
    assert mock_time.sleeps == expected


def test_build_backoff__custom_and_disabled():
    def custom():
        pass

    assert build_backoff(custom) is custom
    assert build_backoff(None) is None


@pytest.mark.parametrize('setting', ['linear', {'constant': 1, 'exponential': {}}, 42])
def test_build_backoff__invalid(setting):
    with pytest.raises(ValueError):
        build_backoff(setting)


def test_initial_limit():
    assert initial_limit() is None
    assert initial_limit(record_limit=10) == 10
    assert initial_limit(record_limit=10, scan_limit=5, batch_size=20) == 5
    assert initial_limit(batch_size=3) == 3


def test_call_stage():
    operation = FakeOperation(page(1))
    data, status = Call(operation, ('users',))({'limit': 1})
    assert status is PaginationStatus.CONTINUE
    assert data['Count'] == 1
    assert operation.requests == [('users', {'limit': 1})]


def test_start_key_stage():
    key = {'id': {'N': '1'}}
    stage = StartKey(Call(FakeOperation(page(1, last_evaluated_key=key), page(1)), ('users',)))
    request = {}
    _, status = stage(request)
    assert status is PaginationStatus.CONTINUE
    assert request['exclusive_start_key'] == key

    _, status = stage(request)
    assert status is PaginationStatus.STOP


def test_limit_stage__record_limit():
    stage = Limit(Call(FakeOperation(page(3), page(3)), ('users',)), record_limit=5)
    request = {'limit': 5}
    _, status = stage(request)
    assert status is PaginationStatus.CONTINUE
    _, status = stage(request)
    # the second request only asks for what is left of the budget
    assert request['limit'] == 2
    assert status is PaginationStatus.STOP
    assert stage.record_count == 6


def test_limit_stage__scan_limit():
    stage = Limit(Call(FakeOperation(page(0, scanned_count=4)), ('users',)), scan_limit=4)
    _, status = stage({'limit': 4})
    assert status is PaginationStatus.STOP
    assert stage.scan_count == 4


def test_backoff_stage():
    mock_time = MockTime()
    key = {'id': {'N': '1'}}
    stage = Backoff(
        StartKey(Call(FakeOperation(page(1, last_evaluated_key=key), page(1)), ('users',))),
        backoff=constant_backoff(2, mock_time),
    )
    stage({})
    stage({})
    # no delay after the last page
    assert mock_time.sleeps == [2]


def test_page_iterator_follows_last_evaluated_key():
    first_key = {'id': {'N': '1'}}
    second_key = {'id': {'N': '2'}}
    operation = FakeOperation(
        page(1, last_evaluated_key=first_key),
        page(1, last_evaluated_key=second_key),
        page(1),
    )
    iterator = PageIterator(operation, ('users',), {'limit': 1})
    pages = list(iterator)

    assert len(pages) == 3
    assert [request for _, request in operation.requests] == [
        {'limit': 1},
        {'limit': 1, 'exclusive_start_key': first_key},
        {'limit': 1, 'exclusive_start_key': second_key},
    ]
    assert iterator.last_evaluated_key is None
    assert iterator.total_count == 3
    with pytest.raises(StopIteration):
        next(iterator)


def test_page_iterator_stops_at_record_limit():
    key = {'id': {'N': '1'}}
    operation = FakeOperation(page(2, last_evaluated_key=key), page(2, last_evaluated_key=key))
    iterator = PageIterator(operation, ('users',), {'limit': 2}, record_limit=2)
    pages = list(iterator)

    assert len(pages) == 1
    assert len(operation.requests) == 1
    # the cursor of the last page is kept so the caller can continue
    assert iterator.last_evaluated_key == key


def test_page_iterator_stops_at_scan_limit():
    key = {'id': {'N': '1'}}
    operation = FakeOperation(
        page(0, scanned_count=3, last_evaluated_key=key),
        page(1, scanned_count=2, last_evaluated_key=key),
    )
    iterator = PageIterator(operation, ('users',), {'limit': 3}, record_limit=10, scan_limit=5)
    list(iterator)

    assert [request['limit'] for _, request in operation.requests] == [3, 2]


def test_page_iterator_backoff_between_pages():
    mock_time = MockTime()
    key = {'id': {'N': '1'}}
    operation = FakeOperation(page(1, last_evaluated_key=key), page(1, last_evaluated_key=key), page(1))
    list(PageIterator(operation, ('users',), {}, backoff=constant_backoff(1, mock_time)))
    assert mock_time.sleeps == [1, 1]
