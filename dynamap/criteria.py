"""
Query objects for models
"""
import logging
from copy import copy
from typing import Any, Dict, Generic, Iterator, List, Mapping, Optional, Type, TypeVar, Union

from dynamap.constants import CONDITION_OPERATORS, EQ
from dynamap.key_fields import KeyFieldsDetector
from dynamap.models import Model
from dynamap.settings import get_settings_value

_T = TypeVar('_T', bound=Model)

log = logging.getLogger(__name__)


def _is_operator_map(value: Any) -> bool:
    return isinstance(value, Mapping) and bool(value) and all(key in CONDITION_OPERATORS for key in value)


class Chain(Generic[_T]):
    """
    A lazily evaluated query over a model's table.

    Conditions map attribute names either to a value (equality) or to operators::

        User.where({'name': 'Josh', 'age': {'gt': 30}}).record_limit(10)

    When iterated, the conditions are matched against the table key and its indexes.
    A query is issued when a key can be used, a scan otherwise.
    """

    def __init__(self, model_cls: Type[_T]) -> None:
        self.model_cls = model_cls
        self.query: Dict[str, Dict[str, Any]] = {}
        self.options: Dict[str, Any] = {}
        self.forced_index_name: Optional[str] = None
        self.last_evaluated_key: Optional[Dict[str, Any]] = None
        self._start: Optional[Union[Mapping[str, Any], Model]] = None

    def __repr__(self) -> str:
        return "Chain<{}, {}>".format(self.model_cls.__name__, self.query)

    def where(self, conditions: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> 'Chain[_T]':
        """
        Adds conditions; conditions on the same attribute are merged
        """
        for name, value in dict(conditions or {}, **kwargs).items():
            operators = dict(value) if _is_operator_map(value) else {EQ: value}
            self.query.setdefault(self.model_cls._dynamo_name(name), {}).update(operators)
        return self

    def record_limit(self, limit: int) -> 'Chain[_T]':
        self.options['record_limit'] = limit
        return self

    def scan_limit(self, limit: int) -> 'Chain[_T]':
        self.options['scan_limit'] = limit
        return self

    def batch(self, batch_size: int) -> 'Chain[_T]':
        self.options['batch_size'] = batch_size
        return self

    def start(self, start: Union[Mapping[str, Any], Model]) -> 'Chain[_T]':
        """
        Continues after the given key, or after the given object
        """
        self._start = start
        return self

    def scan_index_forward(self, scan_index_forward: bool) -> 'Chain[_T]':
        self.options['scan_index_forward'] = scan_index_forward
        return self

    def consistent(self) -> 'Chain[_T]':
        self.options['consistent_read'] = True
        return self

    def project(self, *names: str) -> 'Chain[_T]':
        self.options['project'] = [self.model_cls._dynamo_name(name) for name in names]
        return self

    def with_index(self, index_name: str) -> 'Chain[_T]':
        self.forced_index_name = index_name
        return self

    def _clone(self) -> 'Chain[_T]':
        chain = copy(self)
        chain.query = {name: dict(operators) for name, operators in self.query.items()}
        chain.options = dict(self.options)
        return chain

    def __iter__(self) -> Iterator[_T]:
        for page in self.pages():
            yield from page

    def pages(self) -> Iterator[List[_T]]:
        """
        Yields the objects page by page; :attr:`last_evaluated_key` follows the pages
        """
        for items, meta in self._raw_pages():
            self.last_evaluated_key = meta['last_evaluated_key']
            yield [self.model_cls.from_raw_data(item) for item in items]

    def first(self) -> Optional[_T]:
        return next(iter(self._clone().record_limit(1)), None)

    def count(self) -> int:
        """
        Counts the matching items server side (Select=COUNT)
        """
        adapter = self.model_cls._get_adapter()
        detector = self._detector()
        kwargs = self._read_options(detector)
        kwargs.pop('project', None)
        if detector.key_present:
            key_conditions, non_key_conditions = detector.split()
            return adapter.query_count(self.model_cls.table_name(), key_conditions, non_key_conditions, **kwargs)
        return adapter.scan_count(self.model_cls.table_name(), self.query, **kwargs)

    def delete_all(self) -> None:
        """
        Deletes every matching item. Without conditions the table is truncated. Not atomic.
        """
        adapter = self.model_cls._get_adapter()
        table_name = self.model_cls.table_name()
        if not self.query:
            adapter.truncate(table_name)
            return
        table = adapter.describe_table(table_name)
        ids: List[Any] = []
        for items, _ in self._raw_pages():
            for item in items:
                ids.append((item[table.hash_key], item[table.range_key]) if table.range_key else item[table.hash_key])
        adapter.batch_delete_item({table_name: ids})

    def _detector(self) -> KeyFieldsDetector:
        table = self.model_cls._get_adapter().describe_table(self.model_cls.table_name())
        return KeyFieldsDetector(self.query, table, forced_index=self.forced_index_name)

    def _read_options(self, detector: KeyFieldsDetector) -> Dict[str, Any]:
        kwargs = dict(self.options)
        if not detector.key_present:
            # only queries have a direction
            kwargs.pop('scan_index_forward', None)
        if detector.index_name:
            kwargs['index_name'] = detector.index_name
        start = self._start_key(detector)
        if start:
            kwargs['exclusive_start_key'] = start
        return kwargs

    def _start_key(self, detector: KeyFieldsDetector) -> Optional[Mapping[str, Any]]:
        if not isinstance(self._start, Model):
            return self._start
        table = self.model_cls._get_adapter().describe_table(self.model_cls.table_name())
        item = self._start.to_item()
        return {name: item.get(name) for name in table.get_key_names(detector.index_name)}

    def _raw_pages(self) -> Iterator[Any]:
        adapter = self.model_cls._get_adapter()
        table_name = self.model_cls.table_name()
        detector = self._detector()
        kwargs = self._read_options(detector)
        if detector.key_present:
            key_conditions, non_key_conditions = detector.split()
            return adapter.query(table_name, key_conditions, non_key_conditions, **kwargs)
        if self.query and get_settings_value('warn_on_scan'):
            log.warning(
                "Queries without an indexed `hash_key` will run a scan. Conditions: %s, table: %s",
                self.query, table_name,
            )
        return adapter.scan(table_name, self.query, **kwargs)
