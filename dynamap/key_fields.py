"""
Choosing the key (and index) a set of conditions can be queried with
"""
from typing import Any, Dict, Mapping, Optional, Tuple

from dynamap.connection.table import IndexDescriptor, TableDescriptor
from dynamap.constants import EQ, RANGE_KEY_OPERATORS

Conditions = Mapping[str, Mapping[str, Any]]


class KeyFieldsDetector(object):
    """
    Picks the hash key, range key and index that serve a condition map best.

    In order of preference:

    1. the index named explicitly
    2. the table hash key (``eq``) with the table range key
    3. the table hash key (``eq``) with the range key of a local secondary index
    4. a global secondary index projecting all attributes, with its hash key (``eq``) and range key
    5. the table hash key (``eq``) alone
    6. a global secondary index projecting all attributes, with its hash key (``eq``) alone

    When nothing matches, :attr:`key_present` is False and the conditions need a scan
    (of the named index when one was given).
    """

    def __init__(self, conditions: Conditions, table: TableDescriptor, forced_index: Optional[str] = None) -> None:
        self.conditions = conditions
        self.table = table
        self.forced_index = forced_index
        self.hash_key: Optional[str] = None
        self.range_key: Optional[str] = None
        self.index_name: Optional[str] = None
        self._detect()

    def __repr__(self) -> str:
        return "KeyFieldsDetector<hash_key={}, range_key={}, index_name={}>".format(
            self.hash_key, self.range_key, self.index_name)

    @property
    def key_present(self) -> bool:
        return self.hash_key is not None

    def _has_eq(self, name: Optional[str]) -> bool:
        return name is not None and EQ in self.conditions.get(name, {})

    def _range_usable(self, name: Optional[str]) -> bool:
        return name is not None and any(op in RANGE_KEY_OPERATORS for op in self.conditions.get(name, {}))

    def _use(self, hash_key: str, range_key: Optional[str] = None, index_name: Optional[str] = None) -> None:
        self.hash_key = hash_key
        self.range_key = range_key
        self.index_name = index_name

    def _detect(self) -> None:
        table = self.table

        if self.forced_index:
            index = table.get_index(self.forced_index)
            if self._has_eq(index.hash_key):
                range_key = index.range_key if self._range_usable(index.range_key) else None
                self._use(index.hash_key, range_key, index.name)
            else:
                # no usable key, the index can only be scanned
                self.index_name = index.name
            return

        full_global_indexes = [index for index in table.global_indexes if index.projects_all_attributes]
        table_hash_key = self._has_eq(table.hash_key)

        if table_hash_key and self._range_usable(table.range_key):
            self._use(table.hash_key, table.range_key)
            return

        if table_hash_key:
            for index in table.local_indexes:
                if self._range_usable(index.range_key):
                    self._use(table.hash_key, index.range_key, index.name)
                    return

        gsi = self._first(full_global_indexes, with_range=True)
        if gsi is not None:
            self._use(gsi.hash_key, gsi.range_key, gsi.name)
            return

        if table_hash_key:
            self._use(table.hash_key)
            return

        gsi = self._first(full_global_indexes, with_range=False)
        if gsi is not None:
            self._use(gsi.hash_key, None, gsi.name)

    def _first(self, indexes: Any, with_range: bool) -> Optional[IndexDescriptor]:
        for index in indexes:
            if not self._has_eq(index.hash_key):
                continue
            if with_range and not self._range_usable(index.range_key):
                continue
            return index
        return None

    @property
    def has_non_key_conditions(self) -> bool:
        """
        True when some conditions must be applied as a filter on top of the key condition
        """
        return bool(self.split()[1])

    def split(self) -> Tuple[Dict[str, Dict[str, Any]], Dict[str, Dict[str, Any]]]:
        """
        Splits the conditions into the key condition map and the filter condition map.

        The hash key keeps its ``eq`` and the range key its first key-compatible operator;
        everything else is filtered server-side.
        """
        key_conditions: Dict[str, Dict[str, Any]] = {}
        non_key_conditions: Dict[str, Dict[str, Any]] = {}
        for name, operators in self.conditions.items():
            remaining = dict(operators)
            if self.key_present and name == self.hash_key and EQ in remaining:
                key_conditions[name] = {EQ: remaining.pop(EQ)}
            elif name == self.range_key:
                for op in RANGE_KEY_OPERATORS:
                    if op in remaining:
                        key_conditions[name] = {op: remaining.pop(op)}
                        break
            if remaining:
                non_key_conditions[name] = remaining
        return key_conditions, non_key_conditions
