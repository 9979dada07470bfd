"""
Table metadata parsed from DescribeTable, and the per-connection cache holding it
"""
import threading
from typing import Any, Callable, Dict, List, Optional

from dynamap.constants import (
    ALL, ATTR_DEFINITIONS, ATTR_NAME, ATTR_TYPE, BILLING_MODE, BILLING_MODE_SUMMARY, GLOBAL_SECONDARY_INDEXES,
    HASH, INDEX_NAME, ITEM_COUNT, KEY_SCHEMA, KEY_TYPE, LOCAL_SECONDARY_INDEXES, NON_KEY_ATTRIBUTES,
    PAY_PER_REQUEST_BILLING_MODE, PROJECTION, PROJECTION_TYPE, PROVISIONED_BILLING_MODE, PROVISIONED_THROUGHPUT,
    RANGE, READ_CAPACITY_UNITS, TABLE_NAME, TABLE_STATUS, WRITE_CAPACITY_UNITS,
)


def _key_name(key_schema: List[Dict[str, str]], key_type: str) -> Optional[str]:
    for key in key_schema:
        if key.get(KEY_TYPE) == key_type:
            return key.get(ATTR_NAME)
    return None


class IndexDescriptor(object):
    """
    A secondary index as reported by DescribeTable
    """

    def __init__(
        self,
        name: str,
        hash_key: str,
        range_key: Optional[str] = None,
        projection_type: str = ALL,
        non_key_attributes: Optional[List[str]] = None,
        read_capacity: Optional[int] = None,
        write_capacity: Optional[int] = None,
        is_global: bool = False,
    ) -> None:
        self.name = name
        self.hash_key = hash_key
        self.range_key = range_key
        self.projection_type = projection_type
        self.non_key_attributes = non_key_attributes
        self.read_capacity = read_capacity
        self.write_capacity = write_capacity
        self.is_global = is_global

    @classmethod
    def from_description(cls, data: Dict[str, Any], is_global: bool) -> 'IndexDescriptor':
        projection = data.get(PROJECTION, {})
        throughput = data.get(PROVISIONED_THROUGHPUT) or {}
        hash_key = _key_name(data.get(KEY_SCHEMA, []), HASH)
        if hash_key is None:
            raise ValueError("No hash key attribute for index: {}".format(data.get(INDEX_NAME)))
        return cls(
            name=data[INDEX_NAME],
            hash_key=hash_key,
            range_key=_key_name(data.get(KEY_SCHEMA, []), RANGE),
            projection_type=projection.get(PROJECTION_TYPE, ALL),
            non_key_attributes=projection.get(NON_KEY_ATTRIBUTES),
            read_capacity=throughput.get(READ_CAPACITY_UNITS),
            write_capacity=throughput.get(WRITE_CAPACITY_UNITS),
            is_global=is_global,
        )

    @property
    def projects_all_attributes(self) -> bool:
        return self.projection_type == ALL

    def __repr__(self) -> str:
        return "IndexDescriptor<{}>".format(self.name)


class TableDescriptor(object):
    """
    A pythonic wrapper around table metadata
    """

    def __init__(self, data: Optional[Dict[str, Any]]) -> None:
        self.data = data or {}
        self.name: str = self.data.get(TABLE_NAME, '')
        key_schema = self.data.get(KEY_SCHEMA, [])
        hash_key = _key_name(key_schema, HASH)
        if hash_key is None:
            raise ValueError("No hash_key found in key schema")
        self.hash_key: str = hash_key
        self.range_key: Optional[str] = _key_name(key_schema, RANGE)
        self.attribute_types: Dict[str, str] = {
            attr[ATTR_NAME]: attr[ATTR_TYPE] for attr in self.data.get(ATTR_DEFINITIONS, [])
        }
        self.local_indexes: List[IndexDescriptor] = [
            IndexDescriptor.from_description(index, is_global=False)
            for index in self.data.get(LOCAL_SECONDARY_INDEXES) or []
        ]
        self.global_indexes: List[IndexDescriptor] = [
            IndexDescriptor.from_description(index, is_global=True)
            for index in self.data.get(GLOBAL_SECONDARY_INDEXES) or []
        ]

    def __repr__(self) -> str:
        return "TableDescriptor<{}>".format(self.name)

    @property
    def item_count(self) -> Optional[int]:
        return self.data.get(ITEM_COUNT)

    @property
    def status(self) -> Optional[str]:
        return self.data.get(TABLE_STATUS)

    @property
    def billing_mode(self) -> str:
        return self.data.get(BILLING_MODE_SUMMARY, {}).get(BILLING_MODE, PROVISIONED_BILLING_MODE)

    @property
    def is_on_demand(self) -> bool:
        return self.billing_mode == PAY_PER_REQUEST_BILLING_MODE

    @property
    def indexes(self) -> List[IndexDescriptor]:
        return self.local_indexes + self.global_indexes

    def get_index(self, index_name: str) -> IndexDescriptor:
        for index in self.indexes:
            if index.name == index_name:
                return index
        raise ValueError("Table {} has no index: {}".format(self.name, index_name))

    def has_index_name(self, index_name: str) -> bool:
        return any(index.name == index_name for index in self.indexes)

    def get_attribute_type(self, attribute_name: str) -> Optional[str]:
        return self.attribute_types.get(attribute_name)

    def get_key_names(self, index_name: Optional[str] = None) -> List[str]:
        """
        Returns the names of the primary key attributes and index key attributes (if index_name is specified)
        """
        key_names = [self.hash_key]
        if self.range_key:
            key_names.append(self.range_key)
        if index_name is not None:
            index = self.get_index(index_name)
            for name in (index.hash_key, index.range_key):
                if name is not None and name not in key_names:
                    key_names.append(name)
        return key_names


class TableCache(object):
    """
    Table descriptors by table name, loaded lazily and kept until invalidated.

    Reads, stores and evictions hold a lock so the cache can be cleared while other
    threads read from it. Loads happen outside the lock; concurrent misses of one table
    may each describe it, the last load wins.
    """

    def __init__(self, loader: Callable[[str], TableDescriptor]) -> None:
        self._loader = loader
        self._tables: Dict[str, TableDescriptor] = {}
        self._lock = threading.Lock()

    def describe(self, table_name: str, reload: bool = False) -> TableDescriptor:
        if not reload:
            with self._lock:
                table = self._tables.get(table_name)
            if table is not None:
                return table
        table = self._loader(table_name)
        with self._lock:
            self._tables[table_name] = table
        return table

    def invalidate(self, table_name: str) -> None:
        with self._lock:
            self._tables.pop(table_name, None)

    def clear(self) -> None:
        with self._lock:
            self._tables.clear()

    def __contains__(self, table_name: str) -> bool:
        return table_name in self._tables

    def __len__(self) -> int:
        return len(self._tables)
