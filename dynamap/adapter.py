"""
The adapter: item, batch, query and table operations on plain Python values
"""
import logging
import time
from typing import (
    Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Type, Union,
)

from dynamap._util import item_to_python, python_to_attr_value, python_to_item, sanitize_item
from dynamap.backoff import BackoffPolicy, BackoffSetting, build_backoff
from dynamap.connection.base import Connection
from dynamap.connection.table import TableDescriptor
from dynamap.constants import (
    ATTR_NAME, ATTR_TYPE, ATTRIBUTES, BATCH_GET_PAGE_LIMIT, BATCH_WRITE_PAGE_LIMIT, CAMEL_COUNT, COUNT, CREATING,
    DELETE_REQUEST, DELETING, EQ, HASH, ITEM, ITEMS, KEY, KEY_TYPE, KEYS, LAST_EVALUATED_KEY,
    LAST_EVALUATED_TABLE_NAME, NEXT_TOKEN, ON_DEMAND, PAY_PER_REQUEST_BILLING_MODE, PROVISIONED_BILLING_MODE,
    PROVISIONED_THROUGHPUT, PUT_REQUEST, RANGE, RANGE_OPTIONS, READ_CAPACITY_UNITS, RESOURCE_IN_USE, RESPONSES,
    SCANNED_COUNT, STRING, TABLE_DESCRIPTION, TABLE_NAMES, TABLE_STATUS, TRANSACT_DELETE, TRANSACT_GET,
    TRANSACT_PUT, TRANSACT_UPDATE, UNPROCESSED_ITEMS, UNPROCESSED_KEYS, WRITE_CAPACITY_UNITS,
)
from dynamap.exceptions import (
    ConditionalCheckFailedError, MissingHashKey, MissingRangeKey, TableDoesNotExist, TableError,
)
from dynamap.expressions.condition import ConditionGroups, ConditionMap, WriteConditions
from dynamap.expressions.update import ItemUpdater
from dynamap.indexes import Index
from dynamap.pagination import PageIterator, initial_limit
from dynamap.settings import get_settings_value

log = logging.getLogger(__name__)

Item = Dict[str, Any]
Key = Dict[str, Dict[str, Any]]
PageMeta = Dict[str, Any]
Updater = Union[ItemUpdater, Callable[[ItemUpdater], Any]]


def _split_id(item_id: Any) -> Tuple[Any, Any]:
    if isinstance(item_id, (tuple, list)):
        hash_key, range_key = item_id
        return hash_key, range_key
    return item_id, None


def _chunks(items: List[Any], size: int) -> Tuple[List[Any], List[Any]]:
    return items[:size], items[size:]


class Adapter(object):
    """
    Item, batch, query and table operations against one :class:`~dynamap.connection.Connection`.

    Keys are plain values, a composite id is a ``(hash, range)`` tuple, and every item
    goes in and comes out as a plain mapping.
    """

    def __init__(
        self,
        connection: Optional[Connection] = None,
        *,
        backoff: BackoffSetting = None,
        batch_size: Optional[int] = None,
        store_attribute_with_nil_value: Optional[bool] = None,
        sync_retry_max_times: Optional[int] = None,
        sync_retry_wait_seconds: Optional[float] = None,
        read_capacity: Optional[int] = None,
        write_capacity: Optional[int] = None,
        time_module: Optional[Any] = None,
    ) -> None:
        self.connection = connection or Connection()
        self.backoff = backoff if backoff is not None else get_settings_value('backoff')
        self.batch_size = batch_size if batch_size is not None else get_settings_value('batch_size')
        if store_attribute_with_nil_value is None:
            store_attribute_with_nil_value = get_settings_value('store_attribute_with_nil_value')
        self.store_attribute_with_nil_value = bool(store_attribute_with_nil_value)
        if sync_retry_max_times is None:
            sync_retry_max_times = get_settings_value('sync_retry_max_times')
        self.sync_retry_max_times = sync_retry_max_times
        if sync_retry_wait_seconds is None:
            sync_retry_wait_seconds = get_settings_value('sync_retry_wait_seconds')
        self.sync_retry_wait_seconds = sync_retry_wait_seconds
        self.read_capacity = read_capacity if read_capacity is not None else get_settings_value('read_capacity')
        self.write_capacity = write_capacity if write_capacity is not None else get_settings_value('write_capacity')
        self._time_module: Any = time_module or time

    def __repr__(self) -> str:
        return "Adapter<{!r}>".format(self.connection)

    # Table metadata

    def describe_table(self, table_name: str, reload: bool = False) -> TableDescriptor:
        return self.connection.get_table(table_name, reload=reload)

    def clear_cache(self) -> None:
        self.connection.tables.clear()

    def list_tables(self) -> List[str]:
        """
        Returns the names of every table, following ``LastEvaluatedTableName`` across pages
        """
        table_names: List[str] = []
        start_table_name = None
        while True:
            data = self.connection.list_tables(exclusive_start_table_name=start_table_name)
            table_names.extend(data.get(TABLE_NAMES, []))
            start_table_name = data.get(LAST_EVALUATED_TABLE_NAME)
            if not start_table_name:
                return table_names

    def create_table(
        self,
        table_name: str,
        hash_key: str = 'id',
        hash_key_type: str = STRING,
        *,
        range_key: Optional[str] = None,
        range_key_type: str = STRING,
        read_capacity: Optional[int] = None,
        write_capacity: Optional[int] = None,
        billing_mode: Optional[str] = None,
        local_secondary_indexes: Sequence[Type[Index]] = (),
        global_secondary_indexes: Sequence[Type[Index]] = (),
        sync: bool = False,
    ) -> bool:
        """
        Creates a table and returns True, or returns False when the table already exists.

        Creating a table with secondary indexes always waits for it to leave the CREATING status.
        """
        log.info("Creating %s table. This could take a while.", table_name)
        read_capacity = read_capacity or self.read_capacity
        write_capacity = write_capacity or self.write_capacity
        wire_billing_mode = self._billing_mode(billing_mode)
        on_demand = wire_billing_mode == PAY_PER_REQUEST_BILLING_MODE

        attribute_definitions = [{ATTR_NAME: hash_key, ATTR_TYPE: hash_key_type}]
        key_schema = [{ATTR_NAME: hash_key, KEY_TYPE: HASH}]
        if range_key:
            attribute_definitions.append({ATTR_NAME: range_key, ATTR_TYPE: range_key_type})
            key_schema.append({ATTR_NAME: range_key, KEY_TYPE: RANGE})

        for index in list(local_secondary_indexes) + list(global_secondary_indexes):
            for definition in index.get_attribute_definitions():
                # range keys are often shared between the table and its indexes
                if definition not in attribute_definitions:
                    attribute_definitions.append(definition)

        local_indexes = [index.get_schema() for index in local_secondary_indexes]
        global_indexes = []
        for index in global_secondary_indexes:
            schema = index.get_schema()
            if not on_demand:
                schema[PROVISIONED_THROUGHPUT] = {
                    READ_CAPACITY_UNITS: getattr(index.Meta, 'read_capacity_units', read_capacity),
                    WRITE_CAPACITY_UNITS: getattr(index.Meta, 'write_capacity_units', write_capacity),
                }
            global_indexes.append(schema)

        try:
            data = self.connection.create_table(
                table_name,
                attribute_definitions=attribute_definitions,
                key_schema=key_schema,
                read_capacity_units=read_capacity,
                write_capacity_units=write_capacity,
                local_secondary_indexes=local_indexes,
                global_secondary_indexes=global_indexes,
                billing_mode=wire_billing_mode,
            )
        except TableError as e:
            if e.cause_response_code == RESOURCE_IN_USE:
                log.error("Table %s cannot be created as it already exists", table_name)
                return False
            raise

        if local_indexes or global_indexes:
            sync = True
        status = (data or {}).get(TABLE_DESCRIPTION, {}).get(TABLE_STATUS)
        if sync and status == CREATING:
            self._wait_until_past_status(table_name, CREATING)
        return True

    def create_table_synchronously(self, table_name: str, *args: Any, **kwargs: Any) -> bool:
        kwargs['sync'] = True
        return self.create_table(table_name, *args, **kwargs)

    def delete_table(self, table_name: str, sync: bool = False) -> None:
        """
        Deletes a table and drops it from the table cache
        """
        try:
            data = self.connection.delete_table(table_name)
        except TableError as e:
            if e.cause_response_code == RESOURCE_IN_USE:
                log.error("Table %s cannot be deleted as it is in use", table_name)
            raise
        status = (data or {}).get(TABLE_DESCRIPTION, {}).get(TABLE_STATUS)
        if sync and status == DELETING:
            self._wait_until_past_status(table_name, DELETING)

    def delete_table_synchronously(self, table_name: str) -> None:
        self.delete_table(table_name, sync=True)

    def _wait_until_past_status(self, table_name: str, status: str) -> None:
        """
        Polls DescribeTable until the table leaves `status` or the retry budget is spent.

        Right after CreateTable the table may not be visible yet, so a missing table is retried
        while waiting on a creation. While waiting on a deletion a missing table means done.
        """
        counter = 0
        while True:
            self._time_module.sleep(self.sync_retry_wait_seconds)
            try:
                description = self.connection.describe_table(table_name)
            except TableDoesNotExist:
                if status == DELETING:
                    log.info("Checked table status for %s: Not Found (check %s)", table_name, counter)
                    return
                if counter < self.sync_retry_max_times:
                    log.warning("Waiting on table metadata for %s (check %s)", table_name, counter)
                    counter += 1
                    continue
                log.error("Exhausted max retries waiting on table metadata for %s (check %s)", table_name, counter)
                raise

            current_status = description.get(TABLE_STATUS)
            again = counter < self.sync_retry_max_times and current_status == status
            log.info("Checked table status for %s (check %s, status %s)", table_name, counter, current_status)
            counter += 1
            if not again:
                return

    @staticmethod
    def _billing_mode(billing_mode: Optional[str]) -> str:
        if billing_mode is None or billing_mode.lower() == 'provisioned':
            return PROVISIONED_BILLING_MODE
        if billing_mode in (ON_DEMAND, PAY_PER_REQUEST_BILLING_MODE):
            return PAY_PER_REQUEST_BILLING_MODE
        raise ValueError("Unknown billing mode: {}".format(billing_mode))

    def update_time_to_live(self, table_name: str, attribute_name: str) -> None:
        self.connection.update_time_to_live(table_name, attribute_name)

    def count(self, table_name: str) -> Optional[int]:
        """
        Returns the approximate item count DynamoDB reports for the table (refreshed every six hours)
        """
        return self.describe_table(table_name, reload=True).item_count

    # Items

    def key_stanza(self, table: TableDescriptor, hash_key: Any, range_key: Any = None) -> Key:
        """
        Builds the typed primary key of an item

        Raises MissingHashKey or MissingRangeKey before anything is sent.
        """
        if hash_key is None:
            raise MissingHashKey("Hash key value is missing for table {}".format(table.name))
        key = {table.hash_key: python_to_attr_value(hash_key)}
        if table.range_key:
            if range_key is None:
                raise MissingRangeKey("Range key value is missing for table {}".format(table.name))
            key[table.range_key] = python_to_attr_value(range_key)
        return key

    def sanitize_item(self, item: Mapping[str, Any]) -> Item:
        return sanitize_item(item, store_attribute_with_nil_value=self.store_attribute_with_nil_value)

    def item_updater(self) -> ItemUpdater:
        return ItemUpdater(store_attribute_with_nil_value=self.store_attribute_with_nil_value)

    def get_item(
        self,
        table_name: str,
        hash_key: Any,
        range_key: Any = None,
        consistent_read: bool = False,
        project: Optional[Sequence[str]] = None,
    ) -> Optional[Item]:
        """
        Returns the item, or None when it does not exist
        """
        table = self.describe_table(table_name)
        data = self.connection.get_item(
            table_name,
            self.key_stanza(table, hash_key, range_key),
            consistent_read=consistent_read,
            attributes_to_get=project,
        )
        item = data.get(ITEM)
        return item_to_python(item) if item else None

    def put_item(self, table_name: str, item: Mapping[str, Any], conditions: Optional[WriteConditions] = None) -> None:
        """
        Writes the item, replacing any stored item with the same key

        Raises ConditionalCheckFailedError when `conditions` do not hold.
        """
        self.connection.put_item(table_name, python_to_item(self.sanitize_item(item)), condition=conditions)

    def delete_item(
        self,
        table_name: str,
        hash_key: Any,
        range_key: Any = None,
        conditions: Optional[WriteConditions] = None,
    ) -> None:
        table = self.describe_table(table_name)
        self.connection.delete_item(table_name, self.key_stanza(table, hash_key, range_key), condition=conditions)

    def update_item(
        self,
        table_name: str,
        hash_key: Any,
        updater: Updater,
        range_key: Any = None,
        conditions: Optional[WriteConditions] = None,
    ) -> Item:
        """
        Applies an ItemUpdater to one item and returns the item as stored afterwards.

        `updater` is either an ItemUpdater or a callable that fills in a fresh one::

            adapter.update_item('users', '1', lambda u: u.add(visits=1).set(name='Josh'))
        """
        table = self.describe_table(table_name)
        data = self.connection.update_item(
            table_name,
            self.key_stanza(table, hash_key, range_key),
            self._updater(updater),
            condition=conditions,
        )
        return item_to_python(data.get(ATTRIBUTES, {}))

    def _updater(self, updater: Updater) -> ItemUpdater:
        if isinstance(updater, ItemUpdater):
            return updater
        builder = self.item_updater()
        updater(builder)
        return builder

    # Batches

    def iter_batch_get_item(
        self,
        tables_with_ids: Mapping[str, Iterable[Any]],
        consistent_read: bool = False,
    ) -> Iterator[Tuple[Dict[str, List[Item]], bool]]:
        """
        Yields the results of every BatchGetItem call, one call per chunk of at most 100 keys.

        Each result maps table names to items and comes with a flag telling whether some keys of
        that chunk were left unprocessed; those keys are requested again in a later chunk.
        """
        for table_name, ids in tables_with_ids.items():
            table = self.describe_table(table_name)
            keys = [self.key_stanza(table, *_split_id(item_id)) for item_id in ids]
            chunk_size = min(self.batch_size or BATCH_GET_PAGE_LIMIT, BATCH_GET_PAGE_LIMIT)
            while keys:
                batch, keys = _chunks(keys, chunk_size)
                data = self.connection.batch_get_item({table_name: batch}, consistent_read=consistent_read)
                results: Dict[str, List[Item]] = {table_name: []}
                for name, items in data.get(RESPONSES, {}).items():
                    results[name] = [item_to_python(item) for item in items]
                unprocessed = data.get(UNPROCESSED_KEYS, {}).get(table_name, {}).get(KEYS, [])
                if unprocessed:
                    log.info("Resending %s unprocessed keys for table %s", len(unprocessed), table_name)
                    keys.extend(unprocessed)
                yield results, bool(unprocessed)

    def batch_get_item(
        self,
        tables_with_ids: Mapping[str, Iterable[Any]],
        consistent_read: bool = False,
    ) -> Dict[str, List[Item]]:
        """
        Gets many items at once and returns them grouped by table name
        """
        results: Dict[str, List[Item]] = {table_name: [] for table_name in tables_with_ids}
        for batch_results, _ in self.iter_batch_get_item(tables_with_ids, consistent_read=consistent_read):
            for table_name, items in batch_results.items():
                results.setdefault(table_name, []).extend(items)
        return results

    def batch_write_item(
        self,
        table_name: str,
        items: Iterable[Mapping[str, Any]],
        backoff: BackoffSetting = None,
    ) -> None:
        """
        Puts many items into one table, 25 per BatchWriteItem call.

        Unprocessed items are sent again, after the `backoff` delay when one is given.
        """
        queue = [python_to_item(self.sanitize_item(item)) for item in items]
        policy = build_backoff(backoff, self._time_module)
        while queue:
            batch, queue = _chunks(queue, BATCH_WRITE_PAGE_LIMIT)
            data = self.connection.batch_write_item(table_name, put_items=batch)
            unprocessed = data.get(UNPROCESSED_ITEMS, {}).get(table_name, [])
            if unprocessed:
                log.info("Resending %s unprocessed items for table %s", len(unprocessed), table_name)
                queue.extend(request[PUT_REQUEST][ITEM] for request in unprocessed)
                self._apply(policy)

    def batch_delete_item(
        self,
        tables_with_ids: Mapping[str, Iterable[Any]],
        backoff: BackoffSetting = None,
    ) -> None:
        """
        Deletes many items at once, 25 keys per BatchWriteItem call
        """
        policy = build_backoff(backoff, self._time_module)
        for table_name, ids in tables_with_ids.items():
            table = self.describe_table(table_name)
            queue = [self.key_stanza(table, *_split_id(item_id)) for item_id in ids]
            while queue:
                batch, queue = _chunks(queue, BATCH_WRITE_PAGE_LIMIT)
                data = self.connection.batch_write_item(table_name, delete_items=batch)
                unprocessed = data.get(UNPROCESSED_ITEMS, {}).get(table_name, [])
                if unprocessed:
                    log.info("Resending %s unprocessed deletes for table %s", len(unprocessed), table_name)
                    queue.extend(request[DELETE_REQUEST][KEY] for request in unprocessed)
                    self._apply(policy)

    @staticmethod
    def _apply(policy: Optional[BackoffPolicy]) -> None:
        if policy is not None:
            policy()

    # Query and scan

    def query(
        self,
        table_name: str,
        key_conditions: Optional[ConditionMap] = None,
        non_key_conditions: ConditionGroups = (),
        *,
        hash_value: Any = None,
        consistent_read: bool = False,
        scan_index_forward: Optional[bool] = None,
        select: Optional[str] = None,
        index_name: Optional[str] = None,
        batch_size: Optional[int] = None,
        exclusive_start_key: Optional[Mapping[str, Any]] = None,
        record_limit: Optional[int] = None,
        scan_limit: Optional[int] = None,
        project: Optional[Sequence[str]] = None,
        **range_options: Any,
    ) -> Iterator[Tuple[List[Item], PageMeta]]:
        """
        Queries a table or index and lazily yields ``(items, {'last_evaluated_key': key})`` per page.

        The key condition is either given as a condition map or with the shorthand options
        ``hash_value`` and one of ``range_between``, ``range_greater_than``, ``range_less_than``,
        ``range_gte``, ``range_lte``, ``range_begins_with`` and ``range_eq``.
        """
        if key_conditions is None:
            key_conditions = self._shorthand_key_conditions(table_name, index_name, hash_value, range_options)
        elif hash_value is not None or range_options:
            raise ValueError("Pass either key_conditions or the hash_value shorthand, not both")

        kwargs = self._read_kwargs(
            table_name, consistent_read, select, index_name, batch_size,
            exclusive_start_key, record_limit, scan_limit, project,
        )
        kwargs['key_conditions'] = key_conditions
        kwargs['filter_conditions'] = non_key_conditions
        if scan_index_forward is not None:
            kwargs['scan_index_forward'] = scan_index_forward
        return self._paginate(self.connection.query, table_name, kwargs, record_limit, scan_limit)

    def scan(
        self,
        table_name: str,
        conditions: ConditionGroups = (),
        *,
        consistent_read: bool = False,
        select: Optional[str] = None,
        index_name: Optional[str] = None,
        batch_size: Optional[int] = None,
        exclusive_start_key: Optional[Mapping[str, Any]] = None,
        record_limit: Optional[int] = None,
        scan_limit: Optional[int] = None,
        project: Optional[Sequence[str]] = None,
    ) -> Iterator[Tuple[List[Item], PageMeta]]:
        """
        Scans a table or index and lazily yields ``(items, {'last_evaluated_key': key})`` per page
        """
        kwargs = self._read_kwargs(
            table_name, consistent_read, select, index_name, batch_size,
            exclusive_start_key, record_limit, scan_limit, project,
        )
        kwargs['filter_conditions'] = conditions
        return self._paginate(self.connection.scan, table_name, kwargs, record_limit, scan_limit)

    def query_count(self, table_name: str, key_conditions: Optional[ConditionMap] = None,
                    non_key_conditions: ConditionGroups = (), **options: Any) -> int:
        options['select'] = COUNT
        pages = self.query(table_name, key_conditions, non_key_conditions, **options)
        return sum(meta['count'] for _, meta in pages)

    def scan_count(self, table_name: str, conditions: ConditionGroups = (), **options: Any) -> int:
        options['select'] = COUNT
        pages = self.scan(table_name, conditions, **options)
        return sum(meta['count'] for _, meta in pages)

    def truncate(self, table_name: str) -> None:
        """
        Deletes every item of the table. Not atomic.
        """
        table = self.describe_table(table_name)
        ids: List[Any] = []
        for items, _ in self.scan(table_name):
            for item in items:
                if table.range_key:
                    ids.append((item[table.hash_key], item[table.range_key]))
                else:
                    ids.append(item[table.hash_key])
        self.batch_delete_item({table_name: ids})

    def _shorthand_key_conditions(
        self,
        table_name: str,
        index_name: Optional[str],
        hash_value: Any,
        range_options: Mapping[str, Any],
    ) -> Dict[str, Dict[str, Any]]:
        unknown = set(range_options) - set(RANGE_OPTIONS)
        if unknown:
            raise TypeError("Unexpected query options: {}".format(', '.join(sorted(unknown))))
        table = self.describe_table(table_name)
        if index_name:
            index = table.get_index(index_name)
            hash_key, range_key = index.hash_key, index.range_key
        else:
            hash_key, range_key = table.hash_key, table.range_key
        if hash_value is None:
            raise MissingHashKey("Hash key value is missing for table {}".format(table_name))

        key_conditions: Dict[str, Dict[str, Any]] = {hash_key: {EQ: hash_value}}
        range_conditions = {RANGE_OPTIONS[option]: value for option, value in range_options.items()}
        if range_conditions:
            if range_key is None:
                raise ValueError("Table {} has no range key to compare against".format(table_name))
            key_conditions[range_key] = range_conditions
        return key_conditions

    def _read_kwargs(
        self,
        table_name: str,
        consistent_read: bool,
        select: Optional[str],
        index_name: Optional[str],
        batch_size: Optional[int],
        exclusive_start_key: Optional[Mapping[str, Any]],
        record_limit: Optional[int],
        scan_limit: Optional[int],
        project: Optional[Sequence[str]],
    ) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {}
        limit = initial_limit(record_limit, scan_limit, batch_size or self.batch_size)
        if limit is not None:
            kwargs['limit'] = limit
        if consistent_read:
            kwargs['consistent_read'] = True
        if select:
            kwargs['select'] = select
        if index_name:
            kwargs['index_name'] = index_name
        if exclusive_start_key:
            kwargs['exclusive_start_key'] = python_to_item(exclusive_start_key)
        if project:
            kwargs['attributes_to_get'] = list(project)
        return kwargs

    def _paginate(
        self,
        operation: Callable[..., Dict],
        table_name: str,
        kwargs: Dict[str, Any],
        record_limit: Optional[int],
        scan_limit: Optional[int],
    ) -> Iterator[Tuple[List[Item], PageMeta]]:
        pages = PageIterator(
            operation,
            (table_name,),
            kwargs,
            record_limit=record_limit,
            scan_limit=scan_limit,
            backoff=build_backoff(self.backoff, self._time_module),
        )
        for page in pages:
            last_evaluated_key = page.get(LAST_EVALUATED_KEY)
            items = [item_to_python(item) for item in page.get(ITEMS, [])]
            yield items, {
                'last_evaluated_key': item_to_python(last_evaluated_key) if last_evaluated_key else None,
                'count': page.get(CAMEL_COUNT, 0),
                'scanned_count': page.get(SCANNED_COUNT, 0),
            }

    # Transactions and PartiQL

    def transact_put(
        self,
        table_name: str,
        item: Mapping[str, Any],
        conditions: Optional[WriteConditions] = None,
    ) -> Dict[str, Any]:
        """
        Renders a put action of TransactWriteItems
        """
        item = python_to_item(self.sanitize_item(item))
        return {TRANSACT_PUT: self.connection.get_operation_kwargs(table_name, item=item, condition=conditions)}

    def transact_update(
        self,
        table_name: str,
        hash_key: Any,
        updater: Updater,
        range_key: Any = None,
        conditions: Optional[WriteConditions] = None,
    ) -> Dict[str, Any]:
        """
        Renders an update action of TransactWriteItems
        """
        table = self.describe_table(table_name)
        return {TRANSACT_UPDATE: self.connection.get_operation_kwargs(
            table_name,
            key=self.key_stanza(table, hash_key, range_key),
            updater=self._updater(updater),
            condition=conditions,
        )}

    def transact_delete(
        self,
        table_name: str,
        hash_key: Any,
        range_key: Any = None,
        conditions: Optional[WriteConditions] = None,
    ) -> Dict[str, Any]:
        table = self.describe_table(table_name)
        return {TRANSACT_DELETE: self.connection.get_operation_kwargs(
            table_name, key=self.key_stanza(table, hash_key, range_key), condition=conditions,
        )}

    def transact_get(
        self,
        table_name: str,
        hash_key: Any,
        range_key: Any = None,
        project: Optional[Sequence[str]] = None,
    ) -> Dict[str, Any]:
        table = self.describe_table(table_name)
        return {TRANSACT_GET: self.connection.get_operation_kwargs(
            table_name, key=self.key_stanza(table, hash_key, range_key), attributes_to_get=project,
        )}

    def transact_write_items(
        self,
        requests: Sequence[Dict[str, Any]],
        client_request_token: Optional[str] = None,
    ) -> Dict:
        """
        Sends already rendered write actions as one TransactWriteItems call
        """
        return self.connection.transact_write_items(requests, client_request_token=client_request_token)

    def transact_get_items(self, requests: Sequence[Dict[str, Any]]) -> List[Optional[Item]]:
        """
        Sends already rendered gets as one TransactGetItems call and returns the items in request order
        """
        data = self.connection.transact_get_items(requests)
        return [
            item_to_python(response[ITEM]) if response.get(ITEM) else None
            for response in data.get(RESPONSES, [])
        ]

    def execute_statement(
        self,
        statement: str,
        parameters: Sequence[Any] = (),
        consistent_read: Optional[bool] = None,
    ) -> Iterator[Item]:
        """
        Runs a PartiQL statement::

            adapter.execute_statement("SELECT * FROM users WHERE id = ?", ['758'])

        The first page is fetched right away so statements without results run immediately.
        Further pages are followed lazily through ``NextToken``. A statement whose condition
        does not hold yields nothing.
        """
        typed_parameters = [python_to_attr_value(parameter) for parameter in parameters]
        try:
            data = self.connection.execute_statement(statement, typed_parameters, consistent_read=consistent_read)
        except ConditionalCheckFailedError:
            return iter(())
        return self._statement_items(statement, typed_parameters, consistent_read, data)

    def _statement_items(
        self,
        statement: str,
        typed_parameters: List[Dict[str, Any]],
        consistent_read: Optional[bool],
        data: Dict,
    ) -> Iterator[Item]:
        while True:
            for item in data.get(ITEMS, []):
                yield item_to_python(item)
            next_token = data.get(NEXT_TOKEN)
            if not next_token:
                return
            data = self.connection.execute_statement(
                statement, typed_parameters, consistent_read=consistent_read, next_token=next_token,
            )
