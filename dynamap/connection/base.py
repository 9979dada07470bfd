"""
Lowest level connection
"""
import json
import logging
import random
import time
import uuid
from base64 import b64decode
from threading import local
from typing import Any, Dict, List, Mapping, Optional, Sequence

import botocore.client
import botocore.exceptions
from botocore.awsrequest import AWSPreparedRequest, create_request_object
from botocore.client import ClientError
from botocore.exceptions import BotoCoreError
from botocore.hooks import first_non_none_response
from botocore.session import get_session

from dynamap.connection.table import TableCache, TableDescriptor
from dynamap.constants import (
    ALL_NEW, ATTR_DEFINITIONS, ATTR_NAME, ATTRIBUTES, BATCH_GET_ITEM, BATCH_WRITE_ITEM, BILLING_MODE, BINARY,
    BINARY_SET, CANCELLATION_REASONS, CAPACITY_UNITS, CLIENT_REQUEST_TOKEN, CONDITION_EXPRESSION,
    CONDITIONAL_CHECK_FAILED, CONSISTENT_READ, CONSUMED_CAPACITY, CREATE_TABLE, DEFAULT_ENCODING, DELETE_ITEM,
    DELETE_REQUEST, DELETE_TABLE, DESCRIBE_TABLE, ENABLED, EXCLUSIVE_START_KEY, EXCLUSIVE_START_TABLE_NAME,
    EXECUTE_STATEMENT, FILTER_EXPRESSION, GET_ITEM, GLOBAL_SECONDARY_INDEXES, INDEX_NAME, ITEM, ITEMS, KEY,
    KEY_CONDITION_EXPRESSION, KEY_SCHEMA, KEYS, LAST_EVALUATED_KEY, LIMIT, LIST_TABLES, LOCAL_SECONDARY_INDEXES,
    NEXT_TOKEN, PARAMETERS, PAY_PER_REQUEST_BILLING_MODE, PROJECTION_EXPRESSION, PROVISIONED_THROUGHPUT, PUT_ITEM,
    PUT_REQUEST, QUERY, READ_CAPACITY_UNITS, REQUEST_ITEMS, RESOURCE_NOT_FOUND, RESPONSES, RETURN_CONSUMED_CAPACITY,
    RETURN_VALUES, SCAN, SCAN_INDEX_FORWARD, SELECT, SELECT_VALUES, SERVICE_NAME, STATEMENT, TABLE_KEY, TABLE_NAME,
    TIME_TO_LIVE_SPECIFICATION, TOTAL, TRANSACT_GET_ITEMS, TRANSACT_ITEMS, TRANSACT_WRITE_ITEMS, UNPROCESSED_ITEMS,
    UNPROCESSED_KEYS, UPDATE_EXPRESSION, UPDATE_ITEM, UPDATE_TIME_TO_LIVE, WRITE_CAPACITY_UNITS,
)
from dynamap.exceptions import (
    CancellationReason, ConditionalCheckFailedError, DeleteError, DynamapException, ExecuteStatementError,
    GetError, PutError, QueryError, ScanError, TableDoesNotExist, TableError, TransactGetError, TransactWriteError,
    UpdateError, VerboseClientError,
)
from dynamap.expressions.condition import ConditionGroups, WriteConditions, create_condition_expression
from dynamap.expressions.projection import create_projection_expression
from dynamap.expressions.update import ItemUpdater
from dynamap.expressions.util import Placeholders
from dynamap.settings import get_settings_value
from dynamap.signals import post_dynamodb_send, pre_dynamodb_send

BOTOCORE_EXCEPTIONS = (BotoCoreError, ClientError)
RATE_LIMITING_ERROR_CODES = ['ProvisionedThroughputExceededException', 'ThrottlingException']
TABLE_OPERATIONS = [DESCRIBE_TABLE, LIST_TABLES, UPDATE_TIME_TO_LIVE, DELETE_TABLE, CREATE_TABLE, EXECUTE_STATEMENT]

log = logging.getLogger(__name__)
log.addHandler(logging.NullHandler())


def is_conditional_check_failed(error: Exception) -> bool:
    if not isinstance(error, ClientError):
        return False
    return error.response.get('Error', {}).get('Code') == CONDITIONAL_CHECK_FAILED


def _wrap_write_error(error: Exception, error_class: type, message: str) -> DynamapException:
    if is_conditional_check_failed(error):
        return ConditionalCheckFailedError("{}: {}".format(message, error), error)
    return error_class("{}: {}".format(message, error), error)


class Connection(object):
    """
    A higher level abstraction over botocore.

    A connection is the explicit session every operation goes through: it owns the
    botocore client and the cache of table descriptors.
    """

    def __init__(self,
                 region: Optional[str] = None,
                 host: Optional[str] = None,
                 read_timeout_seconds: Optional[float] = None,
                 connect_timeout_seconds: Optional[float] = None,
                 max_retry_attempts: Optional[int] = None,
                 base_backoff_ms: Optional[int] = None,
                 max_pool_connections: Optional[int] = None,
                 extra_headers: Optional[Mapping[str, str]] = None):
        self.tables = TableCache(self._load_table)
        self.host = host if host is not None else get_settings_value('host')
        self._local = local()
        self._client = None
        if region:
            self.region = region
        else:
            self.region = get_settings_value('region')

        if connect_timeout_seconds is not None:
            self._connect_timeout_seconds = connect_timeout_seconds
        else:
            self._connect_timeout_seconds = get_settings_value('connect_timeout_seconds')

        if read_timeout_seconds is not None:
            self._read_timeout_seconds = read_timeout_seconds
        else:
            self._read_timeout_seconds = get_settings_value('read_timeout_seconds')

        if max_retry_attempts is not None:
            self._max_retry_attempts_exception = max_retry_attempts
        else:
            self._max_retry_attempts_exception = get_settings_value('max_retry_attempts')

        if base_backoff_ms is not None:
            self._base_backoff_ms = base_backoff_ms
        else:
            self._base_backoff_ms = get_settings_value('base_backoff_ms')

        if max_pool_connections is not None:
            self._max_pool_connections = max_pool_connections
        else:
            self._max_pool_connections = get_settings_value('max_pool_connections')

        if extra_headers is not None:
            self._extra_headers = extra_headers
        else:
            self._extra_headers = get_settings_value('extra_headers')

    def __repr__(self) -> str:
        return "Connection<{}>".format(self.client.meta.endpoint_url)

    def _sign_request(self, request):
        auth = self.client._request_signer.get_auth_instance(
            self.client._request_signer.signing_name,
            self.client._request_signer.region_name,
            self.client._request_signer.signature_version)
        auth.add_auth(request)

    def _create_prepared_request(self, params: Dict) -> AWSPreparedRequest:
        request = create_request_object(params)
        self._sign_request(request)
        prepared_request = self.client._endpoint.prepare_request(request)
        if self._extra_headers is not None:
            prepared_request.headers.update(self._extra_headers)
        return prepared_request

    def dispatch(self, operation_name: str, operation_kwargs: Dict) -> Dict:
        """
        Dispatches `operation_name` with arguments `operation_kwargs`
        """
        if operation_name not in TABLE_OPERATIONS:
            if RETURN_CONSUMED_CAPACITY not in operation_kwargs:
                operation_kwargs[RETURN_CONSUMED_CAPACITY] = TOTAL
        log.debug("Calling %s with arguments %s", operation_name, operation_kwargs)

        table_name = operation_kwargs.get(TABLE_NAME)
        req_uuid = uuid.uuid4()

        self.send_pre_boto_callback(operation_name, req_uuid, table_name)
        data = self._make_api_call(operation_name, operation_kwargs)
        self.send_post_boto_callback(operation_name, req_uuid, table_name)

        if data and CONSUMED_CAPACITY in data:
            capacity = data.get(CONSUMED_CAPACITY)
            if isinstance(capacity, dict) and CAPACITY_UNITS in capacity:
                capacity = capacity.get(CAPACITY_UNITS)
            log.debug("%s %s consumed %s units", table_name or '', operation_name, capacity)
        return data

    def send_post_boto_callback(self, operation_name, req_uuid, table_name):
        try:
            post_dynamodb_send.send(self, operation_name=operation_name, table_name=table_name, req_uuid=req_uuid)
        except Exception:
            log.exception("post_boto callback threw an exception.")

    def send_pre_boto_callback(self, operation_name, req_uuid, table_name):
        try:
            pre_dynamodb_send.send(self, operation_name=operation_name, table_name=table_name, req_uuid=req_uuid)
        except Exception:
            log.exception("pre_boto callback threw an exception.")

    def _make_api_call(self, operation_name: str, operation_kwargs: Dict) -> Dict:
        """
        This private method is here for two reasons:
        1. It's faster to avoid using botocore's response parsing
        2. It provides a place to monkey patch HTTP requests for unit testing
        """
        operation_model = self.client._service_model.operation_model(operation_name)
        request_dict = self.client._convert_to_request_dict(
            operation_kwargs,
            operation_model,
        )

        for i in range(0, self._max_retry_attempts_exception + 1):
            attempt_number = i + 1
            is_last_attempt_for_exceptions = i == self._max_retry_attempts_exception

            http_response = None
            try:
                # Create a new request for each retry (including a new signature).
                prepared_request = self._create_prepared_request(request_dict)

                # Implement the before-send event from botocore
                event_name = 'before-send.dynamodb.{}'.format(operation_model.name)
                event_responses = self.client._endpoint._event_emitter.emit(event_name, request=prepared_request)
                event_response = first_non_none_response(event_responses)

                if event_response is None:
                    http_response = self.client._endpoint.http_session.send(prepared_request)
                else:
                    http_response = event_response
                    is_last_attempt_for_exceptions = True  # don't retry if we have an event response

                data = json.loads(http_response.content)
            except (ValueError, botocore.exceptions.HTTPClientError, botocore.exceptions.ConnectionError) as e:
                if is_last_attempt_for_exceptions:
                    log.debug('Reached the maximum number of retry attempts: %s', attempt_number)
                    if http_response:
                        e.args += (http_response.text,)
                    raise
                else:
                    # No backoff for fast-fail exceptions that likely failed at the frontend
                    log.debug(
                        'Retry needed for (%s) after attempt %s, retryable %s caught: %s',
                        operation_name,
                        attempt_number,
                        e.__class__.__name__,
                        e
                    )
                    continue

            status_code = http_response.status_code
            headers = http_response.headers
            if status_code >= 300:
                # Extract error code from __type
                code = data.get('__type', '')
                if '#' in code:
                    code = code.rsplit('#', 1)[1]
                botocore_expected_format = {'Error': {'Message': data.get('message', '') or data.get('Message', ''), 'Code': code}}
                verbose_properties = {
                    'request_id': headers.get('x-amzn-RequestId'),
                    'table_name': self._table_names_of(operation_kwargs),
                }
                cancellation_reasons = [
                    None if reason.get('Code') == 'None' else CancellationReason(
                        code=reason['Code'],
                        message=reason.get('Message'),
                        raw_item=reason.get(ITEM),
                    )
                    for reason in data.get(CANCELLATION_REASONS, [])
                ]

                try:
                    raise VerboseClientError(
                        botocore_expected_format,
                        operation_name,
                        verbose_properties,
                        cancellation_reasons=cancellation_reasons,
                    )
                except VerboseClientError as e:
                    if is_last_attempt_for_exceptions:
                        log.debug('Reached the maximum number of retry attempts: %s', attempt_number)
                        raise
                    elif status_code < 500 and code not in RATE_LIMITING_ERROR_CODES:
                        # Other 4xx errors, conditional check failures included, fail in perpetuity.
                        raise
                    else:
                        # Fully-jittered exponential backoff:
                        #  https://www.awsarchitectureblog.com/2015/03/backoff.html
                        sleep_time_ms = random.randint(0, self._base_backoff_ms * (2 ** i))
                        log.debug(
                            'Retry with backoff needed for (%s) after attempt %s,'
                            'sleeping for %s milliseconds, retryable %s caught: %s',
                            operation_name,
                            attempt_number,
                            sleep_time_ms,
                            e.__class__.__name__,
                            e
                        )
                        time.sleep(sleep_time_ms / 1000.0)
                        continue

            return self._handle_binary_attributes(data)

        assert False  # unreachable code

    @staticmethod
    def _table_names_of(operation_kwargs: Dict) -> Optional[str]:
        if REQUEST_ITEMS in operation_kwargs:
            # Batch operations can hit multiple tables, report them comma separated
            return ','.join(operation_kwargs[REQUEST_ITEMS])
        if TRANSACT_ITEMS in operation_kwargs:
            table_names = []
            for item in operation_kwargs[TRANSACT_ITEMS]:
                for op in item.values():
                    table_names.append(op[TABLE_NAME])
            return ','.join(table_names)
        return operation_kwargs.get(TABLE_NAME)

    @staticmethod
    def _handle_binary_attributes(data):
        """ Simulate botocore's binary attribute handling """
        if ITEM in data:
            for attr in data[ITEM].values():
                _convert_binary(attr)
        if ITEMS in data:
            for item in data[ITEMS]:
                for attr in item.values():
                    _convert_binary(attr)
        if RESPONSES in data:
            if isinstance(data[RESPONSES], list):
                for response in data[RESPONSES]:
                    for attr in response.get(ITEM, {}).values():
                        _convert_binary(attr)
            else:
                for item_list in data[RESPONSES].values():
                    for item in item_list:
                        for attr in item.values():
                            _convert_binary(attr)
        if LAST_EVALUATED_KEY in data:
            for attr in data[LAST_EVALUATED_KEY].values():
                _convert_binary(attr)
        if UNPROCESSED_KEYS in data:
            for table_data in data[UNPROCESSED_KEYS].values():
                for item in table_data[KEYS]:
                    for attr in item.values():
                        _convert_binary(attr)
        if UNPROCESSED_ITEMS in data:
            for table_unprocessed_requests in data[UNPROCESSED_ITEMS].values():
                for request in table_unprocessed_requests:
                    for item_mapping in request.values():
                        for item in item_mapping.values():
                            for attr in item.values():
                                _convert_binary(attr)
        if ATTRIBUTES in data:
            for attr in data[ATTRIBUTES].values():
                _convert_binary(attr)
        return data

    @property
    def session(self) -> botocore.session.Session:
        """
        Returns a valid botocore session
        """
        # botocore client creation is not thread safe
        if getattr(self._local, 'session', None) is None:
            self._local.session = get_session()
        return self._local.session

    @property
    def client(self):
        """
        Returns a botocore dynamodb client
        """
        # botocore caches empty credentials, so a client without credentials is rebuilt
        if not self._client or (self._client._request_signer and not self._client._request_signer._credentials):
            config = botocore.client.Config(
                parameter_validation=False,  # Disable unnecessary validation for performance
                connect_timeout=self._connect_timeout_seconds,
                read_timeout=self._read_timeout_seconds,
                max_pool_connections=self._max_pool_connections)
            self._client = self.session.create_client(SERVICE_NAME, self.region, endpoint_url=self.host, config=config)
        return self._client

    def _load_table(self, table_name: str) -> TableDescriptor:
        return TableDescriptor(self.describe_table(table_name))

    def get_table(self, table_name: str, reload: bool = False) -> TableDescriptor:
        """
        Returns the cached TableDescriptor, describing the table on a cache miss or when `reload` is set
        """
        return self.tables.describe(table_name, reload=reload)

    def describe_table(self, table_name: str) -> Dict:
        """
        Performs the DescribeTable operation and returns the table description

        Raises TableDoesNotExist if the specified table does not exist
        """
        operation_kwargs = {
            TABLE_NAME: table_name
        }
        try:
            data = self.dispatch(DESCRIBE_TABLE, operation_kwargs)
        except BotoCoreError as e:
            raise TableError("Unable to describe table: {}".format(e), e)
        except ClientError as e:
            if RESOURCE_NOT_FOUND in e.response['Error']['Code']:
                raise TableDoesNotExist(table_name, e)
            raise
        return data.get(TABLE_KEY, {})

    def list_tables(
        self,
        exclusive_start_table_name: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Dict:
        """
        Performs the ListTables operation
        """
        operation_kwargs: Dict[str, Any] = {}
        if exclusive_start_table_name:
            operation_kwargs[EXCLUSIVE_START_TABLE_NAME] = exclusive_start_table_name
        if limit is not None:
            operation_kwargs[LIMIT] = limit
        try:
            return self.dispatch(LIST_TABLES, operation_kwargs)
        except BOTOCORE_EXCEPTIONS as e:
            raise TableError("Unable to list tables: {}".format(e), e)

    def create_table(
        self,
        table_name: str,
        attribute_definitions: Sequence[Dict[str, str]],
        key_schema: Sequence[Dict[str, str]],
        read_capacity_units: Optional[int] = None,
        write_capacity_units: Optional[int] = None,
        global_secondary_indexes: Optional[Sequence[Dict[str, Any]]] = None,
        local_secondary_indexes: Optional[Sequence[Dict[str, Any]]] = None,
        billing_mode: Optional[str] = None,
    ) -> Dict:
        """
        Performs the CreateTable operation

        Definitions are passed in wire format.
        """
        operation_kwargs: Dict[str, Any] = {
            TABLE_NAME: table_name,
            ATTR_DEFINITIONS: list(attribute_definitions),
            KEY_SCHEMA: list(key_schema),
        }
        if billing_mode == PAY_PER_REQUEST_BILLING_MODE:
            operation_kwargs[BILLING_MODE] = billing_mode
        else:
            operation_kwargs[PROVISIONED_THROUGHPUT] = {
                READ_CAPACITY_UNITS: read_capacity_units,
                WRITE_CAPACITY_UNITS: write_capacity_units,
            }
        if local_secondary_indexes:
            operation_kwargs[LOCAL_SECONDARY_INDEXES] = list(local_secondary_indexes)
        if global_secondary_indexes:
            operation_kwargs[GLOBAL_SECONDARY_INDEXES] = list(global_secondary_indexes)

        try:
            return self.dispatch(CREATE_TABLE, operation_kwargs)
        except BOTOCORE_EXCEPTIONS as e:
            raise TableError("Failed to create table: {}".format(e), e)

    def update_time_to_live(self, table_name: str, ttl_attribute_name: str) -> Dict:
        """
        Performs the UpdateTimeToLive operation
        """
        operation_kwargs = {
            TABLE_NAME: table_name,
            TIME_TO_LIVE_SPECIFICATION: {
                ATTR_NAME: ttl_attribute_name,
                ENABLED: True,
            }
        }
        try:
            return self.dispatch(UPDATE_TIME_TO_LIVE, operation_kwargs)
        except BOTOCORE_EXCEPTIONS as e:
            raise TableError("Failed to update TTL on table: {}".format(e), e)

    def delete_table(self, table_name: str) -> Dict:
        """
        Performs the DeleteTable operation and drops the table from the cache
        """
        operation_kwargs = {
            TABLE_NAME: table_name
        }
        try:
            data = self.dispatch(DELETE_TABLE, operation_kwargs)
        except BOTOCORE_EXCEPTIONS as e:
            raise TableError("Failed to delete table: {}".format(e), e)
        finally:
            self.tables.invalidate(table_name)
        return data

    def get_operation_kwargs(
        self,
        table_name: str,
        key: Optional[Dict[str, Dict[str, Any]]] = None,
        item: Optional[Dict[str, Dict[str, Any]]] = None,
        attributes_to_get: Optional[Sequence[str]] = None,
        updater: Optional[ItemUpdater] = None,
        condition: Optional[WriteConditions] = None,
        consistent_read: Optional[bool] = None,
        return_values: Optional[str] = None,
    ) -> Dict:
        """
        Builds the request of a single item operation.

        Also used to render the actions of TransactWriteItems and TransactGetItems,
        which take the same shape.
        """
        operation_kwargs: Dict[str, Any] = {TABLE_NAME: table_name}
        if key is not None:
            operation_kwargs[KEY] = key
        if item is not None:
            operation_kwargs[ITEM] = item
        placeholders = Placeholders()
        if attributes_to_get:
            operation_kwargs[PROJECTION_EXPRESSION] = create_projection_expression(attributes_to_get, placeholders)
        if updater is not None:
            update_expression = updater.serialize(placeholders)
            if update_expression:
                operation_kwargs[UPDATE_EXPRESSION] = update_expression
        if condition is not None:
            condition_expression = condition.serialize(placeholders)
            if condition_expression:
                operation_kwargs[CONDITION_EXPRESSION] = condition_expression
        if consistent_read:
            operation_kwargs[CONSISTENT_READ] = True
        if return_values is not None:
            operation_kwargs[RETURN_VALUES] = return_values
        operation_kwargs.update(placeholders.to_operation_kwargs())
        return operation_kwargs

    def get_item(
        self,
        table_name: str,
        key: Dict[str, Dict[str, Any]],
        consistent_read: bool = False,
        attributes_to_get: Optional[Sequence[str]] = None,
    ) -> Dict:
        """
        Performs the GetItem operation and returns the result
        """
        operation_kwargs = self.get_operation_kwargs(
            table_name, key=key, attributes_to_get=attributes_to_get, consistent_read=consistent_read,
        )
        try:
            return self.dispatch(GET_ITEM, operation_kwargs)
        except BOTOCORE_EXCEPTIONS as e:
            raise GetError("Failed to get item: {}".format(e), e)

    def put_item(
        self,
        table_name: str,
        item: Dict[str, Dict[str, Any]],
        condition: Optional[WriteConditions] = None,
    ) -> Dict:
        """
        Performs the PutItem operation and returns the result
        """
        operation_kwargs = self.get_operation_kwargs(table_name, item=item, condition=condition)
        try:
            return self.dispatch(PUT_ITEM, operation_kwargs)
        except BOTOCORE_EXCEPTIONS as e:
            raise _wrap_write_error(e, PutError, "Failed to put item")

    def delete_item(
        self,
        table_name: str,
        key: Dict[str, Dict[str, Any]],
        condition: Optional[WriteConditions] = None,
    ) -> Dict:
        """
        Performs the DeleteItem operation and returns the result
        """
        operation_kwargs = self.get_operation_kwargs(table_name, key=key, condition=condition)
        try:
            return self.dispatch(DELETE_ITEM, operation_kwargs)
        except BOTOCORE_EXCEPTIONS as e:
            raise _wrap_write_error(e, DeleteError, "Failed to delete item")

    def update_item(
        self,
        table_name: str,
        key: Dict[str, Dict[str, Any]],
        updater: ItemUpdater,
        condition: Optional[WriteConditions] = None,
        return_values: str = ALL_NEW,
    ) -> Dict:
        """
        Performs the UpdateItem operation
        """
        operation_kwargs = self.get_operation_kwargs(
            table_name, key=key, updater=updater, condition=condition, return_values=return_values,
        )
        try:
            return self.dispatch(UPDATE_ITEM, operation_kwargs)
        except BOTOCORE_EXCEPTIONS as e:
            raise _wrap_write_error(e, UpdateError, "Failed to update item")

    def batch_get_item(
        self,
        request_items: Mapping[str, Sequence[Dict[str, Dict[str, Any]]]],
        consistent_read: bool = False,
    ) -> Dict:
        """
        Performs the BatchGetItem operation
        """
        operation_kwargs: Dict[str, Any] = {
            REQUEST_ITEMS: {
                table_name: {KEYS: list(keys), CONSISTENT_READ: consistent_read}
                for table_name, keys in request_items.items()
            }
        }
        try:
            return self.dispatch(BATCH_GET_ITEM, operation_kwargs)
        except BOTOCORE_EXCEPTIONS as e:
            raise GetError("Failed to batch get items: {}".format(e), e)

    def batch_write_item(
        self,
        table_name: str,
        put_items: Optional[Sequence[Dict[str, Dict[str, Any]]]] = None,
        delete_items: Optional[Sequence[Dict[str, Dict[str, Any]]]] = None,
    ) -> Dict:
        """
        Performs the BatchWriteItem operation
        """
        if put_items is None and delete_items is None:
            raise ValueError("Either put_items or delete_items must be specified")
        requests: List[Dict[str, Any]] = []
        for item in put_items or []:
            requests.append({PUT_REQUEST: {ITEM: item}})
        for key in delete_items or []:
            requests.append({DELETE_REQUEST: {KEY: key}})
        operation_kwargs: Dict[str, Any] = {
            REQUEST_ITEMS: {table_name: requests},
        }
        try:
            return self.dispatch(BATCH_WRITE_ITEM, operation_kwargs)
        except BOTOCORE_EXCEPTIONS as e:
            raise _wrap_write_error(e, PutError, "Failed to batch write items")

    def transact_write_items(
        self,
        transact_items: Sequence[Dict[str, Any]],
        client_request_token: Optional[str] = None,
    ) -> Dict:
        """
        Performs the TransactWriteItems operation with already rendered actions
        """
        operation_kwargs: Dict[str, Any] = {TRANSACT_ITEMS: list(transact_items)}
        if client_request_token is not None:
            operation_kwargs[CLIENT_REQUEST_TOKEN] = client_request_token
        try:
            return self.dispatch(TRANSACT_WRITE_ITEMS, operation_kwargs)
        except BOTOCORE_EXCEPTIONS as e:
            raise TransactWriteError("Failed to write transaction items", e)

    def transact_get_items(
        self,
        transact_items: Sequence[Dict[str, Any]],
    ) -> Dict:
        """
        Performs the TransactGetItems operation with already rendered gets
        """
        operation_kwargs: Dict[str, Any] = {TRANSACT_ITEMS: list(transact_items)}
        try:
            return self.dispatch(TRANSACT_GET_ITEMS, operation_kwargs)
        except BOTOCORE_EXCEPTIONS as e:
            raise TransactGetError("Failed to get transaction items", e)

    def query(
        self,
        table_name: str,
        key_conditions: Optional[ConditionGroups] = None,
        filter_conditions: Optional[ConditionGroups] = None,
        attributes_to_get: Optional[Sequence[str]] = None,
        consistent_read: bool = False,
        exclusive_start_key: Optional[Dict[str, Dict[str, Any]]] = None,
        index_name: Optional[str] = None,
        limit: Optional[int] = None,
        select: Optional[str] = None,
        scan_index_forward: Optional[bool] = None,
    ) -> Dict:
        """
        Performs the Query operation and returns one page

        Key conditions, filter and projection share one set of placeholders.
        """
        operation_kwargs: Dict[str, Any] = {TABLE_NAME: table_name}
        placeholders = Placeholders()
        key_condition_expression = create_condition_expression(key_conditions, placeholders)
        if key_condition_expression:
            operation_kwargs[KEY_CONDITION_EXPRESSION] = key_condition_expression
        self._add_read_options(
            operation_kwargs, placeholders, filter_conditions, attributes_to_get,
            consistent_read, exclusive_start_key, index_name, limit, select,
        )
        if scan_index_forward is not None:
            operation_kwargs[SCAN_INDEX_FORWARD] = scan_index_forward
        operation_kwargs.update(placeholders.to_operation_kwargs())
        try:
            return self.dispatch(QUERY, operation_kwargs)
        except BOTOCORE_EXCEPTIONS as e:
            raise QueryError("Failed to query items: {}".format(e), e)

    def scan(
        self,
        table_name: str,
        filter_conditions: Optional[ConditionGroups] = None,
        attributes_to_get: Optional[Sequence[str]] = None,
        consistent_read: bool = False,
        exclusive_start_key: Optional[Dict[str, Dict[str, Any]]] = None,
        index_name: Optional[str] = None,
        limit: Optional[int] = None,
        select: Optional[str] = None,
    ) -> Dict:
        """
        Performs the scan operation and returns one page
        """
        operation_kwargs: Dict[str, Any] = {TABLE_NAME: table_name}
        placeholders = Placeholders()
        self._add_read_options(
            operation_kwargs, placeholders, filter_conditions, attributes_to_get,
            consistent_read, exclusive_start_key, index_name, limit, select,
        )
        operation_kwargs.update(placeholders.to_operation_kwargs())
        try:
            return self.dispatch(SCAN, operation_kwargs)
        except BOTOCORE_EXCEPTIONS as e:
            raise ScanError("Failed to scan table: {}".format(e), e)

    @staticmethod
    def _add_read_options(
        operation_kwargs: Dict[str, Any],
        placeholders: Placeholders,
        filter_conditions: Optional[ConditionGroups],
        attributes_to_get: Optional[Sequence[str]],
        consistent_read: bool,
        exclusive_start_key: Optional[Dict[str, Dict[str, Any]]],
        index_name: Optional[str],
        limit: Optional[int],
        select: Optional[str],
    ) -> None:
        filter_expression = create_condition_expression(filter_conditions, placeholders)
        if filter_expression:
            operation_kwargs[FILTER_EXPRESSION] = filter_expression
        if attributes_to_get:
            operation_kwargs[PROJECTION_EXPRESSION] = create_projection_expression(attributes_to_get, placeholders)
        if consistent_read:
            operation_kwargs[CONSISTENT_READ] = True
        if exclusive_start_key:
            operation_kwargs[EXCLUSIVE_START_KEY] = exclusive_start_key
        if index_name:
            operation_kwargs[INDEX_NAME] = index_name
        if limit is not None:
            operation_kwargs[LIMIT] = limit
        if select:
            if select.upper() not in SELECT_VALUES:
                raise ValueError("{} must be one of {}".format(SELECT, SELECT_VALUES))
            operation_kwargs[SELECT] = str(select).upper()

    def execute_statement(
        self,
        statement: str,
        parameters: Optional[Sequence[Dict[str, Any]]] = None,
        consistent_read: Optional[bool] = None,
        next_token: Optional[str] = None,
    ) -> Dict:
        """
        Performs the ExecuteStatement operation (PartiQL) and returns one page
        """
        operation_kwargs: Dict[str, Any] = {STATEMENT: statement}
        if parameters:
            operation_kwargs[PARAMETERS] = list(parameters)
        if consistent_read is not None:
            operation_kwargs[CONSISTENT_READ] = consistent_read
        if next_token:
            operation_kwargs[NEXT_TOKEN] = next_token
        try:
            return self.dispatch(EXECUTE_STATEMENT, operation_kwargs)
        except BOTOCORE_EXCEPTIONS as e:
            raise _wrap_write_error(e, ExecuteStatementError, "Failed to execute statement")


def _convert_binary(attr):
    if BINARY in attr:
        attr[BINARY] = b64decode(attr[BINARY].encode(DEFAULT_ENCODING))
    elif BINARY_SET in attr:
        value = attr[BINARY_SET]
        if value and len(value):
            attr[BINARY_SET] = {b64decode(v.encode(DEFAULT_ENCODING)) for v in value}
