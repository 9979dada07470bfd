"""
Tests for the base connection class
"""
import base64
from unittest.mock import MagicMock, patch

import pytest
from botocore.client import ClientError
from botocore.exceptions import BotoCoreError

from dynamap.connection import Connection, TableCache, TableDescriptor
from dynamap.constants import PAY_PER_REQUEST_BILLING_MODE, TABLE_KEY
from dynamap.exceptions import (
    CancellationReason, ConditionalCheckFailedError, DeleteError, ExecuteStatementError, GetError, PutError,
    QueryError, ScanError, TableDoesNotExist, TableError, TransactWriteError, UpdateError, VerboseClientError,
)
from dynamap.expressions.condition import WriteConditions
from dynamap.expressions.update import ItemUpdater
from dynamap.signals import post_dynamodb_send, pre_dynamodb_send
from .data import DESCRIBE_TABLE_DATA, GET_ITEM_DATA, LIST_TABLE_DATA

PATCH_METHOD = 'dynamap.connection.Connection._make_api_call'
TEST_TABLE_NAME = DESCRIBE_TABLE_DATA['Table']['TableName']
REGION = 'us-east-1'

THREAD_KEY = {
    'ForumName': {'S': 'Amazon DynamoDB'},
    'Subject': {'S': 'How do I update multiple items?'},
}


def client_error(code, operation_name='Operation', message='Something failed'):
    return ClientError({'Error': {'Code': code, 'Message': message}}, operation_name)


@pytest.fixture
def table():
    return TableDescriptor(DESCRIBE_TABLE_DATA.get(TABLE_KEY))


def test_table_descriptor_keys(table):
    assert table.name == TEST_TABLE_NAME
    assert table.hash_key == 'ForumName'
    assert table.range_key == 'Subject'
    assert table.item_count == 42
    assert table.status == 'ACTIVE'
    assert not table.is_on_demand


def test_table_descriptor_get_key_names(table):
    assert table.get_key_names() == ['ForumName', 'Subject']
    assert table.get_key_names('LastPostIndex') == ['ForumName', 'Subject', 'LastPostDateTime']
    assert table.get_key_names('AuthorIndex') == ['ForumName', 'Subject', 'Author', 'Replies']


def test_table_descriptor_indexes(table):
    assert [index.name for index in table.local_indexes] == ['LastPostIndex', 'ViewsIndex']
    assert [index.name for index in table.global_indexes] == [
        'AuthorIndex', 'TagIndex', 'CategoryIndex', 'ViewsByCategoryIndex',
    ]
    assert table.has_index_name('TagIndex')
    assert not table.has_index_name('NonExistentIndexName')

    index = table.get_index('CategoryIndex')
    assert index.is_global
    assert index.range_key is None
    assert index.non_key_attributes == ['Message']
    assert not index.projects_all_attributes
    assert index.read_capacity == 2

    with pytest.raises(ValueError):
        table.get_index('NonExistentIndexName')


def test_table_descriptor_attribute_types(table):
    assert table.get_attribute_type('ForumName') == 'S'
    assert table.get_attribute_type('Views') == 'N'
    assert table.get_attribute_type('wrongone') is None


def test_table_descriptor_requires_a_hash_key():
    with pytest.raises(ValueError):
        TableDescriptor({'TableName': 'broken', 'KeySchema': []})


def test_create_connection():
    conn = Connection()
    assert conn.region == REGION

    conn = Connection(host='http://localhost:8000', region='eu-west-1')
    assert conn.host == 'http://localhost:8000'
    assert conn.region == 'eu-west-1'


def test_extra_headers_are_added_to_every_request():
    conn = Connection(REGION, extra_headers={'X-Tenant': 'blue'})
    prepared = MagicMock(headers={'Content-Type': 'application/x-amz-json-1.0'})
    with patch.object(Connection, 'client') as client, patch.object(Connection, '_sign_request'):
        client._endpoint.prepare_request.return_value = prepared
        request = conn._create_prepared_request({
            'method': 'POST',
            'url': 'https://dynamodb.us-east-1.amazonaws.com',
            'body': b'{}',
            'headers': {},
            'context': {},
        })
    assert request.headers == {'Content-Type': 'application/x-amz-json-1.0', 'X-Tenant': 'blue'}


def test_describe_table():
    conn = Connection(REGION)
    with patch(PATCH_METHOD) as req:
        req.return_value = DESCRIBE_TABLE_DATA
        data = conn.describe_table(TEST_TABLE_NAME)
        assert data == DESCRIBE_TABLE_DATA[TABLE_KEY]
        # table operations do not ask for consumed capacity
        assert req.call_args[0][1] == {'TableName': TEST_TABLE_NAME}


def test_describe_table__missing():
    conn = Connection(REGION)
    with patch(PATCH_METHOD) as req:
        req.side_effect = client_error('ResourceNotFoundException', 'DescribeTable')
        with pytest.raises(TableDoesNotExist) as excinfo:
            conn.describe_table('missing')
    assert excinfo.value.table_name == 'missing'
    assert excinfo.value.cause_response_code == 'ResourceNotFoundException'


def test_describe_table__botocore_error():
    conn = Connection(REGION)
    with patch(PATCH_METHOD) as req:
        req.side_effect = BotoCoreError
        with pytest.raises(TableError):
            conn.describe_table(TEST_TABLE_NAME)


def test_get_table_is_cached():
    conn = Connection(REGION)
    with patch(PATCH_METHOD) as req:
        req.return_value = DESCRIBE_TABLE_DATA
        first = conn.get_table(TEST_TABLE_NAME)
        second = conn.get_table(TEST_TABLE_NAME)
        assert first is second
        assert req.call_count == 1

        reloaded = conn.get_table(TEST_TABLE_NAME, reload=True)
        assert reloaded is not first
        assert req.call_count == 2


def test_table_cache_loads_outside_the_lock():
    def load(table_name):
        # readers and clears on other threads are not blocked while a table is described
        assert not cache._lock.locked()
        return TableDescriptor(DESCRIBE_TABLE_DATA[TABLE_KEY])

    cache = TableCache(load)
    first = cache.describe(TEST_TABLE_NAME)
    assert cache.describe(TEST_TABLE_NAME) is first
    assert cache.describe(TEST_TABLE_NAME, reload=True) is not first
    assert len(cache) == 1

    cache.clear()
    assert TEST_TABLE_NAME not in cache


def test_delete_table_invalidates_cache():
    conn = Connection(REGION)
    with patch(PATCH_METHOD) as req:
        req.return_value = DESCRIBE_TABLE_DATA
        conn.get_table(TEST_TABLE_NAME)
        assert TEST_TABLE_NAME in conn.tables

        req.return_value = {'TableDescription': {'TableStatus': 'DELETING'}}
        conn.delete_table(TEST_TABLE_NAME)
        assert req.call_args[0][1] == {'TableName': TEST_TABLE_NAME}
        assert TEST_TABLE_NAME not in conn.tables


def test_delete_table__error():
    conn = Connection(REGION)
    with patch(PATCH_METHOD) as req:
        req.side_effect = client_error('ResourceInUseException', 'DeleteTable')
        with pytest.raises(TableError) as excinfo:
            conn.delete_table(TEST_TABLE_NAME)
    assert excinfo.value.cause_response_code == 'ResourceInUseException'


def test_list_tables():
    conn = Connection(REGION)
    with patch(PATCH_METHOD) as req:
        req.return_value = LIST_TABLE_DATA
        assert conn.list_tables(exclusive_start_table_name='Forum', limit=3) == LIST_TABLE_DATA
        assert req.call_args[0][1] == {'ExclusiveStartTableName': 'Forum', 'Limit': 3}


def test_create_table():
    conn = Connection(REGION)
    attribute_definitions = [{'AttributeName': 'id', 'AttributeType': 'S'}]
    key_schema = [{'AttributeName': 'id', 'KeyType': 'HASH'}]
    with patch(PATCH_METHOD) as req:
        req.return_value = {}
        conn.create_table(
            'users',
            attribute_definitions=attribute_definitions,
            key_schema=key_schema,
            read_capacity_units=2,
            write_capacity_units=1,
        )
        assert req.call_args[0][1] == {
            'TableName': 'users',
            'AttributeDefinitions': attribute_definitions,
            'KeySchema': key_schema,
            'ProvisionedThroughput': {'ReadCapacityUnits': 2, 'WriteCapacityUnits': 1},
        }

        conn.create_table(
            'users',
            attribute_definitions=attribute_definitions,
            key_schema=key_schema,
            billing_mode=PAY_PER_REQUEST_BILLING_MODE,
        )
        assert req.call_args[0][1] == {
            'TableName': 'users',
            'AttributeDefinitions': attribute_definitions,
            'KeySchema': key_schema,
            'BillingMode': PAY_PER_REQUEST_BILLING_MODE,
        }

        req.side_effect = BotoCoreError
        with pytest.raises(TableError):
            conn.create_table('users', attribute_definitions=attribute_definitions, key_schema=key_schema)


def test_update_time_to_live():
    conn = Connection(REGION)
    with patch(PATCH_METHOD) as req:
        req.return_value = {}
        conn.update_time_to_live('users', 'expires_at')
        assert req.call_args[0][1] == {
            'TableName': 'users',
            'TimeToLiveSpecification': {'AttributeName': 'expires_at', 'Enabled': True},
        }


def test_get_item():
    conn = Connection(REGION)
    with patch(PATCH_METHOD) as req:
        req.return_value = GET_ITEM_DATA
        data = conn.get_item(TEST_TABLE_NAME, THREAD_KEY, consistent_read=True, attributes_to_get=['Views', 'Tags'])
        assert data == GET_ITEM_DATA
        assert req.call_args[0][1] == {
            'TableName': TEST_TABLE_NAME,
            'Key': THREAD_KEY,
            'ProjectionExpression': '#_a0, #_a1',
            'ConsistentRead': True,
            'ExpressionAttributeNames': {'#_a0': 'Views', '#_a1': 'Tags'},
            'ReturnConsumedCapacity': 'TOTAL',
        }

        req.side_effect = BotoCoreError
        with pytest.raises(GetError):
            conn.get_item(TEST_TABLE_NAME, THREAD_KEY)


def test_put_item():
    conn = Connection(REGION)
    item = dict(THREAD_KEY, Views={'N': '1'})
    with patch(PATCH_METHOD) as req:
        req.return_value = {}
        conn.put_item(TEST_TABLE_NAME, item)
        assert req.call_args[0][1] == {
            'TableName': TEST_TABLE_NAME,
            'Item': item,
            'ReturnConsumedCapacity': 'TOTAL',
        }

        conn.put_item(TEST_TABLE_NAME, item, condition=WriteConditions(unless_exists=['ForumName', 'Subject']))
        assert req.call_args[0][1] == {
            'TableName': TEST_TABLE_NAME,
            'Item': item,
            'ConditionExpression': 'attribute_not_exists (#_a0) AND attribute_not_exists (#_a1)',
            'ExpressionAttributeNames': {'#_a0': 'ForumName', '#_a1': 'Subject'},
            'ReturnConsumedCapacity': 'TOTAL',
        }


def test_put_item__errors():
    conn = Connection(REGION)
    with patch(PATCH_METHOD) as req:
        req.side_effect = client_error('ConditionalCheckFailedException', 'PutItem')
        with pytest.raises(ConditionalCheckFailedError) as excinfo:
            conn.put_item(TEST_TABLE_NAME, THREAD_KEY)
        assert excinfo.value.cause_response_code == 'ConditionalCheckFailedException'

        req.side_effect = client_error('ValidationException', 'PutItem')
        with pytest.raises(PutError) as excinfo:
            conn.put_item(TEST_TABLE_NAME, THREAD_KEY)
        assert not isinstance(excinfo.value, ConditionalCheckFailedError)


def test_delete_item():
    conn = Connection(REGION)
    with patch(PATCH_METHOD) as req:
        req.return_value = {}
        conn.delete_item(
            TEST_TABLE_NAME, THREAD_KEY, condition=WriteConditions(if_equals={'Views': 0}),
        )
        assert req.call_args[0][1] == {
            'TableName': TEST_TABLE_NAME,
            'Key': THREAD_KEY,
            'ConditionExpression': '#_a0 = :_a0',
            'ExpressionAttributeNames': {'#_a0': 'Views'},
            'ExpressionAttributeValues': {':_a0': {'N': '0'}},
            'ReturnConsumedCapacity': 'TOTAL',
        }

        req.side_effect = BotoCoreError
        with pytest.raises(DeleteError):
            conn.delete_item(TEST_TABLE_NAME, THREAD_KEY)


def test_update_item():
    conn = Connection(REGION)
    updater = ItemUpdater().set(Message='Hi').add(Views=1).remove('Draft')
    with patch(PATCH_METHOD) as req:
        req.return_value = {'Attributes': GET_ITEM_DATA['Item']}
        conn.update_item(
            TEST_TABLE_NAME, THREAD_KEY, updater, condition=WriteConditions(must_exist=['ForumName']),
        )
        assert req.call_args[0][1] == {
            'TableName': TEST_TABLE_NAME,
            'Key': THREAD_KEY,
            'UpdateExpression': 'SET #_a0 = :_a0 ADD #_a1 :_a1 REMOVE #_a2',
            'ConditionExpression': 'attribute_exists (#_a3)',
            'ReturnValues': 'ALL_NEW',
            'ExpressionAttributeNames': {
                '#_a0': 'Message', '#_a1': 'Views', '#_a2': 'Draft', '#_a3': 'ForumName',
            },
            'ExpressionAttributeValues': {':_a0': {'S': 'Hi'}, ':_a1': {'N': '1'}},
            'ReturnConsumedCapacity': 'TOTAL',
        }

        req.side_effect = client_error('ConditionalCheckFailedException', 'UpdateItem')
        with pytest.raises(ConditionalCheckFailedError):
            conn.update_item(TEST_TABLE_NAME, THREAD_KEY, updater)

        req.side_effect = BotoCoreError
        with pytest.raises(UpdateError):
            conn.update_item(TEST_TABLE_NAME, THREAD_KEY, updater)


def test_batch_get_item():
    conn = Connection(REGION)
    with patch(PATCH_METHOD) as req:
        req.return_value = {'Responses': {TEST_TABLE_NAME: []}}
        conn.batch_get_item({TEST_TABLE_NAME: [THREAD_KEY]}, consistent_read=True)
        assert req.call_args[0][1] == {
            'RequestItems': {TEST_TABLE_NAME: {'Keys': [THREAD_KEY], 'ConsistentRead': True}},
            'ReturnConsumedCapacity': 'TOTAL',
        }


def test_batch_write_item():
    conn = Connection(REGION)
    with pytest.raises(ValueError):
        conn.batch_write_item(TEST_TABLE_NAME)

    with patch(PATCH_METHOD) as req:
        req.return_value = {}
        conn.batch_write_item(TEST_TABLE_NAME, put_items=[THREAD_KEY], delete_items=[THREAD_KEY])
        assert req.call_args[0][1] == {
            'RequestItems': {TEST_TABLE_NAME: [
                {'PutRequest': {'Item': THREAD_KEY}},
                {'DeleteRequest': {'Key': THREAD_KEY}},
            ]},
            'ReturnConsumedCapacity': 'TOTAL',
        }


def test_query():
    conn = Connection(REGION)
    with patch(PATCH_METHOD) as req:
        req.return_value = {'Items': [], 'Count': 0, 'ScannedCount': 0}
        conn.query(
            TEST_TABLE_NAME,
            key_conditions={'ForumName': {'eq': 'Amazon DynamoDB'}, 'Subject': {'begins_with': 'How'}},
            filter_conditions={'Views': {'gt': 10}},
            attributes_to_get=['Subject'],
            limit=5,
            scan_index_forward=False,
        )
        assert req.call_args[0][1] == {
            'TableName': TEST_TABLE_NAME,
            'KeyConditionExpression': '#_a0 = :_a0 AND begins_with (#_a1, :_a1)',
            'FilterExpression': '#_a2 > :_a2',
            'ProjectionExpression': '#_a1',
            'Limit': 5,
            'ScanIndexForward': False,
            'ExpressionAttributeNames': {'#_a0': 'ForumName', '#_a1': 'Subject', '#_a2': 'Views'},
            'ExpressionAttributeValues': {
                ':_a0': {'S': 'Amazon DynamoDB'},
                ':_a1': {'S': 'How'},
                ':_a2': {'N': '10'},
            },
            'ReturnConsumedCapacity': 'TOTAL',
        }

        req.side_effect = BotoCoreError
        with pytest.raises(QueryError):
            conn.query(TEST_TABLE_NAME, key_conditions={'ForumName': {'eq': 'Amazon DynamoDB'}})


def test_scan():
    conn = Connection(REGION)
    start_key = {'ForumName': {'S': 'Amazon DynamoDB'}}
    with patch(PATCH_METHOD) as req:
        req.return_value = {'Count': 3, 'ScannedCount': 3}
        conn.scan(
            TEST_TABLE_NAME,
            filter_conditions=[{'Views': {'between': (1, 5)}}, {'Tags': {'contains': 'HelpMe'}}],
            exclusive_start_key=start_key,
            index_name='ViewsIndex',
            consistent_read=True,
            select='count',
        )
        assert req.call_args[0][1] == {
            'TableName': TEST_TABLE_NAME,
            'FilterExpression': '#_a0 BETWEEN :_a0 AND :_a1 AND contains (#_a1, :_a2)',
            'ConsistentRead': True,
            'ExclusiveStartKey': start_key,
            'IndexName': 'ViewsIndex',
            'Select': 'COUNT',
            'ExpressionAttributeNames': {'#_a0': 'Views', '#_a1': 'Tags'},
            'ExpressionAttributeValues': {':_a0': {'N': '1'}, ':_a1': {'N': '5'}, ':_a2': {'S': 'HelpMe'}},
            'ReturnConsumedCapacity': 'TOTAL',
        }

        with pytest.raises(ValueError):
            conn.scan(TEST_TABLE_NAME, select='everything')

        req.side_effect = BotoCoreError
        with pytest.raises(ScanError):
            conn.scan(TEST_TABLE_NAME)


def test_transact_write_items():
    conn = Connection(REGION)
    put = {'Put': {'TableName': TEST_TABLE_NAME, 'Item': THREAD_KEY}}
    with patch(PATCH_METHOD) as req:
        req.return_value = {}
        conn.transact_write_items([put], client_request_token='token')
        assert req.call_args[0][1] == {
            'TransactItems': [put],
            'ClientRequestToken': 'token',
            'ReturnConsumedCapacity': 'TOTAL',
        }


def test_transact_write_items__cancelled():
    conn = Connection(REGION)
    error = VerboseClientError(
        {'Error': {'Code': 'TransactionCanceledException', 'Message': 'cancelled'}},
        'TransactWriteItems',
        cancellation_reasons=[None, CancellationReason(code='ConditionalCheckFailed', message='failed')],
    )
    with patch(PATCH_METHOD) as req:
        req.side_effect = error
        with pytest.raises(TransactWriteError) as excinfo:
            conn.transact_write_items([])
    assert excinfo.value.cause_response_code == 'TransactionCanceledException'
    assert excinfo.value.cancellation_reasons == [
        None, CancellationReason(code='ConditionalCheckFailed', message='failed'),
    ]


def test_execute_statement():
    conn = Connection(REGION)
    with patch(PATCH_METHOD) as req:
        req.return_value = {'Items': []}
        conn.execute_statement('SELECT * FROM users WHERE id = ?', [{'S': '1'}], next_token='abc')
        assert req.call_args[0][1] == {
            'Statement': 'SELECT * FROM users WHERE id = ?',
            'Parameters': [{'S': '1'}],
            'NextToken': 'abc',
        }

        req.side_effect = client_error('ConditionalCheckFailedException', 'ExecuteStatement')
        with pytest.raises(ConditionalCheckFailedError):
            conn.execute_statement('DELETE FROM users WHERE id = ?', [{'S': '1'}])

        req.side_effect = client_error('ValidationException', 'ExecuteStatement')
        with pytest.raises(ExecuteStatementError):
            conn.execute_statement('SELEC nothing')


def test_signals_are_sent():
    conn = Connection(REGION)
    received = []

    def receiver(sender, **kwargs):
        received.append((sender, kwargs['operation_name'], kwargs['table_name']))

    pre_dynamodb_send.connect(receiver)
    post_dynamodb_send.connect(receiver)
    try:
        with patch(PATCH_METHOD) as req:
            req.return_value = GET_ITEM_DATA
            conn.get_item(TEST_TABLE_NAME, THREAD_KEY)
    finally:
        pre_dynamodb_send.disconnect(receiver)
        post_dynamodb_send.disconnect(receiver)

    assert received == [(conn, 'GetItem', TEST_TABLE_NAME), (conn, 'GetItem', TEST_TABLE_NAME)]


def test_signal_exceptions_are_not_raised():
    conn = Connection(REGION)

    def bad_receiver(sender, **kwargs):
        raise ValueError("boom")

    pre_dynamodb_send.connect(bad_receiver)
    try:
        with patch(PATCH_METHOD) as req:
            req.return_value = GET_ITEM_DATA
            assert conn.get_item(TEST_TABLE_NAME, THREAD_KEY) == GET_ITEM_DATA
    finally:
        pre_dynamodb_send.disconnect(bad_receiver)


def test_handle_binary_attributes():
    binary = b'\x00\x01binary'
    encoded = base64.b64encode(binary).decode('utf-8')
    data = {
        'Item': {'picture': {'B': encoded}},
        'Items': [{'pictures': {'BS': [encoded]}}],
        'LastEvaluatedKey': {'picture': {'B': encoded}},
    }
    data = Connection._handle_binary_attributes(data)
    assert data['Item']['picture'] == {'B': binary}
    assert data['Items'][0]['pictures'] == {'BS': {binary}}
    assert data['LastEvaluatedKey']['picture'] == {'B': binary}
