"""
Dynamap constants
"""

# Operations
TRANSACT_WRITE_ITEMS = 'TransactWriteItems'
TRANSACT_GET_ITEMS = 'TransactGetItems'
EXECUTE_STATEMENT = 'ExecuteStatement'
BATCH_WRITE_ITEM = 'BatchWriteItem'
DESCRIBE_TABLE = 'DescribeTable'
BATCH_GET_ITEM = 'BatchGetItem'
CREATE_TABLE = 'CreateTable'
DELETE_TABLE = 'DeleteTable'
LIST_TABLES = 'ListTables'
UPDATE_ITEM = 'UpdateItem'
DELETE_ITEM = 'DeleteItem'
GET_ITEM = 'GetItem'
PUT_ITEM = 'PutItem'
QUERY = 'Query'
SCAN = 'Scan'

# Request Parameters
EXCLUSIVE_START_TABLE_NAME = 'ExclusiveStartTableName'
RETURN_CONSUMED_CAPACITY = 'ReturnConsumedCapacity'
CLIENT_REQUEST_TOKEN = 'ClientRequestToken'
SCAN_INDEX_FORWARD = 'ScanIndexForward'
ATTR_DEFINITIONS = 'AttributeDefinitions'
TABLE_DESCRIPTION = 'TableDescription'
UNPROCESSED_KEYS = 'UnprocessedKeys'
UNPROCESSED_ITEMS = 'UnprocessedItems'
CONSISTENT_READ = 'ConsistentRead'
DELETE_REQUEST = 'DeleteRequest'
TRANSACT_ITEMS = 'TransactItems'
RETURN_VALUES = 'ReturnValues'
REQUEST_ITEMS = 'RequestItems'
TABLE_STATUS = 'TableStatus'
TABLE_NAME = 'TableName'
TABLE_NAMES = 'TableNames'
KEY_SCHEMA = 'KeySchema'
ATTR_NAME = 'AttributeName'
ATTR_TYPE = 'AttributeType'
ITEM_COUNT = 'ItemCount'
CAMEL_COUNT = 'Count'
PUT_REQUEST = 'PutRequest'
INDEX_NAME = 'IndexName'
ATTRIBUTES = 'Attributes'
TABLE_KEY = 'Table'
RESPONSES = 'Responses'
KEY_TYPE = 'KeyType'
SELECT = 'Select'
LIMIT = 'Limit'
ITEMS = 'Items'
ITEM = 'Item'
KEYS = 'Keys'
KEY = 'Key'
STATEMENT = 'Statement'
PARAMETERS = 'Parameters'
NEXT_TOKEN = 'NextToken'

# Key types
HASH = 'HASH'
RANGE = 'RANGE'

# Transaction operators
TRANSACT_DELETE = 'Delete'
TRANSACT_GET = 'Get'
TRANSACT_PUT = 'Put'
TRANSACT_UPDATE = 'Update'

# Response Parameters
SCANNED_COUNT = 'ScannedCount'
LAST_EVALUATED_TABLE_NAME = 'LastEvaluatedTableName'
CANCELLATION_REASONS = 'CancellationReasons'

# Expression Parameters
CONDITION_EXPRESSION = 'ConditionExpression'
EXPRESSION_ATTRIBUTE_NAMES = 'ExpressionAttributeNames'
EXPRESSION_ATTRIBUTE_VALUES = 'ExpressionAttributeValues'
FILTER_EXPRESSION = 'FilterExpression'
KEY_CONDITION_EXPRESSION = 'KeyConditionExpression'
PROJECTION_EXPRESSION = 'ProjectionExpression'
UPDATE_EXPRESSION = 'UpdateExpression'

# Billing Modes
PAY_PER_REQUEST_BILLING_MODE = 'PAY_PER_REQUEST'
PROVISIONED_BILLING_MODE = 'PROVISIONED'
ON_DEMAND = 'on_demand'
BILLING_MODE = 'BillingMode'
BILLING_MODE_SUMMARY = 'BillingModeSummary'

# Defaults
DEFAULT_ENCODING = 'utf-8'
SERVICE_NAME = 'dynamodb'

# Create Table arguments
PROVISIONED_THROUGHPUT = 'ProvisionedThroughput'
READ_CAPACITY_UNITS = 'ReadCapacityUnits'
WRITE_CAPACITY_UNITS = 'WriteCapacityUnits'

# Table statuses
CREATING = 'CREATING'
UPDATING = 'UPDATING'
DELETING = 'DELETING'
ACTIVE = 'ACTIVE'

# Attribute Types
BINARY = 'B'
BINARY_SET = 'BS'
BOOLEAN = 'BOOL'
LIST = 'L'
MAP = 'M'
NULL = 'NULL'
NUMBER = 'N'
NUMBER_SET = 'NS'
STRING = 'S'
STRING_SET = 'SS'

KEY_ATTRIBUTE_TYPES = [STRING, NUMBER, BINARY]
SET_ATTRIBUTE_TYPES = [STRING_SET, NUMBER_SET, BINARY_SET]

# Constants needed for creating indexes
LOCAL_SECONDARY_INDEXES = 'LocalSecondaryIndexes'
GLOBAL_SECONDARY_INDEXES = 'GlobalSecondaryIndexes'
PROJECTION = 'Projection'
PROJECTION_TYPE = 'ProjectionType'
NON_KEY_ATTRIBUTES = 'NonKeyAttributes'
KEYS_ONLY = 'KEYS_ONLY'
ALL = 'ALL'
INCLUDE = 'INCLUDE'

# Constants for updating a table's TTL
UPDATE_TIME_TO_LIVE = 'UpdateTimeToLive'
TIME_TO_LIVE_SPECIFICATION = 'TimeToLiveSpecification'
ENABLED = 'Enabled'

EXCLUSIVE_START_KEY = 'ExclusiveStartKey'
LAST_EVALUATED_KEY = 'LastEvaluatedKey'

# Select values for Query and Scan
# See: http://docs.aws.amazon.com/amazondynamodb/latest/APIReference/API_Query.html#DDB-Query-request-Select
ALL_ATTRIBUTES = 'ALL_ATTRIBUTES'
ALL_PROJECTED_ATTRIBUTES = 'ALL_PROJECTED_ATTRIBUTES'
SPECIFIC_ATTRIBUTES = 'SPECIFIC_ATTRIBUTES'
COUNT = 'COUNT'
SELECT_VALUES = [ALL_ATTRIBUTES, ALL_PROJECTED_ATTRIBUTES, SPECIFIC_ATTRIBUTES, COUNT]

# ReturnConsumedCapacity values
CONSUMED_CAPACITY = 'ConsumedCapacity'
CAPACITY_UNITS = 'CapacityUnits'
TOTAL = 'TOTAL'

# ReturnValues values
ALL_NEW = 'ALL_NEW'

# Service limits
BATCH_GET_PAGE_LIMIT = 100
BATCH_WRITE_PAGE_LIMIT = 25

# Condition operators accepted in condition maps
EQ = 'eq'
NE = 'ne'
GT = 'gt'
LT = 'lt'
GTE = 'gte'
LTE = 'lte'
BETWEEN = 'between'
BEGINS_WITH = 'begins_with'
IN = 'in'
CONTAINS = 'contains'
NOT_CONTAINS = 'not_contains'
IS_NULL = 'null'
NOT_NULL = 'not_null'

CONDITION_OPERATORS = [
    EQ, NE, GT, LT, GTE, LTE, BETWEEN, BEGINS_WITH, IN, CONTAINS, NOT_CONTAINS, IS_NULL, NOT_NULL,
]

# Operators usable on a range key inside a key condition expression
RANGE_KEY_OPERATORS = [EQ, GT, LT, GTE, LTE, BETWEEN, BEGINS_WITH]

# Query options expressing a range key condition
RANGE_OPTIONS = {
    'range_greater_than': GT,
    'range_less_than': LT,
    'range_gte': GTE,
    'range_lte': LTE,
    'range_begins_with': BEGINS_WITH,
    'range_between': BETWEEN,
    'range_eq': EQ,
}

# Error codes
CONDITIONAL_CHECK_FAILED = 'ConditionalCheckFailedException'
RESOURCE_IN_USE = 'ResourceInUseException'
RESOURCE_NOT_FOUND = 'ResourceNotFoundException'

META_CLASS_NAME = "Meta"
REGION = "region"
HOST = "host"
