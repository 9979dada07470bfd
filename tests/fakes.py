"""
In-memory stand-ins for DynamoDB responses and for the time module
"""
from botocore.client import ClientError

from .data import DESCRIBE_TABLE_DATA, SIMPLE_MODEL_TABLE_DATA


class MockTime():
    def __init__(self):
        self.current_time = 0.0
        self.sleeps = []

    def sleep(self, amount):
        self.sleeps.append(amount)
        self.current_time += amount

    def time(self):
        return self.current_time


def client_error(code, operation_name='Operation', message='Something failed'):
    return ClientError({'Error': {'Code': code, 'Message': message}}, operation_name)


class FakeDynamo():
    """
    Replaces ``Connection._make_api_call``.

    DescribeTable answers from the known table descriptions unless responses were queued for it.
    Queued responses are consumed in order; an exception is raised instead of returned.
    Every call but DescribeTable is recorded in ``calls``.
    """
    def __init__(self, *tables):
        tables = tables or (DESCRIBE_TABLE_DATA, SIMPLE_MODEL_TABLE_DATA)
        self.tables = {table['Table']['TableName']: table for table in tables}
        self.responses = {}
        self.calls = []

    def respond(self, operation_name, *responses):
        self.responses.setdefault(operation_name, []).extend(responses)
        return self

    def __call__(self, operation_name, operation_kwargs, *args):
        queued = self.responses.get(operation_name)
        if operation_name == 'DescribeTable' and not queued:
            table_name = operation_kwargs['TableName']
            if table_name not in self.tables:
                raise client_error('ResourceNotFoundException', operation_name)
            return self.tables[table_name]
        if operation_name != 'DescribeTable':
            self.calls.append((operation_name, operation_kwargs))
        response = queued.pop(0) if queued else {}
        if isinstance(response, Exception):
            raise response
        return response

    def requests(self, operation_name):
        return [kwargs for name, kwargs in self.calls if name == operation_name]
