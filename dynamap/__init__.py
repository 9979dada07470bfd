"""
dynamap: an object-document mapper for Amazon DynamoDB.

The adapter layer translates mapper style lookups, queries and transactions
into DynamoDB wire requests and hands plain Python values back to callers.
"""
__author__ = 'dynamap contributors'
__license__ = 'MIT'
__version__ = '1.0.0'
