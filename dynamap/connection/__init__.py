"""
Dynamap connection classes
"""
from dynamap.connection.base import Connection
from dynamap.connection.table import IndexDescriptor, TableCache, TableDescriptor

__all__ = [
    "Connection",
    "IndexDescriptor",
    "TableCache",
    "TableDescriptor",
]
