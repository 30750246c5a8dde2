"""
Storage backends for the ``Table`` contract.

- InMemoryTable: locked dictionary, used by the local runtime
- DynamoDbTable: boto3 Table resource, used on Lambda
"""

from cloudapp.storage.dynamodb import DynamoDbTable, create_dynamodb_resource
from cloudapp.storage.keys import (
    EntityKeys,
    default_table_name,
    resolve_table_name,
    table_env_var,
)
from cloudapp.storage.memory import InMemoryTable

__all__ = [
    "DynamoDbTable",
    "EntityKeys",
    "InMemoryTable",
    "create_dynamodb_resource",
    "default_table_name",
    "resolve_table_name",
    "table_env_var",
]
