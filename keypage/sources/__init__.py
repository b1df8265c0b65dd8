from .dynamo import DynamoRowSource
from .memory import AsyncInMemoryRowSource, InMemoryRowSource

__all__ = [
    "AsyncInMemoryRowSource",
    "DynamoRowSource",
    "InMemoryRowSource",
]
