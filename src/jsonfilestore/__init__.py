"""
Schema-validated records stored in a single JSON file.

The public API centers around :class:`JsonFileStore`, which keeps every record
of a collection in one JSON array on disk, validates input with a Pydantic
model (or any :class:`~jsonfilestore.schema.Validator`), serializes writes
through a FIFO :class:`~jsonfilestore.lock.WriteLock` and answers queries with
an in-memory :class:`~jsonfilestore.query.QueryBuilder`.
"""

import logging

from .exceptions import (
    DuplicateIdError,
    JsonFileStoreError,
    ReadError,
    StorageError,
    ValidationError,
    WriteError,
)
from .handlers import FileHandler, JsonArrayHandler
from .lock import WriteLock
from .query import QueryBuilder
from .schema import PydanticValidator, Validator
from .store import JsonFileStore

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = (
    "DuplicateIdError",
    "FileHandler",
    "JsonArrayHandler",
    "JsonFileStore",
    "JsonFileStoreError",
    "PydanticValidator",
    "QueryBuilder",
    "ReadError",
    "StorageError",
    "ValidationError",
    "Validator",
    "WriteError",
    "WriteLock",
)
