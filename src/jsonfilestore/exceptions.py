from __future__ import annotations

from pathlib import Path
from typing import Any


class JsonFileStoreError(Exception):
    """Base exception for jsonfilestore errors."""


class ValidationError(JsonFileStoreError, ValueError):
    """Raised when input does not satisfy the store's schema."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class StorageError(JsonFileStoreError):
    """Raised when the backing file cannot be read or written."""

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(message)
        self.path = path


class ReadError(StorageError):
    """Raised when the backing file exists but cannot be read or decoded."""


class WriteError(StorageError):
    """Raised when the backing file cannot be written."""


class DuplicateIdError(JsonFileStoreError):
    """Raised when a generated identifier is already taken."""
