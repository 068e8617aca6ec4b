from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable, List, Optional
from uuid import uuid4

from pydantic import BaseModel

from .exceptions import DuplicateIdError
from .handlers import FileHandler, JsonArrayHandler
from .lock import WriteLock
from .query import Predicate, QueryBuilder, Record
from .schema import Validator, as_validator

logger = logging.getLogger(__name__)

DEFAULT_DIRECTORY = "./data"
DEFAULT_ID_FIELD = "id"


def _new_id() -> str:
    return str(uuid4())


class JsonFileStore:
    """Schema-validated records kept in a single JSON array file.

    Parameters
    ----------
    schema:
        Pydantic model class describing one record, or any
        :class:`~jsonfilestore.schema.Validator`.
    filename:
        Name of the JSON file inside ``directory``.
    directory:
        Directory holding the file. Created on the first write.
    id_field:
        Key under which each record's identifier is stored.
    id_factory:
        Zero-argument callable producing new unique identifiers
        (``uuid4`` strings by default).
    lock:
        :class:`~jsonfilestore.lock.WriteLock` serializing file writes.
        Each store gets its own unless one is passed in.
    handler:
        :class:`~jsonfilestore.handlers.FileHandler` used for disk access.

    Every operation reads the file again, so results always reflect the last
    completed write. Only the final write of a mutation holds the lock: two
    overlapping ``update`` calls may both start from the same snapshot and the
    later write wins. Disk access runs in a worker thread via
    :func:`asyncio.to_thread`.
    """

    def __init__(
        self,
        schema: type[BaseModel] | Validator,
        filename: str,
        directory: Path | str = DEFAULT_DIRECTORY,
        *,
        id_field: str = DEFAULT_ID_FIELD,
        id_factory: Callable[[], str] | None = None,
        lock: WriteLock | None = None,
        handler: FileHandler | None = None,
    ) -> None:
        self._validator = as_validator(schema)
        self._path = Path(directory).expanduser() / filename
        self.id_field = id_field
        self._id_factory = id_factory or _new_id
        self._lock = lock if lock is not None else WriteLock()
        self._handler = handler if handler is not None else JsonArrayHandler()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def validator(self) -> Validator:
        return self._validator

    @property
    def lock(self) -> WriteLock:
        return self._lock

    # Reads -------------------------------------------------------------
    async def get_all(self) -> List[Record]:
        return await self._read()

    async def get_by_id(self, record_id: str) -> Optional[Record]:
        for item in await self._read():
            if item.get(self.id_field) == record_id:
                return item
        return None

    async def find(self, predicate: Predicate) -> List[Record]:
        return [item for item in await self._read() if predicate(item)]

    async def first(self, predicate: Predicate) -> Optional[Record]:
        for item in await self._read():
            if predicate(item):
                return item
        return None

    async def count(self, predicate: Predicate | None = None) -> int:
        items = await self._read()
        if predicate is None:
            return len(items)
        return sum(1 for item in items if predicate(item))

    async def exists(self, record_id: str) -> bool:
        return await self.get_by_id(record_id) is not None

    async def query(self) -> QueryBuilder:
        return QueryBuilder(await self._read())

    # Mutations ---------------------------------------------------------
    async def create(self, data: Any) -> Record:
        """Validate ``data`` and append it under a freshly generated id."""
        if isinstance(data, Mapping) and self.id_field in data:
            data = {key: value for key, value in data.items() if key != self.id_field}
        parsed = self._validator.parse(data)
        items = await self._read()

        record_id = self._id_factory()
        if any(item.get(self.id_field) == record_id for item in items):
            raise DuplicateIdError(f"Identifier {record_id!r} already exists in {self._path}")
        record = {**parsed, self.id_field: record_id}
        items.append(record)
        await self._write(items)
        logger.debug("created record %s in %s", record_id, self._path)
        return record

    async def update(self, record_id: str, changes: Mapping[str, Any]) -> Optional[Record]:
        """Merge ``changes`` into the stored record and re-validate it.

        Returns ``None`` when no record has ``record_id``. The identifier
        itself cannot be changed.
        """
        items = await self._read()
        index = self._index_of(items, record_id)
        if index is None:
            return None

        current = items[index]
        merged = {
            key: value
            for key, value in {**current, **changes}.items()
            if key != self.id_field
        }
        parsed = self._validator.parse_partial(merged)
        record = {**current, **parsed, self.id_field: current[self.id_field]}
        items[index] = record
        await self._write(items)
        logger.debug("updated record %s in %s", record_id, self._path)
        return record

    async def delete(self, record_id: str) -> bool:
        items = await self._read()
        remaining = [item for item in items if item.get(self.id_field) != record_id]
        if len(remaining) == len(items):
            return False
        await self._write(remaining)
        logger.debug("deleted record %s from %s", record_id, self._path)
        return True

    # Internal helpers --------------------------------------------------
    def _index_of(self, items: List[Record], record_id: str) -> Optional[int]:
        for index, item in enumerate(items):
            if item.get(self.id_field) == record_id:
                return index
        return None

    async def _read(self) -> List[Record]:
        return await asyncio.to_thread(self._handler.read, self._path)

    async def _write(self, items: List[Record]) -> None:
        async with self._lock:
            # The worker thread cannot be interrupted; hold the lock until it
            # finishes even if the caller is cancelled.
            write = asyncio.ensure_future(
                asyncio.to_thread(self._handler.write, self._path, items)
            )
            try:
                await asyncio.shield(write)
            finally:
                if not write.done():
                    await asyncio.wait({write})

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._validator!r}, path={str(self._path)!r})"
