from __future__ import annotations

import logging
import os
import stat
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import orjson

from .exceptions import ReadError, WriteError

logger = logging.getLogger(__name__)

# Read once; os.umask can only be queried by setting it.
_UMASK = os.umask(0)
os.umask(_UMASK)


class FileHandler(ABC):
    """Abstract interface for translating between a file and a list of records."""

    @abstractmethod
    def read(self, path: Path) -> list[dict[str, Any]]:
        """Read the file and return its records; a missing file is empty."""

    @abstractmethod
    def write(self, path: Path, records: Sequence[Mapping[str, Any]]) -> None:
        """Replace the file's content with ``records``."""


class JsonArrayHandler(FileHandler):
    """Store a collection as one pretty-printed JSON array.

    Writes go to a temporary sibling file that is then renamed over the
    target, so the target always holds either the previous or the new array.
    """

    def read(self, path: Path) -> list[dict[str, Any]]:
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise ReadError(f"Cannot read {path}: {exc}", path) from exc

        if not raw.strip():
            return []
        try:
            payload = orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise ReadError(f"File {path} is not valid JSON: {exc}", path) from exc

        if not isinstance(payload, list):
            raise ReadError(f"File {path} does not contain a JSON array", path)
        for position, item in enumerate(payload):
            if not isinstance(item, dict):
                raise ReadError(f"Entry {position} in {path} is not a JSON object", path)
        return payload

    def write(self, path: Path, records: Sequence[Mapping[str, Any]]) -> None:
        try:
            data = orjson.dumps(list(records), option=orjson.OPT_INDENT_2)
        except orjson.JSONEncodeError as exc:
            raise WriteError(f"Cannot serialize records for {path}: {exc}", path) from exc

        tmp_name: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.write(b"\n")
                fh.flush()
                os.fsync(fh.fileno())
            os.chmod(tmp_name, _target_mode(path))
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as exc:
            raise WriteError(f"Cannot write {path}: {exc}", path) from exc
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
        logger.debug("wrote %d record(s) to %s", len(records), path)


def _target_mode(path: Path) -> int:
    # mkstemp creates 0600 files; keep the existing mode or honor the umask.
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        return 0o666 & ~_UMASK
