from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from threading import RLock
from typing import Optional, Union

from pydantic import ValidationError

from .models import BoardState
from .settings import get_settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def encode_state(state: BoardState) -> str:
    """
    Serialize a board snapshot to its JSON document (camelCase keys).
    """
    return state.model_dump_json(by_alias=True, indent=2)


# PUBLIC_INTERFACE
def decode_state(raw: Union[str, bytes]) -> Optional[BoardState]:
    """
    Parse a JSON document into a board snapshot.

    Returns None when the document is not valid JSON or does not describe a
    valid board; the problem is logged, never raised.
    """
    try:
        return BoardState.model_validate_json(raw)
    except ValidationError as exc:
        logger.warning("Discarding malformed board snapshot (%d errors)", exc.error_count())
        return None


# PUBLIC_INTERFACE
class BoardStorage(ABC):
    """
    Persistence gateway contract for board snapshots.

    Implementations never raise from `load` or `save`: a missing or unreadable
    snapshot loads as None, and a failed save is logged and dropped so that a
    board mutation is never blocked or rolled back by a storage error.
    """

    @abstractmethod
    def load(self) -> Optional[BoardState]:
        """Return the last saved snapshot, or None if there is no usable one."""

    @abstractmethod
    def save(self, state: BoardState) -> None:
        """Persist the full snapshot, replacing the previous one atomically."""


class InMemoryStorage(BoardStorage):
    """
    Storage that keeps the encoded snapshot in memory.

    The snapshot is kept serialized so that later changes to the live board
    never leak into what `load` returns.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._document: Optional[str] = None

    def load(self) -> Optional[BoardState]:
        with self._lock:
            document = self._document
        if document is None:
            return None
        return decode_state(document)

    def save(self, state: BoardState) -> None:
        try:
            document = encode_state(state)
        except ValueError as exc:
            logger.error("Failed to encode board snapshot: %s", exc)
            return
        with self._lock:
            self._document = document


class JsonFileStorage(BoardStorage):
    """
    Storage writing the snapshot as a JSON file.

    Writes go to a temporary file in the target directory which then replaces
    the snapshot with `os.replace`, so readers see either the old or the new
    document, never a partial one.
    """

    def __init__(self, path: str) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def load(self) -> Optional[BoardState]:
        if not os.path.exists(self._path):
            return None
        try:
            with open(self._path, "rb") as f:
                raw = f.read()
        except OSError as exc:
            logger.warning("Could not read board snapshot %s: %s", self._path, exc)
            return None
        return decode_state(raw)

    def save(self, state: BoardState) -> None:
        try:
            document = encode_state(state)
            directory = os.path.dirname(os.path.abspath(self._path))
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".analog-board-", suffix=".tmp", dir=directory)
            try:
                try:
                    f = os.fdopen(fd, "w", encoding="utf-8")
                except BaseException:
                    os.close(fd)
                    raise
                with f:
                    f.write(document)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self._path)
            finally:
                # Only left behind when the replace did not happen
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(tmp_path)
        except (OSError, ValueError) as exc:
            logger.error("Failed to save board snapshot to %s: %s", self._path, exc)
            return
        logger.debug("Saved board snapshot to %s", self._path)


# PUBLIC_INTERFACE
def get_storage() -> BoardStorage:
    """
    Factory to return the configured storage based on settings.
    - memory: InMemoryStorage
    - json: JsonFileStorage at BOARD_DATA_DIR/BOARD_FILENAME (default)
    - sqlite: SQLiteStorage at SQLITE_DB_PATH
    """
    settings = get_settings()
    if settings.persistence_backend == "memory":
        return InMemoryStorage()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteStorage

        return SQLiteStorage(settings.sqlite_db_path)
    return JsonFileStorage(settings.board_file_path)
