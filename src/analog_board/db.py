from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Generator, Optional

from .models import BoardState
from .storage import BoardStorage, decode_state, encode_state

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Cols:
    table: str = "board_snapshot"
    id: str = "id"
    document: str = "document"
    saved_at: str = "saved_at"


_COLS = _Cols()

# The board is a single document; it always lives in this row.
_SNAPSHOT_ROW = 1


class SQLiteStorage(BoardStorage):
    """
    SQLite storage implementing the BoardStorage interface.

    The encoded snapshot is stored in a single row and replaced inside one
    transaction, so readers never observe a half-written board.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        try:
            os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
            self._init_db()
        except (OSError, sqlite3.Error) as exc:
            logger.error("Could not initialize board database %s: %s", db_path, exc)

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} INTEGER PRIMARY KEY CHECK ({_COLS.id} = {_SNAPSHOT_ROW}),
                    {_COLS.document} TEXT NOT NULL,
                    {_COLS.saved_at} TEXT NOT NULL
                )
                """
            )

    def load(self) -> Optional[BoardState]:
        try:
            with self._conn() as conn:
                row = conn.execute(
                    f"SELECT {_COLS.document} FROM {_COLS.table} WHERE {_COLS.id} = ?",
                    (_SNAPSHOT_ROW,),
                ).fetchone()
        except sqlite3.Error as exc:
            logger.warning("Could not read board snapshot from %s: %s", self._db_path, exc)
            return None
        if row is None:
            return None
        return decode_state(row[0])

    def save(self, state: BoardState) -> None:
        try:
            document = encode_state(state)
            with self._conn() as conn:
                conn.execute(
                    f"""
                    INSERT OR REPLACE INTO {_COLS.table} ({_COLS.id}, {_COLS.document}, {_COLS.saved_at})
                    VALUES (?, ?, ?)
                    """,
                    (_SNAPSHOT_ROW, document, datetime.now().isoformat()),
                )
        except (sqlite3.Error, ValueError) as exc:
            logger.error("Failed to save board snapshot to %s: %s", self._db_path, exc)
