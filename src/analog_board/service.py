from __future__ import annotations

from functools import lru_cache
from threading import RLock

from .board import BoardController
from .storage import get_storage

# One board per process; every request holds this lock for the whole operation.
board_lock = RLock()


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_board() -> BoardController:
    """
    Return the process-wide board controller, built from the configured storage
    on first use.
    """
    return BoardController(storage=get_storage())
