"""
Analog Board: a personal task board with Today, Next and Someday lists.

The board state machine lives in `board.BoardController`; `storage` holds the
persistence gateways and `main` exposes the controller over HTTP.
"""

from .board import TODAY_LIMIT, BoardController, sample_state
from .models import BoardState, Card, ListKind, Task, TaskSignal
from .storage import BoardStorage, InMemoryStorage, JsonFileStorage, get_storage

__version__ = "0.1.0"

__all__ = [
    "TODAY_LIMIT",
    "BoardController",
    "BoardState",
    "BoardStorage",
    "Card",
    "InMemoryStorage",
    "JsonFileStorage",
    "ListKind",
    "Task",
    "TaskSignal",
    "get_storage",
    "sample_state",
]
