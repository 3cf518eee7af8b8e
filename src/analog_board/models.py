from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


# PUBLIC_INTERFACE
class TaskSignal(str, Enum):
    """
    Progress status of a task.

    The values form a cycle used by "toggle": empty -> inProgress -> delegated
    -> done -> empty. `canceled` is only reachable by direct assignment and
    always cycles back to `empty`.
    """

    EMPTY = "empty"
    IN_PROGRESS = "inProgress"
    DELEGATED = "delegated"
    DONE = "done"
    CANCELED = "canceled"

    def next(self) -> "TaskSignal":
        """Return the successor of this signal in the toggle cycle."""
        return _SIGNAL_SUCCESSORS[self]

    @property
    def icon(self) -> str:
        return _SIGNAL_DISPLAY[self][0]

    @property
    def color(self) -> str:
        return _SIGNAL_DISPLAY[self][1]

    @property
    def label(self) -> str:
        return _SIGNAL_DISPLAY[self][2]


_SIGNAL_SUCCESSORS: Dict[TaskSignal, TaskSignal] = {
    TaskSignal.EMPTY: TaskSignal.IN_PROGRESS,
    TaskSignal.IN_PROGRESS: TaskSignal.DELEGATED,
    TaskSignal.DELEGATED: TaskSignal.DONE,
    TaskSignal.DONE: TaskSignal.EMPTY,
    TaskSignal.CANCELED: TaskSignal.EMPTY,
}

# (icon, color, label)
_SIGNAL_DISPLAY = {
    TaskSignal.EMPTY: ("circle", "secondary", "Unmarked"),
    TaskSignal.IN_PROGRESS: ("circle.dotted", "yellow", "In progress"),
    TaskSignal.DELEGATED: ("arrowshape.turn.up.right", "blue", "Delegated"),
    TaskSignal.DONE: ("checkmark.circle.fill", "green", "Completed"),
    TaskSignal.CANCELED: ("xmark.circle", "red", "Canceled"),
}


# PUBLIC_INTERFACE
class ListKind(str, Enum):
    """The three fixed lists of the board."""

    TODAY = "today"
    NEXT = "next"
    SOMEDAY = "someday"

    @property
    def display_title(self) -> str:
        return _LIST_DISPLAY[self][0]

    @property
    def subtitle(self) -> str:
        return _LIST_DISPLAY[self][1]

    @property
    def accent(self) -> str:
        return _LIST_DISPLAY[self][2]


# (title, subtitle, accent)
_LIST_DISPLAY = {
    ListKind.TODAY: ("Today", "Up to 10 tasks to focus on now", "orange"),
    ListKind.NEXT: ("Next", "Queue for what comes soon", "blue"),
    ListKind.SOMEDAY: ("Someday", "Ideas and long bets", "purple"),
}


class BoardModel(BaseModel):
    """
    Base for every board model.

    Attributes are snake_case in Python and camelCase in the persisted snapshot
    and on the wire; both spellings are accepted on input. Assignments are
    validated so that field constraints (e.g. dot clamping) hold after in-place
    edits too.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )


# PUBLIC_INTERFACE
class Task(BoardModel):
    """
    A single task on a card.

    Fields:
    - id: Immutable unique identifier, preserved across moves
    - text: Non-empty, trimmed text
    - signal: Current progress status (default: empty)
    - assignee: Optional person the task is delegated to
    - note: Optional free-form note
    - created_at: Creation timestamp
    """

    id: UUID = Field(default_factory=uuid4, frozen=True)
    text: str
    signal: TaskSignal = TaskSignal.EMPTY
    assignee: Optional[str] = None
    note: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """
        Strip whitespace and reject empty text.
        """
        s = v.strip()
        if not s:
            raise ValueError("task text must not be empty")
        return s


# PUBLIC_INTERFACE
class Card(BoardModel):
    """
    A named container of tasks for one list.

    Exactly one active card exists per ListKind. When a day is closed the Today
    card is flagged as archived and moved into the archive, after which it is
    never changed again.
    """

    id: UUID = Field(default_factory=uuid4, frozen=True)
    list_kind: ListKind
    title: str
    subtitle: str = ""
    date: datetime = Field(default_factory=datetime.now)
    dots: int = 0
    tasks: List[Task] = Field(default_factory=list)
    is_archived: bool = False

    @field_validator("dots", mode="before")
    @classmethod
    def clamp_dots(cls, v: object) -> int:
        """Clamp the dot rating into [0, 3]. Anything but a finite number is rejected."""
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("dots must be a number")
        if isinstance(v, float) and not math.isfinite(v):
            raise ValueError("dots must be finite")
        return max(0, min(int(v), 3))

    @classmethod
    def default_for(cls, list_kind: ListKind) -> "Card":
        """Return an empty active card titled after its list."""
        return cls(list_kind=list_kind, title=list_kind.display_title, subtitle=list_kind.subtitle)


# PUBLIC_INTERFACE
class BoardState(BoardModel):
    """
    Snapshot of the whole board, as persisted.

    `active_cards` may be partial in a stored snapshot; the board controller
    synthesizes default cards for missing lists. `archive` is ordered newest
    first.
    """

    active_cards: Dict[ListKind, Card] = Field(default_factory=dict)
    archive: List[Card] = Field(default_factory=list)
    selected_tab: ListKind = ListKind.TODAY

    @model_validator(mode="after")
    def check_card_keys(self) -> "BoardState":
        """Each active card must be stored under its own list."""
        for list_kind, card in self.active_cards.items():
            if card.list_kind != list_kind:
                raise ValueError(
                    f"active card for {list_kind.value!r} belongs to {card.list_kind.value!r}"
                )
        return self
