from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator

from .models import BoardModel, Card, ListKind, TaskSignal


# PUBLIC_INTERFACE
class TaskCreate(BoardModel):
    """
    Schema for adding a task to a list.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "text": "Block 90 mins focus session",
                "assignee": None,
                "note": "Mornings work best",
            }
        }
    )

    text: str = Field(..., description="Task text; surrounding whitespace is trimmed", max_length=500)
    assignee: Optional[str] = Field(default=None, description="Optional person the task is delegated to")
    note: Optional[str] = Field(default=None, description="Optional free-form note")

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """
        Strip whitespace and reject empty text.
        """
        s = v.strip()
        if not s:
            raise ValueError("text must not be empty")
        return s


# PUBLIC_INTERFACE
class DotsUpdate(BoardModel):
    """Schema for setting a card's dot rating; values outside 0..3 are clamped."""

    value: int = Field(..., description="Dot rating, clamped into 0..3")


# PUBLIC_INTERFACE
class SignalUpdate(BoardModel):
    """Schema for assigning a task signal directly."""

    signal: TaskSignal = Field(..., description="New signal, any value including canceled")


# PUBLIC_INTERFACE
class TaskMove(BoardModel):
    """Schema for moving a task to another list."""

    destination: ListKind = Field(..., description="List the task is appended to")


# PUBLIC_INTERFACE
class CloseToday(BoardModel):
    """Schema for the daily rollover."""

    move_incomplete_to_next: bool = Field(
        default=True, description="Carry unfinished tasks over to Next as in progress"
    )


# PUBLIC_INTERFACE
class TabSelect(BoardModel):
    """Schema for changing the selected list."""

    tab: ListKind = Field(..., description="List to select")


# PUBLIC_INTERFACE
class BoardOut(BoardModel):
    """
    Schema returned for the whole board.
    """

    active_cards: Dict[ListKind, Card] = Field(..., description="Active card per list")
    archive: List[Card] = Field(..., description="Archived Today cards, newest first")
    selected_tab: ListKind = Field(..., description="Currently selected list")
    today_limit: int = Field(..., description="Maximum number of tasks on Today")
    today_capacity_text: str = Field(..., description="Human readable Today usage, e.g. '3/10 slots used'")


# PUBLIC_INTERFACE
class ArchivePage(BoardModel):
    """
    Envelope for paginated archive responses.
    """

    items: List[Card] = Field(..., description="Archived cards, newest first")
    total: int = Field(..., description="Total number of archived cards")
    limit: int = Field(..., description="Limit applied to the query")
    offset: int = Field(..., description="Offset applied to the query")
