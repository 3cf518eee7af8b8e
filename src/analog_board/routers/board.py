from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..auth import board_owner_guard
from ..board import BoardController
from ..models import Card, ListKind, Task
from ..schemas import (
    ArchivePage,
    BoardOut,
    CloseToday,
    DotsUpdate,
    SignalUpdate,
    TabSelect,
    TaskCreate,
    TaskMove,
)
from ..service import board_lock, get_board
from ..utils import pagination_envelope

router = APIRouter(
    prefix="/api/v1/board",
    tags=["board"],
    dependencies=[Depends(board_owner_guard())],
)

TASK_NOT_FOUND = "Task not found"
TODAY_FULL = "Today is full"


def _get_board(board: BoardController = Depends(get_board)) -> BoardController:
    """
    Dependency wrapper for the board controller to keep signatures clean.
    """
    return board


def _board_out(board: BoardController) -> BoardOut:
    snap = board.snapshot()
    return BoardOut(
        active_cards=snap.active_cards,
        archive=snap.archive,
        selected_tab=snap.selected_tab,
        today_limit=board.today_limit,
        today_capacity_text=board.today_capacity_text,
    )


def _task_or_404(board: BoardController, task_id: UUID, list_kind: ListKind) -> Task:
    task = board.find_task(task_id, list_kind)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TASK_NOT_FOUND)
    return task


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=BoardOut,
    summary="Get Board",
    description="Return the active cards, the archive, the selected list and Today's capacity.",
)
def get_full_board(board: BoardController = Depends(_get_board)) -> BoardOut:
    """
    Return the whole board.
    """
    with board_lock:
        return _board_out(board)


# PUBLIC_INTERFACE
@router.get(
    "/cards/{list_kind}",
    response_model=Card,
    summary="Get Card",
    description="Return the active card of a list.",
)
def get_card(list_kind: ListKind, board: BoardController = Depends(_get_board)) -> Card:
    with board_lock:
        return board.card(list_kind)


# PUBLIC_INTERFACE
@router.put(
    "/cards/{list_kind}/dots",
    response_model=Card,
    summary="Set Dots",
    description="Set the dot rating of a card. Values outside 0..3 are clamped.",
)
def set_dots(list_kind: ListKind, payload: DotsUpdate, board: BoardController = Depends(_get_board)) -> Card:
    with board_lock:
        board.set_dots(list_kind, payload.value)
        return board.card(list_kind)


# PUBLIC_INTERFACE
@router.post(
    "/cards/{list_kind}/tasks",
    response_model=Task,
    status_code=status.HTTP_201_CREATED,
    summary="Add Task",
    description="Append a task to the end of a list.",
    responses={
        201: {"description": "Task added"},
        409: {"description": "Today is full"},
    },
)
def add_task(list_kind: ListKind, payload: TaskCreate, board: BoardController = Depends(_get_board)) -> Task:
    """
    Add a task. Today accepts at most `today_limit` tasks.
    """
    with board_lock:
        if not board.add_task(payload.text, list_kind, assignee=payload.assignee, note=payload.note):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=TODAY_FULL)
        return board.card(list_kind).tasks[-1]


# PUBLIC_INTERFACE
@router.post(
    "/cards/{list_kind}/tasks/{task_id}/toggle",
    response_model=Task,
    summary="Cycle Signal",
    description="Advance the task's signal: empty, inProgress, delegated, done, then empty again.",
    responses={404: {"description": "Task not found"}},
)
def toggle_signal(list_kind: ListKind, task_id: UUID, board: BoardController = Depends(_get_board)) -> Task:
    with board_lock:
        if not board.toggle_signal(task_id, list_kind):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TASK_NOT_FOUND)
        return _task_or_404(board, task_id, list_kind)


# PUBLIC_INTERFACE
@router.put(
    "/cards/{list_kind}/tasks/{task_id}/signal",
    response_model=Task,
    summary="Set Signal",
    description="Assign a signal directly, including canceled.",
    responses={404: {"description": "Task not found"}},
)
def set_signal(
    list_kind: ListKind,
    task_id: UUID,
    payload: SignalUpdate,
    board: BoardController = Depends(_get_board),
) -> Task:
    with board_lock:
        if not board.set_signal(task_id, list_kind, payload.signal):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TASK_NOT_FOUND)
        return _task_or_404(board, task_id, list_kind)


# PUBLIC_INTERFACE
@router.post(
    "/cards/{list_kind}/tasks/{task_id}/move",
    response_model=Task,
    summary="Move Task",
    description=(
        "Move a task to the end of another list. The signal is reset to empty when the "
        "destination differs from the source."
    ),
    responses={
        404: {"description": "Task not found"},
        409: {"description": "Today is full"},
    },
)
def move_task(
    list_kind: ListKind,
    task_id: UUID,
    payload: TaskMove,
    board: BoardController = Depends(_get_board),
) -> Task:
    with board_lock:
        _task_or_404(board, task_id, list_kind)
        if not board.move_task(task_id, list_kind, payload.destination):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=TODAY_FULL)
        return board.card(payload.destination).tasks[-1]


# PUBLIC_INTERFACE
@router.delete(
    "/cards/{list_kind}/tasks/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove Task",
    responses={
        204: {"description": "Task removed"},
        404: {"description": "Task not found"},
    },
)
def remove_task(list_kind: ListKind, task_id: UUID, board: BoardController = Depends(_get_board)) -> None:
    with board_lock:
        if not board.remove_task(task_id, list_kind):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TASK_NOT_FOUND)
    return None


# PUBLIC_INTERFACE
@router.post(
    "/close-today",
    response_model=BoardOut,
    summary="Close Today",
    description=(
        "Archive the Today card and start a fresh one. Unfinished tasks are carried to Next "
        "as in progress unless moveIncompleteToNext is false."
    ),
)
def close_today(
    payload: Optional[CloseToday] = None,
    board: BoardController = Depends(_get_board),
) -> BoardOut:
    move_incomplete = payload.move_incomplete_to_next if payload is not None else True
    with board_lock:
        board.close_today(move_incomplete_to_next=move_incomplete)
        return _board_out(board)


# PUBLIC_INTERFACE
@router.put(
    "/selected-tab",
    response_model=BoardOut,
    summary="Select List",
)
def select_tab(payload: TabSelect, board: BoardController = Depends(_get_board)) -> BoardOut:
    with board_lock:
        board.select_tab(payload.tab)
        return _board_out(board)


# PUBLIC_INTERFACE
@router.get(
    "/archive",
    response_model=ArchivePage,
    summary="List Archive",
    description="Archived Today cards, newest first, with limit/offset pagination.",
)
def list_archive(
    limit: int = Query(5, ge=0, le=100, description="Maximum number of cards to return"),
    offset: int = Query(0, ge=0, description="Number of cards to skip"),
    board: BoardController = Depends(_get_board),
) -> ArchivePage:
    with board_lock:
        archive = board.archive
    envelope = pagination_envelope(
        items=archive[offset : offset + limit],
        total=len(archive),
        limit=limit,
        offset=offset,
    )
    return ArchivePage(**envelope)
