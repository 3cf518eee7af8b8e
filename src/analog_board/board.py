"""
Board controller: the stateful engine behind the three lists.

It owns one active card per list plus the archive of closed Today cards,
enforces the Today capacity limit and routes every applied mutation through
`_commit`, which saves a full snapshot and notifies subscribers. Failed intents
(empty text, full Today, unknown task) return False and change nothing.

The controller is not thread-safe; callers sharing one instance across threads
must serialize access themselves.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Mapping, Optional, Sequence
from uuid import UUID

from .models import BoardState, Card, ListKind, Task, TaskSignal
from .storage import BoardStorage, InMemoryStorage

logger = logging.getLogger(__name__)

TODAY_LIMIT = 10
RECENT_ARCHIVE_LIMIT = 5

Listener = Callable[[BoardState], None]


def _index_of(tasks: Sequence[Task], task_id: UUID) -> Optional[int]:
    for i, task in enumerate(tasks):
        if task.id == task_id:
            return i
    return None


# PUBLIC_INTERFACE
class BoardController:
    """
    In-memory board with write-through persistence.

    Args:
        storage: Persistence gateway. Defaults to an InMemoryStorage.
        active_cards: Explicit initial cards; when given (together with
            `archive`) storage is not consulted at startup.
        archive: Explicit initial archive, newest first.

    Without explicit cards the last saved snapshot is loaded; if there is none
    the board starts from `sample_state()`.
    """

    def __init__(
        self,
        storage: Optional[BoardStorage] = None,
        active_cards: Optional[Mapping[ListKind, Card]] = None,
        archive: Optional[Sequence[Card]] = None,
    ) -> None:
        self._storage = storage if storage is not None else InMemoryStorage()
        self._listeners: List[Listener] = []

        if active_cards is not None:
            state = BoardState(active_cards=dict(active_cards), archive=list(archive or []))
        else:
            loaded = self._storage.load()
            if loaded is None:
                logger.info("No saved board found, starting from sample data")
                state = sample_state()
            else:
                state = loaded
        for list_kind in ListKind:
            if list_kind not in state.active_cards:
                state.active_cards[list_kind] = Card.default_for(list_kind)
        self._state = state

    # -------------------- reads --------------------
    def card(self, list_kind: ListKind) -> Card:
        """
        Return a copy of the active card for a list.

        A default empty card is synthesized if the list has none. Nothing is
        stored or saved.
        """
        return self._card(list_kind).model_copy(deep=True)

    def find_task(self, task_id: UUID, list_kind: ListKind) -> Optional[Task]:
        """Return a copy of the task with this id on the list's card, or None."""
        tasks = self._card(list_kind).tasks
        index = _index_of(tasks, task_id)
        return None if index is None else tasks[index].model_copy()

    @property
    def selected_tab(self) -> ListKind:
        return self._state.selected_tab

    @property
    def archive(self) -> List[Card]:
        """Copies of all archived cards, newest first."""
        return [c.model_copy(deep=True) for c in self._state.archive]

    def recent_archive(self, limit: int = RECENT_ARCHIVE_LIMIT) -> List[Card]:
        """Copies of the `limit` most recently archived cards."""
        return [c.model_copy(deep=True) for c in self._state.archive[: max(limit, 0)]]

    @property
    def today_limit(self) -> int:
        return TODAY_LIMIT

    @property
    def today_capacity_text(self) -> str:
        count = len(self._card(ListKind.TODAY).tasks)
        return f"{count}/{TODAY_LIMIT} slots used"

    def snapshot(self) -> BoardState:
        """Return a deep copy of the whole board state."""
        return self._state.model_copy(deep=True)

    # -------------------- subscriptions --------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback receiving a snapshot after every committed change.

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------- mutations --------------------
    def set_dots(self, list_kind: ListKind, value: int) -> None:
        """Set the card's dot rating, clamped into [0, 3]."""
        card = self._card(list_kind)
        card.dots = value
        self._commit(card)

    def add_task(
        self,
        text: str,
        list_kind: ListKind,
        assignee: Optional[str] = None,
        note: Optional[str] = None,
    ) -> bool:
        """
        Append a new task to the end of a list.

        Returns False (and changes nothing) when the trimmed text is empty or
        when Today already holds TODAY_LIMIT tasks.
        """
        trimmed = text.strip()
        if not trimmed:
            return False
        card = self._card(list_kind)
        if list_kind is ListKind.TODAY and len(card.tasks) >= TODAY_LIMIT:
            logger.debug("Rejected task for full Today card")
            return False
        card.tasks.append(Task(text=trimmed, assignee=assignee, note=note))
        self._commit(card)
        return True

    def toggle_signal(self, task_id: UUID, list_kind: ListKind) -> bool:
        """Advance a task's signal to its successor. False if the task is absent."""
        return self._update_task(task_id, list_kind, lambda t: setattr(t, "signal", t.signal.next()))

    def set_signal(self, task_id: UUID, list_kind: ListKind, signal: TaskSignal) -> bool:
        """Assign any signal directly, `canceled` included. False if the task is absent."""
        return self._update_task(task_id, list_kind, lambda t: setattr(t, "signal", signal))

    def move_task(self, task_id: UUID, source: ListKind, destination: ListKind) -> bool:
        """
        Move a task to the end of another list.

        Fails when the destination is Today and already full (the moving task
        is not discounted), or when the task is not on the source card. A task
        landing on a different list has its signal reset to empty; moving
        within one list only sends it to the end.
        """
        if destination is ListKind.TODAY and len(self._card(destination).tasks) >= TODAY_LIMIT:
            return False
        source_card = self._card(source)
        index = _index_of(source_card.tasks, task_id)
        if index is None:
            return False

        task = source_card.tasks.pop(index)
        if destination is not source:
            task.signal = TaskSignal.EMPTY
        destination_card = self._card(destination)
        destination_card.tasks.append(task)
        self._commit(destination_card)
        return True

    def remove_task(self, task_id: UUID, list_kind: ListKind) -> bool:
        """Delete the first task with this id from a list. False if absent."""
        card = self._card(list_kind)
        index = _index_of(card.tasks, task_id)
        if index is None:
            return False
        del card.tasks[index]
        self._commit(card)
        return True

    def close_today(self, move_incomplete_to_next: bool = True) -> None:
        """
        Archive the Today card and start a fresh one.

        The archived card keeps its date and tasks untouched. With
        `move_incomplete_to_next`, copies of every task not marked done are
        appended to Next with their signal set to inProgress.
        """
        closed = self._card(ListKind.TODAY)
        closed.is_archived = True
        self._state.archive.insert(0, closed)

        next_card = self._card(ListKind.NEXT)
        if move_incomplete_to_next:
            for task in closed.tasks:
                if task.signal is not TaskSignal.DONE:
                    next_card.tasks.append(task.model_copy(update={"signal": TaskSignal.IN_PROGRESS}))

        self._state.active_cards[ListKind.TODAY] = Card(
            list_kind=ListKind.TODAY,
            title=closed.title,
            subtitle=closed.subtitle,
        )
        logger.info("Closed Today card with %d tasks", len(closed.tasks))
        self._commit(next_card)

    def select_tab(self, list_kind: ListKind) -> None:
        """Remember the selected list; it is part of the saved snapshot."""
        self._state.selected_tab = list_kind
        self._commit()

    def persist(self) -> None:
        """Save the current state through the storage gateway."""
        self._storage.save(self._state)

    # -------------------- internals --------------------
    def _card(self, list_kind: ListKind) -> Card:
        existing = self._state.active_cards.get(list_kind)
        return existing if existing is not None else Card.default_for(list_kind)

    def _update_task(self, task_id: UUID, list_kind: ListKind, transform: Callable[[Task], None]) -> bool:
        card = self._state.active_cards.get(list_kind)
        if card is None:
            return False
        index = _index_of(card.tasks, task_id)
        if index is None:
            return False
        transform(card.tasks[index])
        self._commit(card)
        return True

    def _commit(self, card: Optional[Card] = None) -> None:
        if card is not None:
            self._state.active_cards[card.list_kind] = card
        self.persist()
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Board listener %r failed", listener)


# PUBLIC_INTERFACE
def sample_state(now: Optional[datetime] = None) -> BoardState:
    """
    Return the board shown on first launch.
    """
    now = now or datetime.now()
    active: Dict[ListKind, Card] = {
        ListKind.TODAY: Card(
            list_kind=ListKind.TODAY,
            title="Today",
            subtitle="Ship 1-3 things that matter",
            date=now,
            dots=2,
            tasks=[
                Task(text="Draft Analog app structure", signal=TaskSignal.IN_PROGRESS),
                Task(text="Pull 3 tasks from Next", signal=TaskSignal.DELEGATED),
                Task(text="Block 90 mins focus session"),
            ],
        ),
        ListKind.NEXT: Card(
            list_kind=ListKind.NEXT,
            title="Next",
            subtitle="Important but not forced into today",
            date=now,
            tasks=[
                Task(text="Sketch UI for Focus mode"),
                Task(text="Define sync model with iCloud Drive"),
                Task(text="Prep export to PDF/Markdown", signal=TaskSignal.IN_PROGRESS),
                Task(text="Research haptics/animation cues", signal=TaskSignal.DELEGATED),
            ],
        ),
        ListKind.SOMEDAY: Card(
            list_kind=ListKind.SOMEDAY,
            title="Someday",
            subtitle="Ideas and long bets",
            date=now,
            tasks=[
                Task(text="Add hand-drawn texture pack"),
                Task(text="Explore Apple Pencil OCR for tasks"),
                Task(text="Try linked cards for projects"),
            ],
        ),
    }
    yesterday = Card(
        list_kind=ListKind.TODAY,
        title="Today",
        subtitle="Yesterday",
        date=now - timedelta(days=1),
        dots=3,
        tasks=[
            Task(text="Storyboard onboarding", signal=TaskSignal.DONE),
            Task(text="Write prompt for Cursor", signal=TaskSignal.DONE),
            Task(text="Refine card divider concept", signal=TaskSignal.DONE),
        ],
        is_archived=True,
    )
    return BoardState(active_cards=active, archive=[yesterday])
