"""
Scheduled Event Collection

Ordered membership of schedules plus event relaying.

The collection subscribes to each member's "raised" and "changed" signals
when the member is inserted and unsubscribes when it is removed, so the
owner only ever listens to the collection.
"""

from typing import Iterable, Iterator, Optional
from uuid import UUID

from finsched.scheduling.event import ScheduledEvent, ScheduleValidationError
from finsched.scheduling.signals import Signal


class ScheduledEventCollection:
    """
    Ordered collection of ScheduledEvent with unique ids.

    Signals:
        raised(occurrence_date, event): relayed from any member
        item_added(event)
        item_updated(event): relayed from a member's "changed" signal
        item_removed(event)
    """

    def __init__(self, items: Optional[Iterable[ScheduledEvent]] = None):
        self.raised = Signal("raised")
        self.item_added = Signal("item_added")
        self.item_updated = Signal("item_updated")
        self.item_removed = Signal("item_removed")
        self._items: list[ScheduledEvent] = []

        for item in items or ():
            self.add(item)

    # -------------------------------------------------------------------------
    # Relaying
    # -------------------------------------------------------------------------

    def _relay_raised(self, occurrence_date, event: ScheduledEvent) -> None:
        self.raised.emit(occurrence_date, event)

    def _relay_changed(self, event: ScheduledEvent, field: str) -> None:
        self.item_updated.emit(event)

    def _subscribe(self, item: ScheduledEvent) -> None:
        item.raised.connect(self._relay_raised)
        item.changed.connect(self._relay_changed)

    def _unsubscribe(self, item: ScheduledEvent) -> None:
        item.raised.disconnect(self._relay_raised)
        item.changed.disconnect(self._relay_changed)

    def _position(self, event_id: UUID) -> int:
        for position, item in enumerate(self._items):
            if item.id == event_id:
                return position
        return -1

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    def add(self, item: ScheduledEvent) -> None:
        """Append ``item`` unless a schedule with the same id is present."""
        if self._position(item.id) != -1:
            return
        self._subscribe(item)
        self._items.append(item)
        self.item_added.emit(item)

    def insert(self, index: int, item: ScheduledEvent) -> None:
        """Insert ``item`` at ``index`` unless its id is present."""
        if self._position(item.id) != -1:
            return
        self._subscribe(item)
        self._items.insert(index, item)
        self.item_added.emit(item)

    def remove_at(self, index: int) -> Optional[ScheduledEvent]:
        """
        Remove the schedule at ``index``.

        Returns:
            The removed schedule, or None if the index is out of range
        """
        if not 0 <= index < len(self._items):
            return None
        item = self._items[index]
        self._unsubscribe(item)
        del self._items[index]
        self.item_removed.emit(item)
        return item

    def remove(self, item: ScheduledEvent) -> bool:
        """Remove ``item`` (matched by id). Returns False if absent."""
        position = self._position(item.id)
        if position == -1:
            return False
        self.remove_at(position)
        return True

    def clear(self) -> None:
        items, self._items = self._items, []
        for item in items:
            self._unsubscribe(item)
            self.item_removed.emit(item)

    def get_by_id(self, event_id: UUID) -> Optional[ScheduledEvent]:
        """First schedule with ``event_id``, or None."""
        position = self._position(event_id)
        if position == -1:
            return None
        return self._items[position]

    def index(self, item: ScheduledEvent) -> int:
        position = self._position(item.id)
        if position == -1:
            raise ValueError(f"Schedule {item.id} is not in the collection")
        return position

    # -------------------------------------------------------------------------
    # Sequence protocol
    # -------------------------------------------------------------------------

    def __getitem__(self, index: int) -> ScheduledEvent:
        return self._items[index]

    def __setitem__(self, index: int, item: ScheduledEvent) -> None:
        old = self._items[index]
        if old is item:
            return

        position = self._position(item.id)
        if position != -1 and self._items[position] is not old:
            raise ScheduleValidationError(
                f"Schedule {item.id} is already in the collection"
            )

        self._unsubscribe(old)
        self.item_removed.emit(old)

        self._items[index] = item
        self._subscribe(item)
        self.item_added.emit(item)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ScheduledEvent]:
        return iter(list(self._items))

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, ScheduledEvent):
            return False
        return self._position(item.id) != -1

    def __repr__(self) -> str:
        return f"ScheduledEventCollection({len(self._items)} schedules)"
