"""
Schedule Book

This module ties the scheduling engine to a ledger, an audit trail and a
storage backend. A ScheduleBook is the document that owns a collection of
schedules:

1. Schedules raise occurrences
2. The collection relays them to the book
3. The book applies them to the ledger through its posting sink
4. Every step is audited

DESIGN DECISION: What happens when the ledger refuses an occurrence is a
setting, not a hard-coded policy:

- Non-transactional (default): the refusal is recorded and audited, and the
  schedule moves past the occurrence. The occurrence is lost for the ledger.
- Transactional: the refusal propagates out of the schedule's post() before
  the schedule advances, so the occurrence is retried on the next run. The
  book stops posting that schedule for the current run and carries on with
  the others.
"""

from datetime import date
from typing import Callable, Iterable, Optional, Union
from uuid import UUID, uuid4

from finsched.audit import AuditLogger
from finsched.config import get_settings
from finsched.models.schedule import (
    PostedOccurrence,
    PostingAction,
    PostingFailure,
    RecurrenceUnit,
    ScheduleSnapshot,
)
from finsched.scheduling import (
    Clock,
    ScheduledEvent,
    ScheduledEventCollection,
    SystemClock,
)
from finsched.services.posting import InMemoryLedger, PostingError, PostingSink
from finsched.services.storage import (
    InMemoryAuditStorage,
    ScheduleStorageInterface,
    StorageError,
)


class ScheduleBook:
    """
    A named set of schedules posting into ledgers.

    Flow:
    1. create_schedule() / add() → schedule joins the collection
    2. post_overdue() / post_all() → every active schedule posts
    3. Each raised occurrence → sink.apply() → PostedOccurrence or PostingFailure
    4. save() / load() → snapshot through the storage backend
    """

    def __init__(
        self,
        name: str = "Schedules",
        sink: Optional[PostingSink] = None,
        storage: Optional[ScheduleStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Clock] = None,
        transactional_posting: Optional[bool] = None,
        book_id: Optional[UUID] = None,
        events: Optional[Iterable[ScheduledEvent]] = None,
    ):
        settings = get_settings()
        self._settings = settings.scheduling

        self._id = book_id or uuid4()
        self._name = name
        self._sink = sink or InMemoryLedger()
        self._storage = storage
        if audit_logger is None and settings.audit.enabled:
            audit_logger = AuditLogger(InMemoryAuditStorage())
        self._audit_logger = audit_logger
        self._clock = clock or SystemClock()
        self._transactional = (
            self._settings.transactional_posting
            if transactional_posting is None
            else transactional_posting
        )

        self.posted: list[PostedOccurrence] = []
        self.failures: list[PostingFailure] = []

        self._events = ScheduledEventCollection()
        self._events.raised.connect(self._on_occurrence_raised)
        self._events.item_added.connect(self._on_schedule_added)
        self._events.item_updated.connect(self._on_schedule_updated)
        self._events.item_removed.connect(self._on_schedule_removed)

        for event in events or ():
            self.add(event)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def events(self) -> ScheduledEventCollection:
        return self._events

    @property
    def sink(self) -> PostingSink:
        return self._sink

    @property
    def audit_logger(self) -> Optional[AuditLogger]:
        return self._audit_logger

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def transactional_posting(self) -> bool:
        return self._transactional

    def __len__(self) -> int:
        return len(self._events)

    # -------------------------------------------------------------------------
    # Collection notifications
    # -------------------------------------------------------------------------

    def _on_occurrence_raised(self, occurrence_date: date, event: ScheduledEvent) -> None:
        try:
            entries = self._sink.apply(occurrence_date, event)
        except Exception as e:
            # Unexpected sink failures count as refusals
            error = e if isinstance(e, PostingError) else PostingError(
                f"{type(e).__name__}: {e}"
            )
            failure = PostingFailure(
                schedule_id=event.id,
                schedule_name=event.name,
                occurrence_date=occurrence_date,
                ledger_target_id=event.ledger_target_id,
                error_message=str(error),
                retained=self._transactional,
            )
            self.failures.append(failure)
            if self._audit_logger:
                self._audit_logger.log_occurrence_post_failed(
                    schedule_id=event.id,
                    name=event.name,
                    occurrence_date=occurrence_date,
                    ledger_target_id=event.ledger_target_id,
                    error_message=str(error),
                    retained=self._transactional,
                )
            if self._transactional:
                if error is e:
                    raise
                raise error from e
            return

        self.posted.append(PostedOccurrence(
            schedule_id=event.id,
            schedule_name=event.name,
            occurrence_date=occurrence_date,
            ledger_target_id=event.ledger_target_id,
            entry_ids=[entry.id for entry in entries],
        ))
        if self._audit_logger:
            self._audit_logger.log_occurrence_posted(
                schedule_id=event.id,
                name=event.name,
                occurrence_date=occurrence_date,
                ledger_target_id=event.ledger_target_id,
                entry_count=len(entries),
            )

    def _on_schedule_added(self, event: ScheduledEvent) -> None:
        if self._audit_logger:
            self._audit_logger.log_schedule_added(event.id, event.name)

    def _on_schedule_updated(self, event: ScheduledEvent) -> None:
        if self._audit_logger:
            self._audit_logger.log_schedule_updated(event.id, event.name)

    def _on_schedule_removed(self, event: ScheduledEvent) -> None:
        if self._audit_logger:
            self._audit_logger.log_schedule_removed(event.id, event.name)

    # -------------------------------------------------------------------------
    # Schedules
    # -------------------------------------------------------------------------

    def create_schedule(
        self,
        name: str,
        ledger_target_id: Union[UUID, str],
        start_date: Union[date, str],
        end_date: Optional[Union[date, str]] = None,
        count: int = 1,
        step: int = 1,
        unit: Optional[RecurrenceUnit] = None,
        action: Optional[PostingAction] = None,
        active: Optional[bool] = None,
    ) -> ScheduledEvent:
        """
        Create a schedule and add it to the book.

        ``unit`` and ``active`` default to the scheduling settings.
        """
        event = ScheduledEvent(
            name=name,
            ledger_target_id=ledger_target_id,
            start_date=start_date,
            end_date=end_date,
            count=count,
            step=step,
            unit=unit or self._settings.default_repeat_unit,
            action=action,
            clock=self._clock,
        )
        event.active = self._settings.auto_activate if active is None else active
        self.add(event)
        return event

    def add(self, event: ScheduledEvent) -> None:
        self._events.add(event)

    def remove(self, event: ScheduledEvent) -> bool:
        return self._events.remove(event)

    def get(self, event_id: UUID) -> Optional[ScheduledEvent]:
        return self._events.get_by_id(event_id)

    def due_events(self, on: Optional[date] = None) -> list[ScheduledEvent]:
        """Active schedules with an occurrence due on or before ``on``."""
        on = on or self._clock.today()
        return [
            event for event in self._events
            if event.active
            and event.next_date <= on
            and event.next_date <= event.end_date
        ]

    def upcoming(self, until: date) -> list[tuple[date, ScheduledEvent]]:
        """
        Remaining occurrences of active schedules up to ``until``, inclusive.

        Sorted by date, then schedule name.
        """
        pairs = [
            (occurrence, event)
            for event in self._events
            if event.active
            for occurrence in event.get_next_calendar()
            if occurrence <= until
        ]
        pairs.sort(key=lambda pair: (pair[0], pair[1].name))
        return pairs

    # -------------------------------------------------------------------------
    # Posting
    # -------------------------------------------------------------------------

    def _drive(
        self,
        post: Callable[[ScheduledEvent], None],
        until: Optional[date] = None,
    ) -> list[PostedOccurrence]:
        first = len(self.posted)
        for event in self._events:
            if not event.active:
                continue
            if until is not None and event.next_date > until:
                # post_until always posts once; nothing is due here
                continue
            try:
                post(event)
            except PostingError:
                # Occurrence kept on the schedule for the next run
                continue
            if not event.active and self._audit_logger:
                self._audit_logger.log_schedule_exhausted(
                    schedule_id=event.id,
                    name=event.name,
                    repeat_count=event.repeat_count,
                )
        return self.posted[first:]

    def post_overdue(self) -> list[PostedOccurrence]:
        """
        Post every occurrence due up to the book's today.

        Returns:
            Occurrences posted by this call
        """
        today = self._clock.today()
        return self._drive(lambda event: event.post_until(today), today)

    def post_until(self, until: date) -> list[PostedOccurrence]:
        """Post every occurrence due up to ``until``, inclusive."""
        return self._drive(lambda event: event.post_until(until), until)

    def post_all(self) -> list[PostedOccurrence]:
        """Post every remaining occurrence of every active schedule."""
        return self._drive(lambda event: event.post_all())

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def snapshot(self) -> ScheduleSnapshot:
        return ScheduleSnapshot(
            book_id=self._id,
            name=self._name,
            events=[event.to_record() for event in self._events],
        )

    def save(self) -> ScheduleSnapshot:
        """
        Save the book through its storage backend.

        Raises:
            StorageError: If no storage is configured or the save fails
        """
        if self._storage is None:
            raise StorageError("No storage configured for this schedule book")

        snapshot = self.snapshot()
        try:
            self._storage.save(snapshot)
        except StorageError as e:
            if self._audit_logger:
                self._audit_logger.log_save_failed(self._id, str(e))
            raise

        if self._audit_logger:
            self._audit_logger.log_book_saved(self._id, len(snapshot.events))
        return snapshot

    @classmethod
    def load(
        cls,
        storage: ScheduleStorageInterface,
        sink: Optional[PostingSink] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Clock] = None,
        transactional_posting: Optional[bool] = None,
    ) -> "ScheduleBook":
        """
        Load a book saved in ``storage``.

        Raises:
            NotFoundError: If nothing was saved
            StorageError: If the saved data cannot be read
        """
        snapshot = storage.load()
        book = cls(
            name=snapshot.name,
            sink=sink,
            storage=storage,
            audit_logger=audit_logger,
            clock=clock,
            transactional_posting=transactional_posting,
            book_id=snapshot.book_id,
        )
        for record in snapshot.events:
            book.add(ScheduledEvent.from_record(record, clock=book.clock))

        if book.audit_logger:
            book.audit_logger.log_book_loaded(book.id, len(book))
        return book
