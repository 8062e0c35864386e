"""
Tests for the ScheduleBook

Integration tests: schedules, the in-memory ledger, audit trail and
storage working together.
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from finsched.audit import AuditLogger
from finsched.models.audit import AuditEventType
from finsched.models.schedule import (
    OperationAction,
    RecurrenceUnit,
    ScheduleSnapshot,
    TransferAction,
)
from finsched.orchestrator import ScheduleBook
from finsched.scheduling.clock import FixedClock
from finsched.services.posting import InMemoryLedger
from finsched.services.storage import (
    InMemoryAuditStorage,
    InMemoryScheduleStorage,
    StorageError,
)


RENT = OperationAction(label="Rent", amount=Decimal("-850.00"))


@pytest.fixture
def checking():
    return uuid4()


@pytest.fixture
def clock():
    return FixedClock(date(2021, 9, 1))


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def storage():
    return InMemoryScheduleStorage()


@pytest.fixture
def book(checking, clock, audit_storage, storage):
    return ScheduleBook(
        name="Household",
        sink=InMemoryLedger([checking]),
        storage=storage,
        audit_logger=AuditLogger(audit_storage),
        clock=clock,
        transactional_posting=False,
    )


def audit_types(audit_storage, entity_id):
    return [
        event.event_type
        for event in audit_storage.get_events_by_entity("schedule", entity_id)
    ]


class TestSchedules:
    """Tests for schedule management."""

    def test_create_schedule_is_active(self, book, checking):
        """Test that created schedules are activated by default."""
        event = book.create_schedule("Rent", checking, date(2021, 7, 5), count=4, action=RENT)

        assert event.active is True
        assert event.repeat_unit == RecurrenceUnit.MONTH
        assert event.clock is book.clock
        assert book.get(event.id) is event
        assert len(book) == 1

    def test_create_inactive_schedule(self, book, checking):
        """Test the explicit active flag."""
        event = book.create_schedule("Rent", checking, date(2021, 7, 5), active=False)
        assert event.active is False

    def test_remove_schedule(self, book, checking, audit_storage):
        """Test removal and its audit event."""
        event = book.create_schedule("Rent", checking, date(2021, 7, 5))

        assert book.remove(event) is True
        assert book.get(event.id) is None
        assert AuditEventType.SCHEDULE_REMOVED in audit_types(audit_storage, event.id)

    def test_due_events(self, book, checking):
        """Test which schedules have something due."""
        due = book.create_schedule("Rent", checking, date(2021, 7, 5), count=4)
        book.create_schedule("Later", checking, date(2021, 12, 1))
        book.create_schedule("Off", checking, date(2021, 7, 5), active=False)

        assert book.due_events() == [due]

    def test_upcoming_sorted_by_date_then_name(self, book, checking):
        """Test the merged calendar of all schedules."""
        book.create_schedule("Rent", checking, date(2021, 9, 5), count=3)
        book.create_schedule("Gym", checking, date(2021, 9, 5), count=2)

        upcoming = book.upcoming(date(2021, 10, 31))

        assert [(d, e.name) for d, e in upcoming] == [
            (date(2021, 9, 5), "Gym"),
            (date(2021, 9, 5), "Rent"),
            (date(2021, 10, 5), "Gym"),
            (date(2021, 10, 5), "Rent"),
        ]


class TestPosting:
    """Tests for posting into the ledger."""

    def test_post_overdue(self, book, checking, audit_storage):
        """Test posting up to the book's today."""
        event = book.create_schedule("Rent", checking, date(2021, 7, 5), count=4, action=RENT)

        posted = book.post_overdue()

        assert [p.occurrence_date for p in posted] == [date(2021, 7, 5), date(2021, 8, 5)]
        assert book.sink.balance(checking) == Decimal("-1700.00")
        assert event.counter == 2
        assert audit_types(audit_storage, event.id).count(
            AuditEventType.OCCURRENCE_POSTED
        ) == 2

    def test_post_overdue_twice_posts_nothing_new(self, book, checking):
        """Test that a second run on the same day does not post ahead."""
        event = book.create_schedule("Rent", checking, date(2021, 7, 5), count=4, action=RENT)
        book.post_overdue()

        assert book.post_overdue() == []
        assert event.next_date == date(2021, 9, 5)

    def test_post_overdue_follows_clock(self, book, checking, clock):
        """Test posting after the clock moves."""
        book.create_schedule("Rent", checking, date(2021, 7, 5), count=4, action=RENT)
        book.post_overdue()

        clock.set_date(date(2021, 9, 5))

        assert len(book.post_overdue()) == 1

    def test_post_all_exhausts_schedules(self, book, checking, audit_storage):
        """Test posting every remaining occurrence."""
        event = book.create_schedule("Rent", checking, date(2021, 7, 5), count=4, action=RENT)

        posted = book.post_all()

        assert len(posted) == 4
        assert event.active is False
        assert event.counter == 0
        assert AuditEventType.SCHEDULE_EXHAUSTED in audit_types(audit_storage, event.id)

    def test_inactive_schedules_are_skipped(self, book, checking):
        """Test that inactive schedules never post."""
        book.create_schedule("Rent", checking, date(2021, 7, 5), count=4, active=False)
        assert book.post_all() == []

    def test_transfer_posting(self, checking, clock):
        """Test a transfer between two ledgers of the book's sink."""
        savings = uuid4()
        book = ScheduleBook(sink=InMemoryLedger([checking, savings]), clock=clock)
        book.create_schedule(
            "Savings", checking, date(2021, 8, 1),
            action=TransferAction(label="Savings", amount=Decimal("100"), to_ledger_id=savings),
        )

        posted = book.post_overdue()

        assert len(posted[0].entry_ids) == 2
        assert book.sink.balance(savings) == Decimal("100")


class TestPostingFailures:
    """Tests for occurrences the ledger refuses."""

    def test_non_transactional_skips_occurrence(self, book, audit_storage):
        """Test that a refused occurrence is recorded and lost."""
        event = book.create_schedule("Orphan", uuid4(), date(2021, 7, 5), count=4, action=RENT)

        posted = book.post_overdue()

        assert posted == []
        assert len(book.failures) == 2
        assert book.failures[0].retained is False
        assert event.next_date == date(2021, 9, 5)
        assert event.counter == 2
        assert AuditEventType.OCCURRENCE_POST_FAILED in audit_types(audit_storage, event.id)

    def test_transactional_keeps_occurrence(self, checking, clock):
        """Test that a refused occurrence is retried on the next run."""
        orphan = uuid4()
        sink = InMemoryLedger([checking])
        book = ScheduleBook(sink=sink, clock=clock, transactional_posting=True)
        event = book.create_schedule("Orphan", orphan, date(2021, 7, 5), count=4, action=RENT)
        other = book.create_schedule("Rent", checking, date(2021, 8, 5), count=2, action=RENT)

        book.post_overdue()

        assert len(book.failures) == 1
        assert book.failures[0].retained is True
        assert event.next_date == date(2021, 7, 5)
        assert event.counter == 4
        assert other.next_date == date(2021, 9, 5)

        sink.register(orphan)
        posted = book.post_overdue()

        assert [p.occurrence_date for p in posted] == [date(2021, 7, 5), date(2021, 8, 5)]

    def test_unexpected_sink_error_does_not_stop_batch(self, checking, clock):
        """Test that a sink crashing on one schedule lets the others post."""
        class FlakyLedger(InMemoryLedger):
            def apply(self, occurrence_date, event):
                if event.name == "Broken":
                    raise RuntimeError("connection reset")
                return super().apply(occurrence_date, event)

        book = ScheduleBook(sink=FlakyLedger([checking]), clock=clock)
        broken = book.create_schedule("Broken", checking, date(2021, 8, 5), action=RENT)
        book.create_schedule("Rent", checking, date(2021, 8, 5), action=RENT)

        posted = book.post_overdue()

        assert [p.schedule_name for p in posted] == ["Rent"]
        assert book.failures[0].schedule_id == broken.id
        assert "RuntimeError: connection reset" in book.failures[0].error_message

    def test_unexpected_sink_error_is_retained_when_transactional(self, checking, clock):
        """Test that a crashing sink keeps the occurrence in transactional mode."""
        class BrokenLedger(InMemoryLedger):
            def apply(self, occurrence_date, event):
                raise RuntimeError("connection reset")

        book = ScheduleBook(sink=BrokenLedger([checking]), clock=clock, transactional_posting=True)
        event = book.create_schedule("Rent", checking, date(2021, 8, 5), action=RENT)

        assert book.post_overdue() == []
        assert event.next_date == date(2021, 8, 5)
        assert event.active is True
        assert book.failures[0].retained is True

    def test_default_book_records_audit_events(self, checking, clock):
        """Test the audit storage a book creates for itself."""
        book = ScheduleBook(sink=InMemoryLedger([checking]), clock=clock)
        event = book.create_schedule("Rent", checking, date(2021, 8, 5), action=RENT)

        book.post_overdue()

        types = audit_types(book.audit_logger.storage, event.id)
        assert AuditEventType.SCHEDULE_ADDED in types
        assert AuditEventType.OCCURRENCE_POSTED in types

    def test_transactional_from_settings(self, monkeypatch, clock):
        """Test that the posting mode defaults to configuration."""
        monkeypatch.setenv("FINSCHED_SCHEDULING_TRANSACTIONAL_POSTING", "true")
        book = ScheduleBook(clock=clock)
        assert book.transactional_posting is True


class TestPersistence:
    """Tests for saving and loading books."""

    def test_save_and_load(self, book, checking, clock, storage):
        """Test restoring a partially posted book."""
        event = book.create_schedule("Rent", checking, date(2021, 7, 5), count=4, action=RENT)
        book.post_overdue()

        snapshot = book.save()
        restored = ScheduleBook.load(
            storage,
            sink=InMemoryLedger([checking]),
            clock=clock,
        )

        assert isinstance(snapshot, ScheduleSnapshot)
        assert restored.id == book.id
        assert restored.name == "Household"
        copy = restored.get(event.id)
        assert copy.next_date == date(2021, 9, 5)
        assert copy.counter == 2
        assert copy.active is True
        assert copy.action == RENT

        clock.set_date(date(2021, 12, 31))
        assert len(restored.post_overdue()) == 2

    def test_save_without_storage(self, clock):
        """Test that saving needs a storage backend."""
        with pytest.raises(StorageError):
            ScheduleBook(clock=clock).save()

    def test_save_failure_is_audited(self, checking, clock, audit_storage):
        """Test a storage backend refusing a save."""
        class BrokenStorage(InMemoryScheduleStorage):
            def save(self, snapshot):
                raise StorageError("disk full")

        book = ScheduleBook(
            storage=BrokenStorage(),
            audit_logger=AuditLogger(audit_storage),
            clock=clock,
        )

        with pytest.raises(StorageError):
            book.save()

        failed = audit_storage.get_events_by_entity("book", book.id)
        assert failed[-1].event_type == AuditEventType.SAVE_FAILED
        assert failed[-1].error_message == "disk full"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
