"""
Tests for the in-memory posting sink
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from finsched.models.schedule import OperationAction, TransferAction
from finsched.scheduling.event import ScheduledEvent
from finsched.services.posting import (
    InMemoryLedger,
    LedgerTargetNotFoundError,
    PostingError,
)


@pytest.fixture
def checking():
    return uuid4()


@pytest.fixture
def savings():
    return uuid4()


@pytest.fixture
def ledger(checking, savings):
    return InMemoryLedger([checking, savings])


def make_event(ledger_id, action=None) -> ScheduledEvent:
    return ScheduledEvent(
        name="Monthly",
        ledger_target_id=ledger_id,
        start_date=date(2021, 7, 5),
        count=3,
        action=action,
    )


class TestOperations:
    """Tests for single-ledger postings."""

    def test_operation_writes_one_entry(self, ledger, checking):
        """Test posting an operation."""
        event = make_event(checking, OperationAction(
            label="Rent", amount=Decimal("-850.00"), payee="Landlord",
        ))

        entries = ledger.apply(date(2021, 7, 5), event)

        assert len(entries) == 1
        assert entries[0].entry_date == date(2021, 7, 5)
        assert entries[0].payee == "Landlord"
        assert entries[0].schedule_id == event.id
        assert ledger.balance(checking) == Decimal("-850.00")

    def test_no_action_writes_zero_entry(self, ledger, checking):
        """Test posting a schedule without a payload."""
        event = make_event(checking)

        entries = ledger.apply(date(2021, 7, 5), event)

        assert entries[0].label == "Monthly"
        assert entries[0].amount == Decimal("0")

    def test_unknown_target_refused(self, ledger):
        """Test posting into a ledger that does not exist."""
        event = make_event(uuid4(), OperationAction(label="Rent", amount=Decimal("-1")))

        with pytest.raises(LedgerTargetNotFoundError):
            ledger.apply(date(2021, 7, 5), event)

    def test_unregistered_ledger_refused(self, ledger, checking):
        """Test posting after the ledger was deleted."""
        event = make_event(checking)
        assert ledger.unregister(checking) is True

        with pytest.raises(LedgerTargetNotFoundError):
            ledger.apply(date(2021, 7, 5), event)


class TestTransfers:
    """Tests for two-ledger postings."""

    def test_transfer_moves_money(self, ledger, checking, savings):
        """Test posting a transfer."""
        event = make_event(checking, TransferAction(
            label="Savings", amount=Decimal("100.00"), to_ledger_id=savings,
        ))

        entries = ledger.apply(date(2021, 7, 5), event)

        assert len(entries) == 2
        assert ledger.balance(checking) == Decimal("-100.00")
        assert ledger.balance(savings) == Decimal("100.00")
        assert entries[0].counterpart_ledger_id == savings
        assert entries[1].counterpart_ledger_id == checking
        assert all(entry.kind == "transfer" for entry in entries)

    def test_transfer_to_unknown_ledger_writes_nothing(self, ledger, checking):
        """Test that a refused transfer leaves the source untouched."""
        event = make_event(checking, TransferAction(
            label="Savings", amount=Decimal("100.00"), to_ledger_id=uuid4(),
        ))

        with pytest.raises(LedgerTargetNotFoundError):
            ledger.apply(date(2021, 7, 5), event)
        assert ledger.entries(checking) == []

    def test_transfer_to_same_ledger_refused(self, ledger, checking):
        """Test a transfer with identical ledgers."""
        event = make_event(checking, TransferAction(
            label="Loop", amount=Decimal("1.00"), to_ledger_id=checking,
        ))

        with pytest.raises(PostingError):
            ledger.apply(date(2021, 7, 5), event)


class TestLedgers:
    """Tests for ledger bookkeeping."""

    def test_register_twice_keeps_entries(self, ledger, checking):
        """Test re-registering an existing ledger."""
        ledger.apply(date(2021, 7, 5), make_event(checking))
        ledger.register(checking)
        assert len(ledger.entries(checking)) == 1

    def test_entries_of_unknown_ledger(self, ledger):
        """Test reading an unknown ledger."""
        with pytest.raises(LedgerTargetNotFoundError):
            ledger.entries(uuid4())

    def test_not_found_is_a_posting_error(self):
        """Test the exception hierarchy."""
        assert issubclass(LedgerTargetNotFoundError, PostingError)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
