"""
In-Memory Ledger

Reference posting sink keeping ledgers as lists of entries in memory.

- Operation: one entry on the schedule's target ledger
- Transfer: a debit on the target and a credit on the destination
- No action: a zero-amount entry labelled with the schedule name

Every ledger involved is checked before anything is written, so an
occurrence is applied completely or not at all.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from finsched.models.schedule import (
    LedgerEntry,
    OperationAction,
    TransferAction,
)
from finsched.scheduling.event import ScheduledEvent
from finsched.services.posting.interface import (
    LedgerTargetNotFoundError,
    PostingError,
    PostingSink,
)


class InMemoryLedger(PostingSink):
    """Ledgers kept in memory, keyed by ledger id."""

    def __init__(self, ledger_ids: Optional[list[UUID]] = None):
        self._ledgers: dict[UUID, list[LedgerEntry]] = {}
        for ledger_id in ledger_ids or ():
            self.register(ledger_id)

    def register(self, ledger_id: UUID) -> None:
        """Create an empty ledger; registering twice keeps its entries."""
        self._ledgers.setdefault(ledger_id, [])

    def unregister(self, ledger_id: UUID) -> bool:
        """Delete a ledger and its entries."""
        return self._ledgers.pop(ledger_id, None) is not None

    def has_ledger(self, ledger_id: UUID) -> bool:
        return ledger_id in self._ledgers

    def entries(self, ledger_id: UUID) -> list[LedgerEntry]:
        if ledger_id not in self._ledgers:
            raise LedgerTargetNotFoundError(f"Unknown ledger: {ledger_id}")
        return list(self._ledgers[ledger_id])

    def balance(self, ledger_id: UUID) -> Decimal:
        return sum((entry.amount for entry in self.entries(ledger_id)), Decimal("0"))

    def _require(self, ledger_id: UUID) -> list[LedgerEntry]:
        ledger = self._ledgers.get(ledger_id)
        if ledger is None:
            raise LedgerTargetNotFoundError(f"Unknown ledger: {ledger_id}")
        return ledger

    def apply(
        self,
        occurrence_date: date,
        event: ScheduledEvent,
    ) -> list[LedgerEntry]:
        target = self._require(event.ledger_target_id)
        action = event.action

        if action is None:
            entries = [(target, LedgerEntry(
                ledger_id=event.ledger_target_id,
                schedule_id=event.id,
                entry_date=occurrence_date,
                label=event.name,
                amount=Decimal("0"),
            ))]
        elif isinstance(action, OperationAction):
            entries = [(target, LedgerEntry(
                ledger_id=event.ledger_target_id,
                schedule_id=event.id,
                entry_date=occurrence_date,
                label=action.label,
                amount=action.amount,
                category=action.category,
                payee=action.payee,
            ))]
        elif isinstance(action, TransferAction):
            if action.to_ledger_id == event.ledger_target_id:
                raise PostingError("A transfer needs two different ledgers")
            destination = self._require(action.to_ledger_id)
            entries = [
                (target, LedgerEntry(
                    ledger_id=event.ledger_target_id,
                    schedule_id=event.id,
                    entry_date=occurrence_date,
                    label=action.label,
                    amount=-action.amount,
                    kind="transfer",
                    counterpart_ledger_id=action.to_ledger_id,
                )),
                (destination, LedgerEntry(
                    ledger_id=action.to_ledger_id,
                    schedule_id=event.id,
                    entry_date=occurrence_date,
                    label=action.label,
                    amount=action.amount,
                    kind="transfer",
                    counterpart_ledger_id=event.ledger_target_id,
                )),
            ]
        else:
            raise PostingError(f"Unsupported posting action: {type(action).__name__}")

        for ledger, entry in entries:
            ledger.append(entry)
        return [entry for _, entry in entries]
