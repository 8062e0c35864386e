"""
Posting Sink Interface

A posting sink applies a posted occurrence to ledger state. The schedule
book owns one and calls it from its "raised" handler.

DESIGN DECISION: The scheduler never writes ledgers itself. It only knows
that an occurrence of a schedule happened on a date; what that means for a
ledger is decided here.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import TYPE_CHECKING

from finsched.models.schedule import LedgerEntry

if TYPE_CHECKING:
    from finsched.scheduling.event import ScheduledEvent


class PostingSink(ABC):
    """Applies posted occurrences to ledgers."""

    @abstractmethod
    def apply(
        self,
        occurrence_date: date,
        event: "ScheduledEvent",
    ) -> list[LedgerEntry]:
        """
        Apply one occurrence of ``event`` dated ``occurrence_date``.

        Returns:
            The ledger entries written

        Raises:
            LedgerTargetNotFoundError: If a ledger involved does not exist
            PostingError: If the occurrence cannot be applied
        """
        pass


class PostingError(Exception):
    """Base exception for posting operations."""
    pass


class LedgerTargetNotFoundError(PostingError):
    """The ledger an occurrence targets does not exist."""
    pass
