"""Posting services package."""

from finsched.services.posting.interface import (
    LedgerTargetNotFoundError,
    PostingError,
    PostingSink,
)
from finsched.services.posting.memory_ledger import InMemoryLedger

__all__ = [
    "InMemoryLedger",
    "LedgerTargetNotFoundError",
    "PostingError",
    "PostingSink",
]
