"""
finsched - Recurring Event Scheduler for Personal Finance

Computes calendars of recurring operations and transfers, tracks how many
occurrences remain, and posts due occurrences into ledgers.

DESIGN PRINCIPLES:
1. Start date, end date and repeat count always agree
2. Out-of-range inputs are clamped, invalid ones are rejected
3. One post consumes exactly one occurrence
4. Every posted or refused occurrence is auditable
5. Ledger and storage are swappable
"""

__version__ = "1.0.0"
__author__ = "finsched Team"
