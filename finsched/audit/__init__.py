"""Audit logging package."""

from finsched.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
