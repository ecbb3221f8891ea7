"""Audit Service: append-only trail of observation operations.

Records creation, status changes, rejected transitions, deletions and
every disclosure of an exact location, chained by SHA-256 so tampering
is detectable.
"""

from .audit_logger import AuditLogger, AuditAction, AuditEntry

__all__ = [
    "AuditLogger",
    "AuditAction",
    "AuditEntry",
]
