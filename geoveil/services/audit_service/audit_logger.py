"""Audit logger - append-only, hash-chained trail of record operations.

Every disclosure of an exact location and every lifecycle change is
recorded. Entries carry identifiers and status values only, never
coordinates.
"""
import hashlib
import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
import uuid

from geoveil.shared.utils import Clock, SystemClock

logger = logging.getLogger(__name__)

GENESIS_HASH = "genesis"


class AuditAction(Enum):
    """Actions that require audit logging."""
    # Record lifecycle
    OBSERVATION_CREATED = "observation_created"
    STATUS_CHANGED = "status_changed"
    TRANSITION_REJECTED = "transition_rejected"
    OBSERVATION_DELETED = "observation_deleted"

    # Disclosure
    EXACT_LOCATION_VIEWED = "exact_location_viewed"
    OBSERVATION_EXPORTED = "observation_exported"
    HEATMAP_PUBLISHED = "heatmap_published"


@dataclass(frozen=True)
class AuditEntry:
    """Immutable audit log entry."""
    entry_id: str
    timestamp: datetime
    action: AuditAction
    observation_id: Optional[str]
    actor_role: str
    details: Dict[str, Any] = field(default_factory=dict)
    previous_hash: str = ""  # Chain to previous entry for verification
    entry_hash: str = ""     # Hash of this entry

    def compute_hash(self) -> str:
        """Compute SHA-256 hash of entry for verification.

        Returns:
            Hex-encoded hash string
        """
        content = {
            "entry_id": self.entry_id,
            "timestamp": self.timestamp.isoformat(),
            "action": self.action.value,
            "observation_id": self.observation_id,
            "actor_role": self.actor_role,
            "details": self.details,
            "previous_hash": self.previous_hash,
        }
        content_str = json.dumps(content, sort_keys=True, default=str)
        return hashlib.sha256(content_str.encode()).hexdigest()


class AuditLogger:
    """Keeps the audit trail in memory with a verifiable hash chain.

    Durable storage belongs to the persistence collaborator; it can read
    `entries` and check them with `verify_chain`.
    """

    def __init__(self, clock: Optional[Clock] = None):
        """Initialize audit logger.

        Args:
            clock: Time source for entry timestamps
        """
        self.clock = clock or SystemClock()
        self._entries: List[AuditEntry] = []
        self._last_hash: str = GENESIS_HASH

        logger.info("AUDIT_LOGGER_INITIALIZED")

    @property
    def entries(self) -> List[AuditEntry]:
        return list(self._entries)

    def log(
        self,
        action: AuditAction,
        observation_id: Optional[str] = None,
        actor_role: str = "system",
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditEntry:
        """Log an audit entry.

        Args:
            action: Action being audited
            observation_id: Record acted upon, None for batch operations
            actor_role: Role of actor (reporter, operator, system)
            details: Additional context (no coordinates)

        Returns:
            Created AuditEntry

        Logs:
            - AUDIT_ENTRY_CREATED: After entry is stored
        """
        entry = AuditEntry(
            entry_id=f"audit_{uuid.uuid4().hex[:16]}",
            timestamp=self.clock.now(),
            action=action,
            observation_id=observation_id,
            actor_role=actor_role,
            details=dict(details or {}),
            previous_hash=self._last_hash,
        )
        entry = replace(entry, entry_hash=entry.compute_hash())

        self._entries.append(entry)
        self._last_hash = entry.entry_hash

        logger.info(
            "AUDIT_ENTRY_CREATED",
            extra={
                "entry_id": entry.entry_id,
                "action": action.value,
                "observation_id": observation_id,
                "actor_role": actor_role,
                "entry_hash": entry.entry_hash[:16],  # Truncated for logs
            }
        )

        return entry

    def verify_chain(self) -> bool:
        """Verify integrity of audit chain.

        Returns:
            True if chain is valid, False if tampered
        """
        expected_prev = GENESIS_HASH
        for entry in self._entries:
            if entry.previous_hash != expected_prev:
                logger.critical(
                    "AUDIT_CHAIN_VERIFICATION_FAILED",
                    extra={
                        "entry_id": entry.entry_id,
                        "expected_prev": expected_prev[:16],
                        "actual_prev": entry.previous_hash[:16],
                    }
                )
                return False

            computed = entry.compute_hash()
            if computed != entry.entry_hash:
                logger.critical(
                    "AUDIT_ENTRY_HASH_MISMATCH",
                    extra={
                        "entry_id": entry.entry_id,
                        "computed": computed[:16],
                        "stored": entry.entry_hash[:16],
                    }
                )
                return False

            expected_prev = entry.entry_hash

        logger.info(
            "AUDIT_CHAIN_VERIFIED",
            extra={"entry_count": len(self._entries)}
        )
        return True

    def query(
        self,
        observation_id: Optional[str] = None,
        action: Optional[AuditAction] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[AuditEntry]:
        """Query audit entries.

        Args:
            observation_id: Filter by record
            action: Filter by action
            start_date: Filter by start date
            end_date: Filter by end date

        Returns:
            List of matching AuditEntry objects
        """
        results = self._entries

        if observation_id:
            results = [e for e in results if e.observation_id == observation_id]
        if action:
            results = [e for e in results if e.action == action]
        if start_date:
            results = [e for e in results if e.timestamp >= start_date]
        if end_date:
            results = [e for e in results if e.timestamp <= end_date]

        return list(results)
