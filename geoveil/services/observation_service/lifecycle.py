"""Observation review state machine.

    SUBMITTED -> RECEIVED <-> IN_PROGRESS -> RESOLVED

RECEIVED is fired once by the receiving collaborator after creation; the
RECEIVED/IN_PROGRESS toggle and the final RESOLVED step are operator
actions. RESOLVED is terminal.
"""
import logging
from typing import FrozenSet

from geoveil.shared.errors import IllegalTransition, TerminalStateViolation
from geoveil.shared.models import ALLOWED_TRANSITIONS, ObservationRecord, ObservationStatus
from geoveil.shared.utils import Clock

logger = logging.getLogger(__name__)

TERMINAL_STATES: FrozenSet[ObservationStatus] = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


def validate_transition(current: ObservationStatus, target: ObservationStatus) -> None:
    """Raise unless `current -> target` is an edge of the lifecycle graph.

    Raises:
        TerminalStateViolation: If `current` is terminal
        IllegalTransition: For any other transition not in the graph
    """
    if current in TERMINAL_STATES:
        raise TerminalStateViolation(
            f"Observation is {current.value}; no further transitions allowed"
        )
    if target not in ALLOWED_TRANSITIONS[current]:
        raise IllegalTransition(
            f"Cannot move from {current.value} to {target.value}"
        )


def can_transition(current: ObservationStatus, target: ObservationStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def apply_transition(
    record: ObservationRecord,
    target: ObservationStatus,
    clock: Clock,
) -> ObservationRecord:
    """Advance a record to `target`, appending one history entry.

    The input record is never modified; on rejection the caller keeps the
    unchanged record.

    Args:
        record: Current record
        target: Requested status
        clock: Source of the transition timestamp

    Returns:
        New record with updated status and history

    Raises:
        TerminalStateViolation: If the record is resolved
        IllegalTransition: If the transition is not allowed
    """
    try:
        validate_transition(record.status, target)
    except (TerminalStateViolation, IllegalTransition) as e:
        logger.warning(
            "OBSERVATION_TRANSITION_REJECTED",
            extra={
                "observation_id": record.id,
                "from_status": record.status.value,
                "to_status": target.value,
                "error_code": e.error_code,
            }
        )
        raise

    updated = record.with_status(target, clock.now())

    logger.info(
        "OBSERVATION_STATUS_CHANGED",
        extra={
            "observation_id": record.id,
            "from_status": record.status.value,
            "to_status": target.value,
            "history_length": len(updated.history),
        }
    )
    return updated
