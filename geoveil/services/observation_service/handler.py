"""Observation handler - creates records and drives their lifecycle.

Creation resolves the blur radius, derives the public location once and
stores the record through the injected repository. Status changes are
validated by the lifecycle state machine and audited whether accepted or
rejected.
"""
import logging
from typing import Any, Dict, List, Optional
import uuid

from geoveil.shared.database import ObservationRepository, InMemoryObservationRepository
from geoveil.shared.errors import IllegalTransition, TerminalStateViolation
from geoveil.shared.models import (
    Attachments,
    Coordinate,
    ObservationRecord,
    ObservationStatus,
)
from geoveil.shared.utils import Clock, SystemClock
from geoveil.services.analytics_service import GridCell, build_heatmap
from geoveil.services.audit_service import AuditAction, AuditLogger
from geoveil.services.geo_privacy import (
    DEFAULT_CELL_SIZE_DEGREES,
    PrivacyConfig,
    PrivacyPolicy,
)
from .lifecycle import apply_transition
from .views import MapView, distance_to_record, map_view

logger = logging.getLogger(__name__)


def new_observation_id() -> str:
    return f"obs_{uuid.uuid4().hex}"


class ObservationHandler:
    """Entry point for form, operator and persistence collaborators."""

    def __init__(
        self,
        repository: Optional[ObservationRepository] = None,
        policy: Optional[PrivacyPolicy] = None,
        config: Optional[PrivacyConfig] = None,
        clock: Optional[Clock] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        """Initialize handler with dependencies.

        Args:
            repository: Record storage (in-memory if omitted)
            policy: Blur policy (secure random source if omitted)
            config: Privacy configuration
            clock: Time source for creation and transitions
            audit_logger: Audit trail (injected for testing)
        """
        self.repository = repository or InMemoryObservationRepository()
        self.policy = policy or PrivacyPolicy()
        self.config = (config or PrivacyConfig()).validate()
        self.clock = clock or SystemClock()
        self.audit_logger = audit_logger or AuditLogger(clock=self.clock)

        logger.info(
            "OBSERVATION_HANDLER_INITIALIZED",
            extra={
                "sensitive_mode": self.config.sensitive_mode,
                "dp_k_min": self.config.dp_k_min,
            }
        )

    def create_observation(
        self,
        exact_location: Coordinate,
        requested_blur_radius: int,
        sensitive_mode: Optional[bool] = None,
        attachments: Optional[Attachments] = None,
    ) -> ObservationRecord:
        """Create and store a new observation.

        Args:
            exact_location: Reporter's position from the location provider
            requested_blur_radius: Radius chosen on the form, in meters
            sensitive_mode: Per-observation flag; falls back to config
            attachments: Collaborator-owned fields, stored as-is

        Returns:
            The stored ObservationRecord in SUBMITTED state

        Logs:
            - OBSERVATION_CREATED: After the record is stored
        """
        sensitive = self.config.sensitive_mode if sensitive_mode is None else sensitive_mode
        blur_radius = self.policy.resolve_blur_radius(requested_blur_radius, sensitive)
        public_location = self.policy.derive_public_location(exact_location, blur_radius)

        record = ObservationRecord(
            id=new_observation_id(),
            created_at=self.clock.now(),
            exact_location=exact_location,
            blur_radius_meters=blur_radius,
            public_location=public_location,
            attachments=attachments,
        )
        self.repository.insert(record)

        self.audit_logger.log(
            action=AuditAction.OBSERVATION_CREATED,
            observation_id=record.id,
            actor_role="reporter",
            details={"blur_radius_meters": blur_radius, "sensitive_mode": sensitive},
        )
        logger.info(
            "OBSERVATION_CREATED",
            extra={
                "observation_id": record.id,
                "blur_radius_meters": blur_radius,
                "sensitive_mode": sensitive,
            }
        )
        return record

    def get_observation(self, observation_id: str) -> ObservationRecord:
        """Raises NotFoundError for unknown IDs."""
        return self.repository.get(observation_id)

    def list_observations(self) -> List[ObservationRecord]:
        return self.repository.list()

    def transition(
        self,
        observation_id: str,
        target: ObservationStatus,
        actor_role: str = "operator",
    ) -> ObservationRecord:
        """Move a record to `target` if the lifecycle allows it.

        Args:
            observation_id: Record identifier
            target: Requested status
            actor_role: Who asked for the change

        Returns:
            The updated, stored record

        Raises:
            NotFoundError: If the record does not exist
            TerminalStateViolation: If the record is resolved
            IllegalTransition: If the transition is not allowed
        """
        record = self.repository.get(observation_id)
        try:
            updated = apply_transition(record, target, self.clock)
        except (TerminalStateViolation, IllegalTransition) as e:
            self.audit_logger.log(
                action=AuditAction.TRANSITION_REJECTED,
                observation_id=observation_id,
                actor_role=actor_role,
                details={
                    "from_status": record.status.value,
                    "to_status": target.value,
                    "error_code": e.error_code,
                },
            )
            raise

        self.repository.save(updated)
        self.audit_logger.log(
            action=AuditAction.STATUS_CHANGED,
            observation_id=observation_id,
            actor_role=actor_role,
            details={
                "from_status": record.status.value,
                "to_status": target.value,
            },
        )
        return updated

    def acknowledge_receipt(self, observation_id: str) -> ObservationRecord:
        """SUBMITTED -> RECEIVED, fired by the receiving collaborator."""
        return self.transition(observation_id, ObservationStatus.RECEIVED, actor_role="system")

    def start_progress(self, observation_id: str) -> ObservationRecord:
        return self.transition(observation_id, ObservationStatus.IN_PROGRESS)

    def return_to_received(self, observation_id: str) -> ObservationRecord:
        return self.transition(observation_id, ObservationStatus.RECEIVED)

    def resolve(self, observation_id: str) -> ObservationRecord:
        return self.transition(observation_id, ObservationStatus.RESOLVED)

    def delete_observation(self, observation_id: str) -> bool:
        """Delete a record.

        Returns:
            True if deleted, False if not found
        """
        deleted = self.repository.delete(observation_id)
        if deleted:
            self.audit_logger.log(
                action=AuditAction.OBSERVATION_DELETED,
                observation_id=observation_id,
                actor_role="reporter",
            )
            logger.info(
                "OBSERVATION_DELETED",
                extra={"observation_id": observation_id}
            )
        else:
            logger.warning(
                "OBSERVATION_DELETE_NOT_FOUND",
                extra={"observation_id": observation_id}
            )
        return deleted

    def export_observation(self, observation_id: str) -> Dict[str, Any]:
        """Plain record payload for the export/encryption collaborator."""
        record = self.repository.get(observation_id)
        self.audit_logger.log(
            action=AuditAction.OBSERVATION_EXPORTED,
            observation_id=observation_id,
            actor_role="reporter",
        )
        return record.to_dict()

    def view_on_map(self, observation_id: str, private_view: bool) -> MapView:
        """Map projection of a record; private views are audited."""
        record = self.repository.get(observation_id)
        if private_view:
            self.audit_logger.log(
                action=AuditAction.EXACT_LOCATION_VIEWED,
                observation_id=observation_id,
                actor_role="reporter",
                details={"purpose": "map"},
            )
        return map_view(record, private_view)

    def build_heatmap(
        self,
        cell_size_degrees: float = DEFAULT_CELL_SIZE_DEGREES,
    ) -> List[GridCell]:
        """Heatmap over the current record set, using the handler's config."""
        cells = build_heatmap(
            self.repository.list(),
            self.config,
            cell_size_degrees=cell_size_degrees,
        )
        self.audit_logger.log(
            action=AuditAction.HEATMAP_PUBLISHED,
            details={
                "cell_size_degrees": cell_size_degrees,
                "included_cells": len(cells),
            },
        )
        return cells

    def distance_from(
        self,
        user_location: Coordinate,
        observation_id: str,
        private_view: bool,
    ) -> float:
        """Meters from the user to a record; private lookups are audited."""
        record = self.repository.get(observation_id)
        if private_view:
            self.audit_logger.log(
                action=AuditAction.EXACT_LOCATION_VIEWED,
                observation_id=observation_id,
                actor_role="reporter",
                details={"purpose": "distance"},
            )
        return distance_to_record(user_location, record, private_view)
