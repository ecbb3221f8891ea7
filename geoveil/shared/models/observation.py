"""Observation record domain model.

An ObservationRecord carries both the reporter's exact location and the
derived public location. The public location is fixed at creation and
the status history is append-only; both are enforced by keeping the
record frozen and producing a new instance for every accepted transition.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple

from geoveil.shared.errors import InvalidCoordinate, InvalidRecord
from .location import Coordinate, haversine_meters

# Blur radius bounds
MAX_BLUR_RADIUS_METERS = 2000

# Inner ring radius as a fraction of the blur radius
INNER_RADIUS_RATIO = 0.5
MIN_INNER_RADIUS_METERS = 1.0

# Slack for float error in the projected public location
RING_TOLERANCE_METERS = 0.5


def blur_ring_bounds(blur_radius_meters: int) -> Tuple[float, float]:
    """Inner and outer distance of the public location from the exact one."""
    inner = max(MIN_INNER_RADIUS_METERS, blur_radius_meters * INNER_RADIUS_RATIO)
    return inner, float(blur_radius_meters)


class ObservationStatus(Enum):
    """Review states of an observation, in lifecycle order."""
    SUBMITTED = "submitted"     # Initial state, set at creation
    RECEIVED = "received"       # Acknowledged by the receiving collaborator
    IN_PROGRESS = "in_progress" # Operator is working on it
    RESOLVED = "resolved"       # Terminal


ALLOWED_TRANSITIONS: Dict[ObservationStatus, FrozenSet[ObservationStatus]] = {
    ObservationStatus.SUBMITTED: frozenset({ObservationStatus.RECEIVED}),
    ObservationStatus.RECEIVED: frozenset({ObservationStatus.IN_PROGRESS}),
    ObservationStatus.IN_PROGRESS: frozenset({
        ObservationStatus.RECEIVED,
        ObservationStatus.RESOLVED,
    }),
    ObservationStatus.RESOLVED: frozenset(),
}


@dataclass(frozen=True)
class StatusChange:
    """One entry of an observation's audit trail."""
    status: ObservationStatus
    at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {"state": self.status.value, "at": self.at.isoformat()}


@dataclass(frozen=True)
class Attachments:
    """Collaborator-owned fields, passed through unexamined.

    Media and contact details are referenced by ID; their contents live
    with the collaborators that captured them.
    """
    category: Optional[str] = None
    description: Optional[str] = None
    media_ids: Tuple[str, ...] = ()
    contact_ref: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "description": self.description,
            "mediaIds": list(self.media_ids),
            "contactRef": self.contact_ref,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Attachments":
        return cls(
            category=data.get("category"),
            description=data.get("description"),
            media_ids=tuple(data.get("mediaIds") or ()),
            contact_ref=data.get("contactRef"),
        )


@dataclass(frozen=True)
class ObservationRecord:
    """A single geo-tagged observation.

    Attributes:
        id: Process-unique identifier, never reused
        created_at: Creation timestamp (UTC)
        exact_location: Reporter's true position; never shown publicly
        blur_radius_meters: Obfuscation radius in [0, 2000]; 0 disables it
        public_location: Derived once at creation, stable for the record's life
        status: Current lifecycle state
        history: Append-only (status, timestamp) trail
        attachments: Optional collaborator-owned fields
    """
    id: str
    created_at: datetime
    exact_location: Coordinate
    blur_radius_meters: int
    public_location: Coordinate
    status: ObservationStatus = ObservationStatus.SUBMITTED
    history: Tuple[StatusChange, ...] = field(default_factory=tuple)
    attachments: Optional[Attachments] = None

    def __post_init__(self):
        if not self.history:
            object.__setattr__(
                self,
                "history",
                (StatusChange(ObservationStatus.SUBMITTED, self.created_at),),
            )
        self._check_invariants()

    def _check_invariants(self) -> None:
        self._check_blur()
        self._check_history()

    def _check_blur(self) -> None:
        radius = self.blur_radius_meters
        if isinstance(radius, bool) or not isinstance(radius, int):
            raise InvalidRecord(f"Blur radius must be an integer, got {radius!r}")
        if not 0 <= radius <= MAX_BLUR_RADIUS_METERS:
            raise InvalidRecord(
                f"Blur radius must be in [0, {MAX_BLUR_RADIUS_METERS}], got {radius}"
            )
        if radius == 0:
            if self.public_location != self.exact_location:
                raise InvalidRecord("Unblurred record must expose its exact location")
            return

        inner, outer = blur_ring_bounds(radius)
        offset = haversine_meters(self.exact_location, self.public_location)
        if not inner - RING_TOLERANCE_METERS <= offset <= outer + RING_TOLERANCE_METERS:
            raise InvalidRecord(
                f"Public location is {offset:.1f} m from the exact location; "
                f"blur radius {radius} requires [{inner:g}, {outer:g}] m"
            )

    def _check_history(self) -> None:
        first = self.history[0]
        if first.status is not ObservationStatus.SUBMITTED or first.at != self.created_at:
            raise InvalidRecord("History must start with (Submitted, created_at)")
        for previous, current in zip(self.history, self.history[1:]):
            if current.status not in ALLOWED_TRANSITIONS[previous.status]:
                raise InvalidRecord(
                    f"History moves from {previous.status.value} to "
                    f"{current.status.value}, which the lifecycle does not allow"
                )
            if current.at < previous.at:
                raise InvalidRecord(
                    f"History entry {current.status.value} at {current.at.isoformat()} "
                    f"precedes the entry before it"
                )
        if self.history[-1].status is not self.status:
            raise InvalidRecord(
                f"Status {self.status.value} does not match last history entry "
                f"{self.history[-1].status.value}"
            )

    @property
    def is_blurred(self) -> bool:
        return self.blur_radius_meters > 0

    def with_status(self, status: ObservationStatus, at: datetime) -> "ObservationRecord":
        """Return a copy advanced to `status` with one history entry appended.

        The record invariants reject edges outside ALLOWED_TRANSITIONS with
        InvalidRecord; observation_service.lifecycle checks first and raises
        the typed transition errors.
        """
        return replace(
            self,
            status=status,
            history=self.history + (StatusChange(status, at),),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for persistence and export collaborators."""
        payload: Dict[str, Any] = {
            "id": self.id,
            "createdAt": self.created_at.isoformat(),
            "exactLocation": self.exact_location.to_dict(),
            "blurRadiusMeters": self.blur_radius_meters,
            "publicLocation": self.public_location.to_dict(include_accuracy=False),
            "status": self.status.value,
            "history": [change.to_dict() for change in self.history],
        }
        if self.attachments is not None:
            payload["attachments"] = self.attachments.to_dict()
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ObservationRecord":
        """Rebuild a record from `to_dict` output.

        Raises:
            InvalidRecord: If the payload is malformed or breaks an invariant
        """
        try:
            exact = Coordinate.from_dict(data["exactLocation"])
            public = Coordinate.from_dict(data["publicLocation"])
            history = tuple(
                StatusChange(
                    status=ObservationStatus(entry["state"]),
                    at=datetime.fromisoformat(entry["at"]),
                )
                for entry in data["history"]
            )
            if not history:
                raise InvalidRecord("Record payload has an empty history")
            blur_radius = data["blurRadiusMeters"]
            # publicLocation is serialized without accuracy
            if blur_radius == 0 and (public.latitude, public.longitude) != (
                exact.latitude, exact.longitude
            ):
                raise InvalidRecord("Unblurred record must expose its exact location")
            attachments = data.get("attachments")
            return cls(
                id=data["id"],
                created_at=datetime.fromisoformat(data["createdAt"]),
                exact_location=exact,
                blur_radius_meters=blur_radius,
                public_location=public if blur_radius else exact,
                status=ObservationStatus(data["status"]),
                history=history,
                attachments=Attachments.from_dict(attachments) if attachments else None,
            )
        except (KeyError, TypeError, ValueError) as e:
            if isinstance(e, InvalidCoordinate):
                raise InvalidRecord(f"Invalid location in record payload: {e}")
            raise InvalidRecord(f"Malformed record payload: {e}")
