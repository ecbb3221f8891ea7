"""Observation Service: record creation, lifecycle and read views.

This service:
1. Resolves the blur radius and derives the public location once
2. Validates and records status transitions
3. Projects records for map and distance collaborators
4. Serializes records for persistence and export collaborators
"""

from .handler import ObservationHandler, new_observation_id
from .lifecycle import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATES,
    apply_transition,
    can_transition,
    validate_transition,
)
from .views import MapView, distance_to_record, map_view

__all__ = [
    "ObservationHandler",
    "new_observation_id",
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATES",
    "apply_transition",
    "can_transition",
    "validate_transition",
    "MapView",
    "distance_to_record",
    "map_view",
]
