"""Typed failures for the geo-privacy core.

Validation is local and synchronous: callers receive one of these errors
instead of a silently corrected value. The only clamped input is the blur
radius (see PrivacyPolicy.resolve_blur_radius).
"""


class GeoPrivacyError(Exception):
    """Base class for geo-privacy core failures."""

    error_code = "GEO_PRIVACY_ERROR"


class InvalidCoordinate(GeoPrivacyError, ValueError):
    """Latitude/longitude out of range or not finite."""

    error_code = "INVALID_COORDINATE"


class InvalidArgument(GeoPrivacyError, ValueError):
    """Negative, zero or non-finite value where a positive one is required."""

    error_code = "INVALID_ARGUMENT"


class InvalidPrivacyConfig(GeoPrivacyError):
    """Non-positive epsilon or k in a PrivacyConfig."""

    error_code = "INVALID_PRIVACY_CONFIG"


class TerminalStateViolation(GeoPrivacyError):
    """Transition attempted from a terminal lifecycle state."""

    error_code = "TERMINAL_STATE_VIOLATION"


class IllegalTransition(GeoPrivacyError):
    """Transition not present in the lifecycle graph."""

    error_code = "ILLEGAL_TRANSITION"


class InvalidRecord(GeoPrivacyError):
    """Serialized observation payload breaks a record invariant."""

    error_code = "INVALID_RECORD"
