"""Shared utilities for the geo-privacy core."""
from .clock import Clock, ManualClock, SystemClock
from .randomness import (
    RandomSource,
    SecureRandomSource,
    SeededRandomSource,
    default_random_source,
)

__all__ = [
    "Clock",
    "ManualClock",
    "SystemClock",
    "RandomSource",
    "SecureRandomSource",
    "SeededRandomSource",
    "default_random_source",
]
