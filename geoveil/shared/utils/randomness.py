"""Random-bit sources for privacy-relevant sampling.

Ring sampling and count noise are the whole privacy mechanism, so the
default source is the operating system CSPRNG. An adversary who sees
several public points must not be able to recover or replay the stream.

The seeded source exists for deterministic tests only and must never be
wired into production code paths.
"""
import logging
import random
import secrets
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    """Minimal interface the samplers draw from."""

    def uniform(self, low: float, high: float) -> float:
        """Return a float in [low, high]."""
        ...

    def random(self) -> float:
        """Return a float in [0.0, 1.0)."""
        ...


class SecureRandomSource:
    """Cryptographically secure source backed by `secrets.SystemRandom`."""

    def __init__(self):
        self._rng = secrets.SystemRandom()

    def uniform(self, low: float, high: float) -> float:
        return self._rng.uniform(low, high)

    def random(self) -> float:
        return self._rng.random()


class SeededRandomSource:
    """Reproducible, NON-cryptographic source for tests.

    Logs a warning on construction so accidental production use is visible.
    """

    def __init__(self, seed: int):
        self._rng = random.Random(seed)
        logger.warning(
            "INSECURE_RANDOM_SOURCE_CREATED",
            extra={"seed_provided": True, "action": "use_only_in_tests"}
        )

    def uniform(self, low: float, high: float) -> float:
        return self._rng.uniform(low, high)

    def random(self) -> float:
        return self._rng.random()


_default_source: Optional[RandomSource] = None


def default_random_source() -> RandomSource:
    """Return the process-wide secure random source."""
    global _default_source
    if _default_source is None:
        _default_source = SecureRandomSource()
    return _default_source
