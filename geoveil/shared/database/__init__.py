"""Storage interfaces for the geo-privacy core.

The core depends only on the repository interface; the storage
collaborator supplies the implementation.
"""

from .repository import (
    BaseRepository,
    ObservationRepository,
    InMemoryObservationRepository,
    RepositoryError,
    NotFoundError,
    DuplicateError,
)

__all__ = [
    "BaseRepository",
    "ObservationRepository",
    "InMemoryObservationRepository",
    "RepositoryError",
    "NotFoundError",
    "DuplicateError",
]
