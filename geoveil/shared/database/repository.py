"""Repository pattern for observation storage.

The core never touches storage directly: lifecycle operations call
through an injected ObservationRepository. Persistence mechanics belong to
the storage collaborator; an in-memory implementation is provided for
development and tests.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, Generic, List, Optional, TypeVar

from geoveil.shared.models import ObservationRecord

logger = logging.getLogger(__name__)

T = TypeVar('T')


class RepositoryError(Exception):
    """Base exception for repository errors."""
    pass


class NotFoundError(RepositoryError):
    """Entity not found in storage."""
    pass


class DuplicateError(RepositoryError):
    """Duplicate entity already exists."""
    pass


class BaseRepository(ABC, Generic[T]):
    """Abstract repository with the operations the core relies on."""

    @abstractmethod
    def list(self) -> List[T]:
        """Return every stored entity, oldest first."""
        pass

    @abstractmethod
    def save(self, entity: T) -> T:
        """Insert or replace an entity.

        Returns:
            Saved entity
        """
        pass

    @abstractmethod
    def delete(self, entity_id: str) -> bool:
        """Delete entity by ID.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    def find_by_id(self, entity_id: str) -> Optional[T]:
        """Return entity if found, None otherwise."""
        pass

    def get(self, entity_id: str) -> T:
        """Like find_by_id, but raises NotFoundError."""
        entity = self.find_by_id(entity_id)
        if entity is None:
            raise NotFoundError(f"No entity with id {entity_id}")
        return entity

    def count(self) -> int:
        return len(self.list())


class ObservationRepository(BaseRepository[ObservationRecord]):
    """Storage interface for observation records."""

    def insert(self, record: ObservationRecord) -> ObservationRecord:
        """Save a new record, refusing to overwrite an existing ID.

        Raises:
            DuplicateError: If a record with the same ID exists
        """
        if self.find_by_id(record.id) is not None:
            logger.error(
                "OBSERVATION_DUPLICATE_ID",
                extra={"observation_id": record.id}
            )
            raise DuplicateError(f"Observation {record.id} already exists")
        return self.save(record)


class InMemoryObservationRepository(ObservationRepository):
    """Dictionary-backed repository, insertion ordered."""

    def __init__(self):
        self._records: Dict[str, ObservationRecord] = {}

        logger.info(
            "REPOSITORY_INITIALIZED",
            extra={"backend": "memory"}
        )

    def list(self) -> List[ObservationRecord]:
        return list(self._records.values())

    def save(self, entity: ObservationRecord) -> ObservationRecord:
        self._records[entity.id] = entity
        return entity

    def delete(self, entity_id: str) -> bool:
        return self._records.pop(entity_id, None) is not None

    def find_by_id(self, entity_id: str) -> Optional[ObservationRecord]:
        return self._records.get(entity_id)
