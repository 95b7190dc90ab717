"""
Base Repository implementation.
Provides common data access patterns shared by all repositories.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TypeVar, Generic, Sequence
from sqlalchemy.orm import Session
from sqlalchemy import Select, select


ModelT = TypeVar("ModelT")

DEFAULT_PAGE_SIZE = 200
MAX_PAGE_SIZE = 1000


@dataclass
class RepositoryFilters:
    """Base filters for repository queries."""

    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0

    def __post_init__(self):
        """Validate and normalize filters."""
        self.limit = min(max(1, self.limit), MAX_PAGE_SIZE)
        self.offset = max(0, self.offset)


class BaseRepository(ABC, Generic[ModelT]):
    """
    Abstract base repository with common operations.

    Repositories never commit: the caller owns the transaction.
    """

    def __init__(self, db: Session):
        self._db = db

    @property
    @abstractmethod
    def model(self) -> type[ModelT]:
        """Return the SQLAlchemy model class."""
        ...

    def _base_query(self) -> Select:
        return select(self.model)

    def find_by_id(self, entity_id: str) -> ModelT | None:
        query = self._base_query().where(self.model.id == entity_id)
        return self._db.scalar(query)

    def find_by_ids(self, entity_ids: list[str]) -> Sequence[ModelT]:
        """
        Find entities by IDs.

        Returns:
            List of entities (order not guaranteed). Unknown IDs are absent.
        """
        if not entity_ids:
            return []

        query = self._base_query().where(self.model.id.in_(entity_ids))
        return self._db.execute(query).scalars().unique().all()

    def save(self, entity: ModelT) -> ModelT:
        """Add and flush an entity (insert or update)."""
        self._db.add(entity)
        self._db.flush()
        return entity
