"""
Base repository with standardized CRUD operations and error handling.

Repositories never commit: they add, flush and query inside the unit of
work owned by the calling service, which commits or rolls back.
"""

from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from motorpool.core.exceptions import DuplicateEntryError, RepositoryError, ResourceNotFoundError
from motorpool.core.logging import get_logger
from motorpool.models.base import BaseModel, SoftDeleteMixin

logger = get_logger(__name__)

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository over one model class.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db
        self._is_soft_delete = issubclass(model, SoftDeleteMixin)

    # ==================== Query helpers ====================

    def query(self, include_deleted: bool = False) -> Query:
        """Base query for the model, hiding soft-deleted rows by default."""
        query = self.db.query(self.model)
        if self._is_soft_delete and not include_deleted:
            query = query.filter(self.model.is_deleted.is_(False))
        return query

    def flush(self) -> None:
        """Flush pending changes, mapping constraint violations."""
        try:
            self.db.flush()
        except IntegrityError as e:
            raise self._integrity_error(e) from e
        except SQLAlchemyError as e:
            raise RepositoryError(f"Flush failed: {str(e)}") from e

    def _integrity_error(self, error: IntegrityError) -> Exception:
        logger.warning(f"Integrity error on {self.model.__name__}: {error.orig}")
        return DuplicateEntryError(f"{self.model.__name__} violates a uniqueness or integrity rule")

    # ==================== Create Operations ====================

    def create(self, entity: ModelType) -> ModelType:
        """
        Add a new entity and flush it so generated values are available.

        Raises:
            DuplicateEntryError: If a unique constraint rejects the row
        """
        self.db.add(entity)
        self.flush()
        logger.debug(f"Created {self.model.__name__} with id: {entity.id}")
        return entity

    # ==================== Read Operations ====================

    def find_by_id(self, id: Any, include_deleted: bool = False) -> Optional[ModelType]:
        """
        Find entity by ID.

        Args:
            id: Entity ID
            include_deleted: Include soft-deleted entities

        Returns:
            Entity or None
        """
        if id is None:
            return None
        try:
            return self.query(include_deleted).filter(self.model.id == str(id)).first()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Find by ID failed: {str(e)}") from e

    def get_by_id(self, id: Any, include_deleted: bool = False) -> ModelType:
        """
        Get entity by ID or raise exception.

        Raises:
            ResourceNotFoundError: If entity not found
        """
        entity = self.find_by_id(id, include_deleted)
        if not entity:
            raise ResourceNotFoundError(self.model.__name__, id)
        return entity

    def lock_by_id(self, id: Any) -> Optional[ModelType]:
        """
        Load an entity with a row lock held until the transaction ends.

        SELECT ... FOR UPDATE on backends that support it; SQLite
        serializes writers at the database level instead.
        """
        try:
            return (
                self.db.query(self.model)
                .filter(self.model.id == str(id))
                .populate_existing()
                .with_for_update()
                .first()
            )
        except SQLAlchemyError as e:
            raise RepositoryError(f"Lock by ID failed: {str(e)}") from e

    def find_by_criteria(
        self,
        criteria: Dict[str, Any],
        skip: int = 0,
        limit: Optional[int] = 100,
        order_by: Optional[Sequence[str]] = None,
        include_deleted: bool = False,
    ) -> List[ModelType]:
        """
        Find entities matching criteria.

        Args:
            criteria: Column/value pairs; list or tuple values match with IN
            skip: Number of records to skip
            limit: Maximum number of records, None for all
            order_by: Fields to order by (prefix with - for desc)
            include_deleted: Include soft-deleted entities

        Returns:
            List of matching entities
        """
        try:
            query = self._apply_criteria(self.query(include_deleted), criteria)
            for field in order_by or ("-created_at",):
                if field.startswith("-"):
                    query = query.order_by(getattr(self.model, field[1:]).desc())
                else:
                    query = query.order_by(getattr(self.model, field))
            return self._page(query, skip, limit)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Find by criteria failed: {str(e)}") from e

    # ==================== Update Operations ====================

    def update(self, entity: ModelType, data: Dict[str, Any]) -> ModelType:
        """
        Apply field changes to a loaded entity and flush.

        Unknown keys are ignored.
        """
        for key, value in data.items():
            if hasattr(entity, key):
                setattr(entity, key, value)
        self.flush()
        return entity

    # ==================== Delete Operations ====================

    def delete(self, entity: ModelType) -> None:
        """Physically delete an entity."""
        self.db.delete(entity)
        self.flush()

    def soft_delete(self, entity: ModelType) -> ModelType:
        """Mark a soft-deletable entity deleted."""
        if not self._is_soft_delete:
            raise RepositoryError(f"{self.model.__name__} does not support soft delete")
        entity.soft_delete()
        self.flush()
        return entity

    # ==================== Internals ====================

    def _apply_criteria(self, query: Query, criteria: Dict[str, Any]) -> Query:
        for key, value in criteria.items():
            if value is None or not hasattr(self.model, key):
                continue
            column = getattr(self.model, key)
            if isinstance(value, (list, tuple, set, frozenset)):
                query = query.filter(column.in_(list(value)))
            else:
                query = query.filter(column == value)
        return query

    @staticmethod
    def _page(query: Query, skip: int, limit: Optional[int]) -> List[Any]:
        if skip:
            query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()
