"""Base repository with common database operations."""
from typing import TypeVar, Generic, Type, Optional, List, Any
from sqlalchemy.orm import Session
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy import asc
from uuid import UUID
import logging

from src.app.exceptions import MatchStoreError, MatchStoreUnavailable
from src.db.base import Base

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)

# Failures meaning the database cannot be reached, as opposed to one bad statement
CONNECTION_ERRORS = (OperationalError, InterfaceError, DisconnectionError)


class BaseRepository(Generic[ModelType]):
    """Base repository with common database operations."""

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    def get(self, id: UUID) -> Optional[ModelType]:
        """
        Get record by ID.

        Args:
            id: Record UUID

        Returns:
            Model instance or None if not found
        """
        return self.db.query(self.model).filter(self.model.id == id).first()

    def get_multi_by_field(
        self,
        field: str,
        value: Any,
        order_by: Optional[str] = None,
    ) -> List[ModelType]:
        """
        Get all records where field equals value.

        Args:
            field: Column name
            value: Value to match
            order_by: Column name to order by (ascending)

        Returns:
            List of model instances
        """
        if not hasattr(self.model, field):
            raise ValueError(f"{self.model.__name__} has no field '{field}'")

        query = self.db.query(self.model).filter(getattr(self.model, field) == value)
        if order_by and hasattr(self.model, order_by):
            query = query.order_by(asc(getattr(self.model, order_by)))
        return query.all()

    def store_error(self, message: str, exc: SQLAlchemyError) -> MatchStoreError:
        """
        Roll back the session and translate a SQLAlchemy failure.

        Returns:
            MatchStoreUnavailable for connection-level failures,
            MatchStoreError otherwise
        """
        try:
            self.db.rollback()
        except SQLAlchemyError as rollback_error:
            logger.warning(f"Rollback failed after store error: {rollback_error}")

        if isinstance(exc, CONNECTION_ERRORS):
            return MatchStoreUnavailable(f"{message}: {exc}")
        return MatchStoreError(f"{message}: {exc}")
