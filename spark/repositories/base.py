"""
Base repository implementing common CRUD operations using SQLAlchemy 2.0.

Concrete repositories subclass ``BaseRepository`` for one model each.  All
methods take the ``AsyncSession`` explicitly so that a whole request shares
one transaction and services never hold a session of their own.
"""

from __future__ import annotations

import logging
from typing import Generic, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import delete as sql_delete
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Generic base repository for CRUD operations.

    Type Parameters:
        T: The SQLAlchemy model type this repository manages

    Example:
        class SwipeRepository(BaseRepository[Swipe]):
            def __init__(self):
                super().__init__(Swipe)
    """

    def __init__(self, model: Type[T]):
        self.model = model

    async def get(self, db: AsyncSession, id: UUID) -> Optional[T]:
        """Retrieve a single record by primary key, or ``None``."""
        try:
            stmt = select(self.model).where(self.model.id == id)
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching {self.model.__name__} by id {id}: {e}")
            raise

    async def create(self, db: AsyncSession, obj_in: dict) -> T:
        """
        Create a new record and flush it.

        Raises:
            IntegrityError: If a constraint is violated.  The caller decides
                whether that is a conflict or an idempotent no-op; callers
                that want to recover must wrap the call in a savepoint
                (see ``create_in_savepoint``).
        """
        try:
            db_obj = self.model(**obj_in)
            db.add(db_obj)
            await db.flush()
            return db_obj
        except IntegrityError as e:
            logger.warning(f"Integrity error creating {self.model.__name__}: {e.orig}")
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error creating {self.model.__name__}: {e}")
            raise

    async def create_in_savepoint(self, db: AsyncSession, obj_in: dict) -> Optional[T]:
        """
        Insert inside a SAVEPOINT; return ``None`` if a unique constraint fired.

        Only the savepoint is rolled back, so the surrounding request
        transaction (and everything it already wrote) stays usable.
        """
        try:
            async with db.begin_nested():
                db_obj = self.model(**obj_in)
                db.add(db_obj)
                await db.flush()
            return db_obj
        except IntegrityError as e:
            logger.info(
                f"Concurrent insert lost for {self.model.__name__}, "
                f"existing row wins: {e.orig}"
            )
            return None

    async def update(self, db: AsyncSession, db_obj: T, obj_in: dict) -> T:
        """Apply the given fields to ``db_obj`` and flush."""
        try:
            for field, value in obj_in.items():
                if hasattr(db_obj, field):
                    setattr(db_obj, field, value)
            await db.flush()
            return db_obj
        except SQLAlchemyError as e:
            logger.error(f"Error updating {self.model.__name__}: {e}")
            raise

    async def delete(self, db: AsyncSession, id: UUID) -> bool:
        """Delete a record by primary key; ``True`` if a row was removed."""
        try:
            stmt = sql_delete(self.model).where(self.model.id == id)
            result = await db.execute(stmt)
            await db.flush()
            return result.rowcount > 0
        except SQLAlchemyError as e:
            logger.error(f"Error deleting {self.model.__name__} with id {id}: {e}")
            raise

    async def count(self, db: AsyncSession) -> int:
        try:
            stmt = select(func.count()).select_from(self.model)
            result = await db.execute(stmt)
            return result.scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Error counting {self.model.__name__}: {e}")
            raise
