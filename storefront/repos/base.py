from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import DuplicateRecordError, MissingReferenceError, StoreError


@asynccontextmanager
async def db_errors(operation: str) -> AsyncIterator[None]:
    """Translate SQLAlchemy errors raised inside the block into store errors"""
    try:
        yield
    except IntegrityError as e:
        message = str(e.orig).lower()
        if "foreign key" in message:
            raise MissingReferenceError(f"{operation}: referenced row does not exist") from e
        if "unique" in message or "duplicate" in message:
            raise DuplicateRecordError(f"{operation}: record already exists") from e
        raise StoreError(f"{operation}: integrity error") from e
    except SQLAlchemyError as e:
        raise StoreError(f"{operation}: database error") from e


class SQLRepo:
    """Base class for repositories working on one request-scoped session"""

    def __init__(self, db: AsyncSession):
        self.db = db

    @property
    def dialect_name(self) -> str:
        return self.db.get_bind().dialect.name

    async def commit(self) -> None:
        async with db_errors("commit"):
            await self.db.commit()
