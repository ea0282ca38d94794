"""DocumentStore backed directly by the database.

Uses the same service functions as the REST routers, one session (and
transaction) per call.  Database connectivity problems surface as
StorageUnavailableError; constraint violations as a
409 BusinessLogicError; any other database failure as StorageError.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quotebook.core.document import DocumentKind
from quotebook.database import async_session
from quotebook.middleware.exceptions import (
    BusinessLogicError,
    StorageError,
    StorageUnavailableError,
)
from quotebook.services import documents
from quotebook.storage.base import Record

logger = logging.getLogger(__name__)


class DatabaseDocumentStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = async_session):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as db:
            try:
                yield db
                await db.commit()
            except OperationalError as exc:
                await db.rollback()
                logger.warning("Database unavailable: %s", exc)
                raise StorageUnavailableError("Database temporarily unavailable") from exc
            except IntegrityError as exc:
                await db.rollback()
                logger.warning("Integrity error: %s", exc.orig)
                raise BusinessLogicError(
                    "Record conflicts with existing data",
                    error_code="CONFLICT",
                    status_code=409,
                ) from exc
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error("Database error: %s", exc)
                raise StorageError("Database operation failed") from exc
            except Exception:
                await db.rollback()
                raise

    async def create(self, kind: DocumentKind, owner_id: str, record: Record) -> Record:
        async with self._session() as db:
            obj = await documents.create_record(db, kind, owner_id, record)
            return documents.record_to_dict(obj)

    async def get(self, kind: DocumentKind, owner_id: str, record_id: str) -> Record:
        async with self._session() as db:
            obj = await documents.get_owned(db, kind, owner_id, record_id)
            return documents.record_to_dict(obj)

    async def update(
        self, kind: DocumentKind, owner_id: str, record_id: str, record: Record
    ) -> Record:
        async with self._session() as db:
            obj = await documents.update_record(db, kind, owner_id, record_id, record)
            return documents.record_to_dict(obj)

    async def delete(self, kind: DocumentKind, owner_id: str, record_id: str) -> None:
        async with self._session() as db:
            await documents.delete_record(db, kind, owner_id, record_id)

    async def list(
        self, kind: DocumentKind, owner_id: str, *, status: str | None = None
    ) -> list[Record]:
        async with self._session() as db:
            rows = await documents.list_records(db, kind, owner_id, status=status)
            return [documents.record_to_dict(row) for row in rows]
