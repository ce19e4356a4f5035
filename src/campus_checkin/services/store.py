"""Asynchronous record store over SQLAlchemy sessions.

The attendance core only needs "insert row", "update rows where", "select
rows where" and "count rows where". Each call runs in a worker thread with
its own session and is bounded by a timeout. Failures surface as
``StorageError`` and are never retried here, so an attendance write cannot
be double-submitted.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypeVar

from sqlalchemy import ColumnElement, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from campus_checkin.core.errors import StorageError, UniqueViolationError
from campus_checkin.core.settings import settings
from campus_checkin.db.session import Base, get_session_factory

ModelT = TypeVar("ModelT", bound=Base)
ResultT = TypeVar("ResultT")

logger = logging.getLogger(__name__)


class SqlRecordStore:
    """Generic create/read/update access to ORM tables."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | Callable[[], Session],
        timeout_seconds: float | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.timeout_seconds = (
            settings.store_timeout_seconds if timeout_seconds is None else timeout_seconds
        )

    async def _run(self, operation: str, work: Callable[[Session], ResultT]) -> ResultT:
        """Run ``work`` in a worker thread inside its own session and transaction.

        A timeout only stops the caller from waiting: a worker thread cannot be
        interrupted, so it keeps running and may still commit after
        ``StorageError`` was raised. A retried attendance write therefore ends
        in the unique constraint (``DuplicateAttendanceError``), never a second row.

        Raises:
            UniqueViolationError: If a constraint rejected the write.
            StorageError: On any other database failure or on timeout.
        """

        def _in_thread() -> ResultT:
            with self._session_factory() as session:
                try:
                    result = work(session)
                    session.commit()
                    return result
                except BaseException:
                    session.rollback()
                    raise

        try:
            return await asyncio.wait_for(asyncio.to_thread(_in_thread), self.timeout_seconds)
        except IntegrityError as err:
            raise UniqueViolationError(f"{operation} violated a constraint") from err
        except SQLAlchemyError as err:
            logger.error("Record store %s failed: %s", operation, err)
            raise StorageError() from err
        except TimeoutError as err:
            logger.error("Record store %s timed out after %.1fs", operation, self.timeout_seconds)
            raise StorageError() from err

    async def insert(self, model: type[ModelT], **values: Any) -> ModelT:
        """Insert one row and return the flushed instance."""

        def _work(session: Session) -> ModelT:
            row = model(**values)
            session.add(row)
            session.flush()
            session.refresh(row)
            session.expunge(row)
            return row

        return await self._run(f"insert into {model.__tablename__}", _work)

    async def select(
        self,
        model: type[ModelT],
        *criteria: ColumnElement[bool],
        order_by: Sequence[Any] = (),
        limit: int | None = None,
    ) -> list[ModelT]:
        """Return rows of ``model`` matching every criterion."""

        def _work(session: Session) -> list[ModelT]:
            stmt = select(model).where(*criteria).order_by(*order_by)
            if limit is not None:
                stmt = stmt.limit(limit)
            rows = list(session.scalars(stmt))
            session.expunge_all()
            return rows

        return await self._run(f"select from {model.__tablename__}", _work)

    async def first(self, model: type[ModelT], *criteria: ColumnElement[bool]) -> ModelT | None:
        rows = await self.select(model, *criteria, limit=1)
        return rows[0] if rows else None

    async def count(self, model: type[ModelT], *criteria: ColumnElement[bool]) -> int:
        def _work(session: Session) -> int:
            stmt = select(func.count()).select_from(model).where(*criteria)
            return int(session.scalar(stmt) or 0)

        return await self._run(f"count {model.__tablename__}", _work)

    async def update(
        self,
        model: type[ModelT],
        criteria: Sequence[ColumnElement[bool]],
        patch: Mapping[str, Any],
    ) -> int:
        """Apply ``patch`` to rows matching ``criteria``; return the row count."""

        def _work(session: Session) -> int:
            result = session.execute(update(model).where(*criteria).values(**patch))
            return int(result.rowcount or 0)

        return await self._run(f"update {model.__tablename__}", _work)


def get_record_store() -> SqlRecordStore:
    """Return a record store bound to the application's session factory."""
    return SqlRecordStore(get_session_factory())
