"""Shared async repository helpers for SQLModel session work."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from contextlib import nullcontext
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import structlog
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel

from gallery_arena.core.errors import StoreUnavailable

if TYPE_CHECKING:
    from sqlalchemy import Engine

T = TypeVar("T")

logger = structlog.get_logger()


class AsyncRepository(Generic[T]):
    """Wrap sync SQLModel session work for async callers."""

    def __init__(self, engine: Engine, lock: threading.Lock | None = None) -> None:
        self._engine = engine
        # Held around every session when all sessions share one connection
        self._lock = lock

    async def _run_session(self, operation: str, fn: Callable[[Session], T]) -> T:
        """Run a sync function inside a Session on a worker thread.

        Database failures surface as StoreUnavailable; the session rolls back
        on exit so nothing is half-applied.
        """

        def _run() -> T:
            with self._lock or nullcontext(), Session(self._engine) as session:
                return fn(session)

        try:
            return await asyncio.to_thread(_run)
        except SQLAlchemyError as e:
            logger.error("store_failure", operation=operation, error=str(e))
            raise StoreUnavailable(operation, type(e).__name__) from e


def insert_ignore(session: Session, model: type[SQLModel], values: dict[str, Any]) -> None:
    """Insert a row unless its primary key already exists.

    Uses the dialect's ON CONFLICT DO NOTHING so concurrent first-time inserts
    of the same key do not fail.
    """
    dialect = session.get_bind().dialect.name
    table = model.__table__  # type: ignore[attr-defined]
    if dialect == "sqlite":
        stmt = sqlite.insert(table).values(**values).on_conflict_do_nothing()
    elif dialect == "postgresql":
        stmt = postgresql.insert(table).values(**values).on_conflict_do_nothing()
    else:
        pk = [c.name for c in table.primary_key.columns]
        if session.get(model, tuple(values[name] for name in pk)) is not None:
            return
        session.add(model.model_validate(values))
        session.flush()
        return
    session.execute(stmt)
