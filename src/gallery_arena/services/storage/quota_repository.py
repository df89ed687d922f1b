"""Anonymous usage counters."""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import update
from sqlmodel import Session, col

from gallery_arena.models import AnonymousUsage

from .repository import AsyncRepository, insert_ignore

if TYPE_CHECKING:
    from sqlalchemy import Engine


class QuotaRepository(AsyncRepository):
    """Per-identity remaining allowance with a compare-and-set decrement."""

    def __init__(self, engine: Engine, lock: threading.Lock | None = None) -> None:
        super().__init__(engine, lock)

    async def consume(self, identity: str, allotment: int) -> tuple[bool, int]:
        """Take one unit of allowance if any is left.

        The row is created with ``allotment`` on first sight. The decrement
        only matches while ``remaining > 0``, so two concurrent calls can
        never both spend the last unit.

        Returns:
            Tuple of (consumed, remaining_after).
        """

        def _consume(session: Session) -> tuple[bool, int]:
            now = datetime.now(UTC)
            insert_ignore(
                session,
                AnonymousUsage,
                {"identity": identity, "remaining": allotment, "first_seen": now, "last_seen": now},
            )
            result = session.execute(
                update(AnonymousUsage)
                .where(col(AnonymousUsage.identity) == identity, col(AnonymousUsage.remaining) > 0)
                .values(remaining=col(AnonymousUsage.remaining) - 1, last_seen=now)
                .execution_options(synchronize_session=False)
            )
            consumed = result.rowcount == 1
            session.expire_all()
            usage = session.get(AnonymousUsage, identity)
            remaining = usage.remaining if usage else 0
            session.commit()
            return consumed, remaining

        return await self._run_session("consume_quota", _consume)

    async def remaining(self, identity: str, allotment: int) -> int:
        """Allowance left without consuming any; unseen identities have the full allotment."""

        def _get(session: Session) -> int:
            usage = session.get(AnonymousUsage, identity)
            return allotment if usage is None else usage.remaining

        return await self._run_session("peek_quota", _get)
