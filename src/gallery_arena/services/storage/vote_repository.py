"""Read access to the append-only vote log."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlmodel import Session, col, select

from gallery_arena.core.context import VoteScope
from gallery_arena.models import Vote

from .repository import AsyncRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine


class VoteRepository(AsyncRepository):
    """Query recorded votes. Votes are written by RatingRepository only."""

    def __init__(self, engine: Engine, lock: threading.Lock | None = None) -> None:
        super().__init__(engine, lock)

    async def votes_for_item(self, item_id: str, scope: VoteScope | None = None) -> list[Vote]:
        """All votes involving an item, oldest first."""

        def _get(session: Session) -> list[Vote]:
            statement = select(Vote).where(
                (col(Vote.winner_id) == item_id) | (col(Vote.loser_id) == item_id)
            )
            if scope is not None:
                statement = statement.where(col(Vote.scope) == scope)
            return list(session.exec(statement.order_by(col(Vote.created_at))).all())

        return await self._run_session("votes_for_item", _get)

    async def count_by_scope(self) -> dict[VoteScope, int]:
        def _count(session: Session) -> dict[VoteScope, int]:
            statement = select(Vote.scope, func.count(col(Vote.id))).group_by(col(Vote.scope))
            counts = {scope: 0 for scope in VoteScope}
            for scope, total in session.exec(statement).all():
                counts[VoteScope(scope)] = total
            return counts

        return await self._run_session("count_votes", _count)
