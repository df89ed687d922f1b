"""Atomic rating updates and the community ledger."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import update
from sqlmodel import Session, col, select

from gallery_arena.core.context import VoteScope
from gallery_arena.core.errors import InvalidReference
from gallery_arena.models import CommunityRating, Gallery, Item, Vote
from gallery_arena.ranking import EloUpdate

from .repository import AsyncRepository, insert_ignore

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()


@dataclass(frozen=True)
class VoteRequest:
    """A vote to apply, with the ledger settings that shape it."""

    winner_id: str
    loser_id: str
    scope: VoteScope
    voter_id: str | None = None
    deduplicate: bool = False
    win_points: int = 10
    loss_points: int = -5


@dataclass(frozen=True)
class AppliedVote:
    """Ratings after a vote and whether the update was written."""

    vote_id: str | None
    winner_rating: float
    loser_rating: float
    update: EloUpdate | None
    applied: bool


class RatingRepository(AsyncRepository):
    """Apply votes to personal ratings or the community ledger.

    Every counter change is an in-database increment (``col = col + delta``),
    and both items plus the vote record share one transaction. The write
    lock is taken before the pre-vote ratings are read, so concurrent votes
    on the same item each see the rating the previous one left.
    """

    def __init__(
        self,
        engine: Engine,
        initial_rating: float = 1500.0,
        lock: threading.Lock | None = None,
    ) -> None:
        super().__init__(engine, lock)
        self.initial_rating = initial_rating

    async def apply_vote(
        self,
        request: VoteRequest,
        rule: Callable[[float, float], EloUpdate],
    ) -> AppliedVote:
        """Validate both items, apply the rule and append the vote record.

        Args:
            request: The vote to apply.
            rule: Computes the rating update from (winner, loser) ratings.

        Returns:
            AppliedVote with post-vote ratings.

        Raises:
            InvalidReference: Either item is unknown or inactive, or both ids match.
            StoreUnavailable: The database failed; nothing was written.
        """

        def _apply(session: Session) -> AppliedVote:
            _lock_pair(session, request.winner_id, request.loser_id)
            winner, loser = _load_pair(session, request.winner_id, request.loser_id)

            if request.deduplicate and request.voter_id is not None:
                previous = _find_previous_vote(session, request)
                if previous is not None:
                    ratings = _current_ratings(session, request, winner, loser, self.initial_rating)
                    logger.info("vote_deduplicated", previous_vote=previous.id)
                    return AppliedVote(None, ratings[0], ratings[1], None, applied=False)

            now = datetime.now(UTC)
            if request.scope is VoteScope.COMMUNITY:
                result = self._apply_community(session, request, winner, loser, rule, now)
            else:
                result = _apply_personal(session, winner, loser, rule, now)

            vote = Vote(
                winner_id=winner.id,
                loser_id=loser.id,
                scope=request.scope,
                voter_id=request.voter_id,
                winner_rating_before=result.winner_before,
                loser_rating_before=result.loser_before,
                created_at=now,
            )
            vote_id = vote.id
            session.add(vote)
            session.flush()

            session.expire_all()
            winner_rating, loser_rating = _current_ratings(
                session, request, winner, loser, self.initial_rating
            )
            session.commit()
            return AppliedVote(vote_id, winner_rating, loser_rating, result, applied=True)

        return await self._run_session("apply_vote", _apply)

    def _apply_community(
        self,
        session: Session,
        request: VoteRequest,
        winner: Item,
        loser: Item,
        rule: Callable[[float, float], EloUpdate],
        now: datetime,
    ) -> EloUpdate:
        for item in (winner, loser):
            insert_ignore(
                session,
                CommunityRating,
                {
                    "item_id": item.id,
                    "gallery_id": item.gallery_id,
                    "rating": self.initial_rating,
                    "created_at": now,
                },
            )
        winner_row = session.get(CommunityRating, winner.id)
        loser_row = session.get(CommunityRating, loser.id)
        result = rule(winner_row.rating, loser_row.rating)

        session.execute(
            update(CommunityRating)
            .where(col(CommunityRating.item_id) == winner.id)
            .values(
                rating=col(CommunityRating.rating) + result.winner_delta,
                wins=col(CommunityRating.wins) + 1,
                points=col(CommunityRating.points) + request.win_points,
                last_voted_at=now,
            )
        )
        session.execute(
            update(CommunityRating)
            .where(col(CommunityRating.item_id) == loser.id)
            .values(
                rating=col(CommunityRating.rating) + result.loser_delta,
                losses=col(CommunityRating.losses) + 1,
                points=col(CommunityRating.points) + request.loss_points,
                last_voted_at=now,
            )
        )
        return result

    async def community_ledger(
        self, item_ids: list[str] | None = None
    ) -> dict[str, CommunityRating]:
        """Community ledger rows keyed by item id (all rows when item_ids is None)."""

        def _get(session: Session) -> dict[str, CommunityRating]:
            statement = select(CommunityRating)
            if item_ids is not None:
                if not item_ids:
                    return {}
                statement = statement.where(col(CommunityRating.item_id).in_(item_ids))
            return {row.item_id: row for row in session.exec(statement).all()}

        return await self._run_session("community_ledger", _get)


def _lock_pair(session: Session, winner_id: str, loser_id: str) -> None:
    """Take the write lock covering both items before any rating is read.

    SQLite only opens its transaction at the first write, so a no-op UPDATE
    claims the database write lock up front. Other backends lock the two
    item rows, in id order.
    """
    item_ids = sorted({winner_id, loser_id})
    if session.get_bind().dialect.name == "sqlite":
        session.execute(
            update(Item).where(col(Item.id).in_(item_ids)).values(rating=col(Item.rating))
        )
    else:
        session.exec(
            select(Item).where(col(Item.id).in_(item_ids)).order_by(col(Item.id)).with_for_update()
        ).all()


def _load_pair(session: Session, winner_id: str, loser_id: str) -> tuple[Item, Item]:
    if winner_id == loser_id:
        raise InvalidReference(winner_id, "winner and loser must differ")

    items: list[Item] = []
    for item_id in (winner_id, loser_id):
        item = session.get(Item, item_id)
        if item is None or not item.is_active:
            raise InvalidReference(item_id)
        gallery = session.get(Gallery, item.gallery_id)
        if gallery is None or not gallery.is_active:
            raise InvalidReference(item_id, "item's gallery is inactive")
        items.append(item)
    return items[0], items[1]


def _find_previous_vote(session: Session, request: VoteRequest) -> Vote | None:
    statement = select(Vote).where(
        col(Vote.voter_id) == request.voter_id,
        col(Vote.winner_id) == request.winner_id,
        col(Vote.loser_id) == request.loser_id,
        col(Vote.scope) == request.scope,
    )
    return session.exec(statement).first()


def _apply_personal(
    session: Session,
    winner: Item,
    loser: Item,
    rule: Callable[[float, float], EloUpdate],
    now: datetime,
) -> EloUpdate:
    result = rule(winner.rating, loser.rating)

    session.execute(
        update(Item)
        .where(col(Item.id) == winner.id)
        .values(
            rating=col(Item.rating) + result.winner_delta,
            win_count=col(Item.win_count) + 1,
            last_voted_at=now,
        )
    )
    session.execute(
        update(Item)
        .where(col(Item.id) == loser.id)
        .values(
            rating=col(Item.rating) + result.loser_delta,
            loss_count=col(Item.loss_count) + 1,
            last_voted_at=now,
        )
    )
    return result


def _current_ratings(
    session: Session,
    request: VoteRequest,
    winner: Item,
    loser: Item,
    initial_rating: float,
) -> tuple[float, float]:
    """Read the ratings the given scope currently holds for both items."""
    if request.scope is VoteScope.COMMUNITY:
        winner_row = session.get(CommunityRating, winner.id)
        loser_row = session.get(CommunityRating, loser.id)
        return (
            winner_row.rating if winner_row else initial_rating,
            loser_row.rating if loser_row else initial_rating,
        )
    fresh_winner = session.get(Item, winner.id)
    fresh_loser = session.get(Item, loser.id)
    return fresh_winner.rating, fresh_loser.rating
