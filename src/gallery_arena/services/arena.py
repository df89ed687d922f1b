"""Public surface of the rating engine."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from gallery_arena.core.config import ArenaConfig
from gallery_arena.core.context import MatchupScope, VoterContext, VoteScope
from gallery_arena.core.errors import QuotaExceeded
from gallery_arena.models import Gallery, Item
from gallery_arena.ranking import match_quality
from gallery_arena.services.leaderboard import (
    ArenaSummary,
    GalleryCard,
    GalleryReport,
    Leaderboard,
    RankingAggregator,
)
from gallery_arena.services.match import Matchup, MatchupSelector, NotEnoughItems, remember_shown
from gallery_arena.services.quota import AnonymousQuotaGate, QuotaStatus
from gallery_arena.services.storage import ArenaStore
from gallery_arena.services.voting import RatingUpdater, VoteOutcome

logger = structlog.get_logger()


@dataclass(frozen=True)
class ItemView:
    """What a voter sees of one side of a matchup."""

    item_id: str
    gallery_id: str
    display_handle: str
    media_url: str
    rating: float


@dataclass(frozen=True)
class MatchupResponse:
    """A matchup ready for display.

    Attributes:
        scope: Pool the pair was drawn from.
        item_a: First item.
        item_b: Second item.
        match_quality: 1.0 for evenly rated items, lower for mismatches.
        recent_gallery_ids: Exclusion window to send back on the next request.
        quota: Caller's remaining anonymous allowance.
        used_fallback: The exclusion window or sub-grouping had to be relaxed.
    """

    scope: MatchupScope
    item_a: ItemView
    item_b: ItemView
    match_quality: float
    recent_gallery_ids: tuple[str, ...]
    quota: QuotaStatus
    used_fallback: bool = False


class ArenaService:
    """Composes the selector, updater, aggregator and quota gate over one store."""

    def __init__(self, config: ArenaConfig, store: ArenaStore | None = None) -> None:
        """Initialize the service.

        Args:
            config: Engine configuration.
            store: Storage layer; created from ``config.store`` when omitted.
        """
        self.config = config
        self.store = store or ArenaStore(config)
        self.selector = MatchupSelector(self.store.catalog, seed=config.matchup.seed)
        self.updater = RatingUpdater(config, self.store)
        self.aggregator = RankingAggregator(config, self.store)
        self.quota_gate = AnonymousQuotaGate(config, self.store)

    async def matchup(
        self,
        scope: MatchupScope,
        context: VoterContext,
    ) -> MatchupResponse | NotEnoughItems:
        """Fetch two items to compare.

        Anonymous callers spend one unit of their allowance per fetch, before
        selection runs.

        Raises:
            QuotaExceeded: Anonymous allowance is used up.
            ValueError: Anonymous caller without an anonymous identity.
        """
        status = await self.quota_gate.check_and_consume(context)
        if not status.allowed:
            raise QuotaExceeded(remaining=status.remaining or 0)

        result = await self.selector.select(scope, context.recent_gallery_ids)
        if isinstance(result, NotEnoughItems):
            return result

        item_a, item_b = await self._views(result)
        logger.debug(
            "matchup_served",
            scope=scope.kind.value,
            item_a=item_a.item_id,
            item_b=item_b.item_id,
        )
        return MatchupResponse(
            scope=scope,
            item_a=item_a,
            item_b=item_b,
            match_quality=match_quality(item_a.rating, item_b.rating),
            recent_gallery_ids=remember_shown(
                context.recent_gallery_ids,
                result,
                self.config.matchup.exclusion_window,
            ),
            quota=status,
            used_fallback=result.used_fallback,
        )

    async def _views(self, matchup: Matchup) -> tuple[ItemView, ItemView]:
        galleries = await self.store.catalog.get_galleries(list(set(matchup.gallery_ids)))
        ratings = {
            matchup.item_a.id: matchup.item_a.rating,
            matchup.item_b.id: matchup.item_b.rating,
        }

        if matchup.scope.kind is VoteScope.COMMUNITY:
            ledger = await self.store.ratings.community_ledger(list(ratings))
            initial = self.config.rating.initial_rating
            ratings = {
                item_id: ledger[item_id].rating if item_id in ledger else initial
                for item_id in ratings
            }

        def _view(item: Item) -> ItemView:
            gallery: Gallery | None = galleries.get(item.gallery_id)
            return ItemView(
                item_id=item.id,
                gallery_id=item.gallery_id,
                display_handle=gallery.display_handle if gallery else "",
                media_url=item.media_url,
                rating=ratings[item.id],
            )

        return _view(matchup.item_a), _view(matchup.item_b)

    async def vote(
        self,
        winner_id: str,
        loser_id: str,
        scope: VoteScope,
        context: VoterContext,
    ) -> VoteOutcome:
        """Record the caller's choice of ``winner_id`` over ``loser_id``."""
        return await self.updater.record_vote(winner_id, loser_id, scope, voter_id=context.voter_id)

    async def leaderboard(
        self,
        scope: VoteScope = VoteScope.COMMUNITY,
        min_votes: int | None = None,
    ) -> Leaderboard:
        """Gallery leaderboard for the given ledger."""
        return await self.aggregator.rank_galleries(scope, min_votes=min_votes)

    async def top_items(
        self,
        scope: VoteScope = VoteScope.PERSONAL,
        min_votes: int | None = None,
        limit: int | None = None,
    ) -> Leaderboard:
        return await self.aggregator.rank_items(scope, min_votes=min_votes, limit=limit)

    async def gallery(
        self,
        gallery_id: str,
        scope: VoteScope = VoteScope.PERSONAL,
    ) -> GalleryReport | None:
        return await self.aggregator.rank_items_within_gallery(gallery_id, scope)

    async def galleries(self) -> list[GalleryCard]:
        return await self.aggregator.list_galleries()

    async def stats(self) -> ArenaSummary:
        return await self.aggregator.summary()

    async def quota(self, context: VoterContext) -> QuotaStatus:
        """Caller's allowance, without consuming any."""
        return await self.quota_gate.peek(context)

    async def close(self) -> None:
        await self.store.close()
