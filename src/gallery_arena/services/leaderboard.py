"""Confidence-adjusted leaderboards for items and galleries.

Every ranking here goes through :func:`gallery_arena.ranking.rank_score`, so
the gallery leaderboard, the per-gallery view and the top-items list share
one scoring rule. Results are recomputed from the store on every call.
"""

from __future__ import annotations

import dataclasses
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from statistics import mean
from typing import TypeVar

import structlog

from gallery_arena.core.config import ArenaConfig
from gallery_arena.core.context import VoteScope
from gallery_arena.models import CommunityRating, Gallery, Item
from gallery_arena.ranking import ScoreWeights, create_score_weights, rank_score
from gallery_arena.services.storage import ArenaStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class Standing:
    """Accumulated votes for an item or a gallery in one ledger."""

    wins: int
    losses: int
    elo: float
    last_vote_at: datetime | None

    @property
    def total_votes(self) -> int:
        return self.wins + self.losses

    @property
    def win_rate(self) -> float:
        total = self.total_votes
        return self.wins / total if total else 0.0


@dataclass(frozen=True)
class ItemEntry:
    """One item row of a leaderboard."""

    item_id: str
    gallery_id: str
    display_handle: str
    media_url: str
    collection: str | None
    standing: Standing
    score: int | None = None
    rank: int | None = None


@dataclass(frozen=True)
class GalleryEntry:
    """One gallery row of a leaderboard.

    Attributes:
        elo: Mean rating of the gallery's voted items.
        items_rated: Items with at least one vote in this ledger.
        preview_url: Media URL of the gallery's highest-rated item.
    """

    gallery_id: str
    display_handle: str
    standing: Standing
    items_rated: int
    preview_url: str | None
    score: int | None = None
    rank: int | None = None


EntryT = TypeVar("EntryT", ItemEntry, GalleryEntry)


@dataclass(frozen=True)
class Leaderboard:
    """Ranked entries plus the entries without enough votes to rank."""

    scope: VoteScope
    min_votes: int
    ranked: list = field(default_factory=list)
    unranked: list = field(default_factory=list)


@dataclass(frozen=True)
class GalleryReport:
    """A gallery's aggregate standing and its ranked items."""

    gallery: Gallery
    summary: GalleryEntry
    items: Leaderboard


@dataclass(frozen=True)
class GalleryCard:
    """Public gallery directory row."""

    gallery_id: str
    display_handle: str
    item_count: int
    community_votes: int
    community_points: int
    preview_urls: list[str]


@dataclass(frozen=True)
class ArenaSummary:
    """Headline counts for the public stats view."""

    active_items: int
    galleries: int
    public_galleries: int
    votes: dict[VoteScope, int]


def _recency(moment: datetime | None) -> float:
    if moment is None:
        return float("-inf")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.timestamp()


def order_entries(
    entries: Iterable[EntryT],
    min_votes: int,
    weights: ScoreWeights,
) -> tuple[list[EntryT], list[EntryT]]:
    """Score and order entries; split off those below the vote threshold.

    Ranked entries sort by score, then total votes, then most recent vote.
    Entries with zero votes are never ranked, whatever ``min_votes`` says.

    Returns:
        Tuple of (ranked, unranked).
    """
    threshold = max(min_votes, 1)
    ranked: list[EntryT] = []
    unranked: list[EntryT] = []

    for entry in entries:
        standing = entry.standing
        if standing.total_votes < threshold:
            unranked.append(entry)
            continue
        score = rank_score(standing.wins, standing.losses, standing.elo, weights)
        ranked.append(dataclasses.replace(entry, score=score))

    ranked.sort(
        key=lambda e: (e.score, e.standing.total_votes, _recency(e.standing.last_vote_at)),
        reverse=True,
    )
    ranked = [dataclasses.replace(e, rank=i) for i, e in enumerate(ranked, 1)]
    unranked.sort(key=lambda e: (-e.standing.total_votes, e.display_handle))
    return ranked, unranked


def item_standing(
    item: Item,
    scope: VoteScope,
    ledger: dict[str, CommunityRating],
    initial_rating: float,
) -> Standing:
    """Read an item's standing from the ledger matching the scope."""
    if scope is VoteScope.COMMUNITY:
        row = ledger.get(item.id)
        if row is None:
            return Standing(0, 0, initial_rating, None)
        return Standing(row.wins, row.losses, row.rating, row.last_voted_at)
    return Standing(item.win_count, item.loss_count, item.rating, item.last_voted_at)


def gallery_standing(standings: Sequence[Standing], initial_rating: float) -> Standing:
    """Sum counters across a gallery's items; Elo is the mean over voted items."""
    voted = [s for s in standings if s.total_votes]
    elo_pool = voted or standings
    last_votes = [s.last_vote_at for s in voted if s.last_vote_at is not None]
    return Standing(
        wins=sum(s.wins for s in standings),
        losses=sum(s.losses for s in standings),
        elo=mean(s.elo for s in elo_pool) if elo_pool else initial_rating,
        last_vote_at=max(last_votes, key=_recency) if last_votes else None,
    )


class RankingAggregator:
    """Computes leaderboards from the rating store on demand."""

    def __init__(self, config: ArenaConfig, store: ArenaStore) -> None:
        self.config = config
        self.store = store
        self.weights = create_score_weights(config)
        self.initial_rating = config.rating.initial_rating

    async def _ledger_for(self, scope: VoteScope, items: Sequence[Item]) -> dict:
        if scope is not VoteScope.COMMUNITY:
            return {}
        return await self.store.ratings.community_ledger([item.id for item in items])

    def _item_entry(self, item: Item, gallery: Gallery, standing: Standing) -> ItemEntry:
        return ItemEntry(
            item_id=item.id,
            gallery_id=gallery.id,
            display_handle=gallery.display_handle,
            media_url=item.media_url,
            collection=item.collection,
            standing=standing,
        )

    def _gallery_entry(
        self,
        gallery: Gallery,
        members: Sequence[tuple[Item, Standing]],
    ) -> GalleryEntry:
        standings = [standing for _, standing in members]
        top = max(members, key=lambda pair: pair[1].elo, default=None)
        return GalleryEntry(
            gallery_id=gallery.id,
            display_handle=gallery.display_handle,
            standing=gallery_standing(standings, self.initial_rating),
            items_rated=sum(1 for s in standings if s.total_votes),
            preview_url=top[0].media_url if top else None,
        )

    async def rank_galleries(
        self,
        scope: VoteScope = VoteScope.COMMUNITY,
        min_votes: int | None = None,
        limit: int | None = None,
    ) -> Leaderboard:
        """Rank public galleries by the blended score of their items' votes.

        Args:
            scope: Ledger to aggregate (community ledger or personal counters).
            min_votes: Votes a gallery needs to be ranked (config default 5).
            limit: Maximum ranked entries (config default).

        Returns:
            Leaderboard of GalleryEntry rows.
        """
        scope = VoteScope(scope)
        min_votes = self.config.ranking.min_votes if min_votes is None else min_votes
        limit = limit or self.config.ranking.limit

        rows = await self.store.catalog.ranking_rows(public_only=True)
        ledger = await self._ledger_for(scope, [item for item, _ in rows])

        galleries: dict[str, Gallery] = {}
        members: dict[str, list[tuple[Item, Standing]]] = defaultdict(list)
        for item, gallery in rows:
            galleries[gallery.id] = gallery
            standing = item_standing(item, scope, ledger, self.initial_rating)
            members[gallery.id].append((item, standing))

        entries = [self._gallery_entry(galleries[gid], group) for gid, group in members.items()]
        ranked, unranked = order_entries(entries, min_votes, self.weights)
        logger.debug("galleries_ranked", scope=scope.value, ranked=len(ranked))
        return Leaderboard(scope, min_votes, ranked[:limit], unranked)

    async def rank_items(
        self,
        scope: VoteScope = VoteScope.PERSONAL,
        min_votes: int | None = None,
        limit: int | None = None,
    ) -> Leaderboard:
        """Rank individual items across all public galleries."""
        scope = VoteScope(scope)
        min_votes = self.config.ranking.min_votes if min_votes is None else min_votes
        limit = limit or self.config.ranking.limit

        rows = await self.store.catalog.ranking_rows(public_only=True)
        ledger = await self._ledger_for(scope, [item for item, _ in rows])
        entries = [
            self._item_entry(item, gallery, item_standing(item, scope, ledger, self.initial_rating))
            for item, gallery in rows
        ]
        ranked, unranked = order_entries(entries, min_votes, self.weights)
        return Leaderboard(scope, min_votes, ranked[:limit], unranked)

    async def rank_items_within_gallery(
        self,
        gallery_id: str,
        scope: VoteScope = VoteScope.PERSONAL,
    ) -> GalleryReport | None:
        """Rank one gallery's active items; any item with a vote is ranked.

        Returns:
            GalleryReport, or None if the gallery does not exist.
        """
        scope = VoteScope(scope)
        gallery = await self.store.catalog.get_gallery(gallery_id)
        if gallery is None:
            return None

        items = await self.store.catalog.gallery_items(gallery_id)
        ledger = await self._ledger_for(scope, items)
        members = [
            (item, item_standing(item, scope, ledger, self.initial_rating)) for item in items
        ]

        entries = [self._item_entry(item, gallery, standing) for item, standing in members]
        ranked, unranked = order_entries(entries, 1, self.weights)

        summary = self._gallery_entry(gallery, members)
        if summary.standing.total_votes:
            summary = dataclasses.replace(
                summary,
                score=rank_score(
                    summary.standing.wins,
                    summary.standing.losses,
                    summary.standing.elo,
                    self.weights,
                ),
            )
        return GalleryReport(gallery, summary, Leaderboard(scope, 1, ranked, unranked))

    async def list_galleries(self, limit: int | None = None) -> list[GalleryCard]:
        """Public gallery directory, busiest community galleries first."""
        limit = limit or self.config.ranking.limit
        rows = await self.store.catalog.ranking_rows(public_only=True)
        ledger = await self.store.ratings.community_ledger([item.id for item, _ in rows])

        galleries: dict[str, Gallery] = {}
        items: dict[str, list[Item]] = defaultdict(list)
        for item, gallery in rows:
            galleries[gallery.id] = gallery
            items[gallery.id].append(item)

        cards = []
        for gallery_id, members in items.items():
            rows_for_gallery = [ledger[i.id] for i in members if i.id in ledger]
            by_rating = sorted(members, key=lambda i: i.rating, reverse=True)
            cards.append(
                GalleryCard(
                    gallery_id=gallery_id,
                    display_handle=galleries[gallery_id].display_handle,
                    item_count=len(members),
                    community_votes=sum(r.total_votes for r in rows_for_gallery),
                    community_points=sum(r.points for r in rows_for_gallery),
                    preview_urls=[i.media_url for i in by_rating[:4]],
                )
            )
        cards.sort(key=lambda c: (c.community_votes, c.item_count), reverse=True)
        return cards[:limit]

    async def summary(self) -> ArenaSummary:
        """Counts of active items, galleries and recorded votes."""
        galleries = await self.store.catalog.list_galleries()
        return ArenaSummary(
            active_items=await self.store.catalog.count_items(),
            galleries=len(galleries),
            public_galleries=sum(1 for g in galleries if g.is_public),
            votes=await self.store.votes.count_by_scope(),
        )
