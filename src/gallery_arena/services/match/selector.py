"""Uniform random matchup selection for Gallery Arena."""

from __future__ import annotations

import random
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

import structlog

from gallery_arena.core.context import MatchupScope, VoteScope
from gallery_arena.models import Item

if TYPE_CHECKING:
    from gallery_arena.services.storage import CatalogRepository

logger = structlog.get_logger()

T = TypeVar("T")

MIN_POOL_SIZE = 2


@dataclass(frozen=True)
class Matchup:
    """Two items to show a voter.

    Attributes:
        scope: Pool the pair was drawn from.
        item_a: First item drawn.
        item_b: Second item drawn.
        used_fallback: True when the exclusion window had to be ignored, or
            no item outside the first item's group existed.
    """

    scope: MatchupScope
    item_a: Item
    item_b: Item
    used_fallback: bool = False

    @property
    def gallery_ids(self) -> tuple[str, str]:
        return self.item_a.gallery_id, self.item_b.gallery_id


@dataclass(frozen=True)
class NotEnoughItems:
    """Empty-state result: the pool cannot produce a pair."""

    reason: str
    pool_size: int


def draw_pair(
    pool: Sequence[T],
    group_of: Callable[[T], str | None],
    rng: random.Random,
) -> tuple[T, T, bool] | None:
    """Draw two distinct entries uniformly at random.

    The first entry is uniform over the pool. The second is uniform over the
    entries outside the first one's group, or over every other entry when the
    first one's group is all there is. Ratings play no part.

    Args:
        pool: Candidates to draw from.
        group_of: Sub-group key for an entry.
        rng: Random source.

    Returns:
        (first, second, fell_back) or None when the pool has fewer than two entries.
    """
    if len(pool) < MIN_POOL_SIZE:
        return None

    first_index = rng.randrange(len(pool))
    first = pool[first_index]
    group = group_of(first)

    others = [entry for i, entry in enumerate(pool) if i != first_index]
    different = [entry for entry in others if group_of(entry) != group]
    if different:
        return first, rng.choice(different), False
    return first, rng.choice(others), True


def remember_shown(
    recent: Iterable[str],
    matchup: Matchup,
    window: int,
) -> tuple[str, ...]:
    """Append a matchup's galleries to the rolling exclusion window.

    Most recent last; a gallery shown again moves to the end. Only the last
    ``window`` galleries are kept.
    """
    if window <= 0:
        return ()
    updated = list(recent)
    for gallery_id in matchup.gallery_ids:
        if gallery_id in updated:
            updated.remove(gallery_id)
        updated.append(gallery_id)
    return tuple(updated[-window:])


def _distinct_galleries(items: Iterable[Item]) -> int:
    return len({item.gallery_id for item in items})


class MatchupSelector:
    """Pick two comparable items from a personal or community pool.

    Selection is read-only: it scans the catalog and never writes.
    """

    def __init__(
        self,
        catalog: CatalogRepository,
        seed: int | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the selector.

        Args:
            catalog: Catalog repository providing item pools.
            seed: Seed for a private random generator.
            rng: Random generator to use instead of a seeded one.
        """
        self.catalog = catalog
        self._rng = rng or random.Random(seed)  # noqa: S311

    async def select(
        self,
        scope: MatchupScope,
        excluded_gallery_ids: Sequence[str] = (),
    ) -> Matchup | NotEnoughItems:
        """Select a matchup for the given scope.

        Args:
            scope: Personal gallery pool or community pool.
            excluded_gallery_ids: Recently shown galleries to avoid (community only).

        Returns:
            Matchup, or NotEnoughItems when no pair can be formed.
        """
        if scope.kind is VoteScope.PERSONAL:
            return await self._select_personal(scope)
        return await self._select_community(scope, excluded_gallery_ids)

    async def _select_personal(self, scope: MatchupScope) -> Matchup | NotEnoughItems:
        pool = await self.catalog.personal_pool(scope.gallery_id)
        drawn = draw_pair(pool, lambda item: item.collection, self._rng)
        if drawn is None:
            logger.info("not_enough_items", scope="personal", pool=len(pool))
            return NotEnoughItems("gallery has fewer than 2 active items", len(pool))

        first, second, fell_back = drawn
        return Matchup(scope, first, second, used_fallback=fell_back)

    async def _select_community(
        self,
        scope: MatchupScope,
        excluded_gallery_ids: Sequence[str],
    ) -> Matchup | NotEnoughItems:
        pool = await self.catalog.community_pool()
        if len(pool) < MIN_POOL_SIZE:
            logger.info("not_enough_items", scope="community", pool=len(pool))
            return NotEnoughItems("fewer than 2 public items", len(pool))
        if _distinct_galleries(pool) < MIN_POOL_SIZE:
            logger.info("not_enough_galleries", scope="community", pool=len(pool))
            return NotEnoughItems("fewer than 2 public galleries", len(pool))

        excluded = set(excluded_gallery_ids)
        filtered = [item for item in pool if item.gallery_id not in excluded]
        fell_back = False
        if len(filtered) < MIN_POOL_SIZE or _distinct_galleries(filtered) < MIN_POOL_SIZE:
            logger.debug("exclusion_fallback", excluded=len(excluded), remaining=len(filtered))
            filtered = pool
            fell_back = bool(excluded)

        first, second, _ = draw_pair(filtered, lambda item: item.gallery_id, self._rng)
        return Matchup(scope, first, second, used_fallback=fell_back)
