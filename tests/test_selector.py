"""Tests for matchup selection."""

import random
from collections import Counter

from gallery_arena.core.context import MatchupScope
from gallery_arena.models import Item
from gallery_arena.services.match import (
    Matchup,
    MatchupSelector,
    NotEnoughItems,
    draw_pair,
    remember_shown,
)


def _matchup(gallery_a: str, gallery_b: str) -> Matchup:
    return Matchup(
        MatchupScope.community(),
        Item(gallery_id=gallery_a),
        Item(gallery_id=gallery_b),
    )


class TestDrawPair:
    """Tests for the uniform pair draw."""

    def test_too_small_pool(self):
        rng = random.Random(1)
        assert draw_pair([], str, rng) is None
        assert draw_pair(["only"], str, rng) is None

    def test_pair_is_distinct(self):
        rng = random.Random(7)
        for _ in range(50):
            first, second, _ = draw_pair(["a", "b", "c"], lambda x: None, rng)
            assert first != second

    def test_prefers_other_group(self):
        """Test the second entry comes from a different group when one exists."""
        pool = [("x", 1), ("x", 2), ("x", 3), ("y", 4)]
        rng = random.Random(3)
        for _ in range(50):
            first, second, fell_back = draw_pair(pool, lambda e: e[0], rng)
            assert first[0] != second[0]
            assert not fell_back

    def test_single_group_falls_back(self):
        pool = [("x", 1), ("x", 2)]
        first, second, fell_back = draw_pair(pool, lambda e: e[0], random.Random(0))
        assert first != second
        assert fell_back

    def test_deterministic_with_seed(self):
        pool = list("abcdefgh")
        assert draw_pair(pool, lambda x: x, random.Random(42)) == draw_pair(
            pool, lambda x: x, random.Random(42)
        )

    def test_first_pick_is_roughly_uniform(self):
        """Test no entry is starved over many draws."""
        pool = list("abcd")
        rng = random.Random(11)
        counts = Counter(draw_pair(pool, lambda x: x, rng)[0] for _ in range(4000))
        assert set(counts) == set(pool)
        assert min(counts.values()) > 800


class TestRememberShown:
    """Tests for the rolling exclusion window."""

    def test_appends_both_galleries(self):
        assert remember_shown((), _matchup("g1", "g2"), window=6) == ("g1", "g2")

    def test_keeps_only_window(self):
        recent = ("g1", "g2", "g3", "g4", "g5")
        assert remember_shown(recent, _matchup("g6", "g7"), window=6) == (
            "g2",
            "g3",
            "g4",
            "g5",
            "g6",
            "g7",
        )

    def test_repeat_moves_to_end(self):
        assert remember_shown(("g1", "g2", "g3"), _matchup("g1", "g4"), window=6) == (
            "g2",
            "g3",
            "g1",
            "g4",
        )

    def test_zero_window_disables(self):
        assert remember_shown(("g1",), _matchup("g2", "g3"), window=0) == ()


class TestPersonalSelection:
    """Tests for matchups inside one gallery."""

    async def test_single_item_gallery_is_exhausted(self, store, make_gallery):
        """Test a one-item pool reports NotEnoughItems."""
        gallery, _ = await make_gallery("solo", count=1)
        selector = MatchupSelector(store.catalog, seed=1)

        result = await selector.select(MatchupScope.personal(gallery.id))

        assert isinstance(result, NotEnoughItems)
        assert result.pool_size == 1

    async def test_empty_gallery_is_exhausted(self, store, make_gallery):
        gallery, _ = await make_gallery("empty", count=0)
        result = await MatchupSelector(store.catalog).select(MatchupScope.personal(gallery.id))
        assert isinstance(result, NotEnoughItems)
        assert result.pool_size == 0

    async def test_pair_comes_from_gallery(self, store, make_gallery):
        gallery, items = await make_gallery("mine", count=4)
        await make_gallery("other", count=4)
        selector = MatchupSelector(store.catalog, seed=5)
        ids = {item.id for item in items}

        for _ in range(10):
            result = await selector.select(MatchupScope.personal(gallery.id))
            assert isinstance(result, Matchup)
            assert result.item_a.id != result.item_b.id
            assert {result.item_a.id, result.item_b.id} <= ids

    async def test_private_gallery_still_has_personal_matchups(self, store, make_gallery):
        gallery, _ = await make_gallery("hidden", count=2, is_public=False)
        result = await MatchupSelector(store.catalog).select(MatchupScope.personal(gallery.id))
        assert isinstance(result, Matchup)

    async def test_prefers_different_collections(self, store, make_gallery):
        """Test the two items come from different collections when possible."""
        gallery, _ = await make_gallery("sets", count=6, collections=["beach", "city", "forest"])
        selector = MatchupSelector(store.catalog, seed=9)

        for _ in range(20):
            result = await selector.select(MatchupScope.personal(gallery.id))
            assert result.item_a.collection != result.item_b.collection
            assert not result.used_fallback

    async def test_inactive_items_excluded(self, store, make_gallery):
        gallery, items = await make_gallery("pruned", count=2)
        await store.catalog.deactivate_item(items[0].id)

        result = await MatchupSelector(store.catalog).select(MatchupScope.personal(gallery.id))

        assert isinstance(result, NotEnoughItems)


class TestCommunitySelection:
    """Tests for matchups across public galleries."""

    async def test_pair_spans_two_galleries(self, store, make_gallery):
        await make_gallery("ana", count=3)
        await make_gallery("ben", count=3)
        await make_gallery("cy", count=3)
        selector = MatchupSelector(store.catalog, seed=2)

        for _ in range(20):
            result = await selector.select(MatchupScope.community())
            assert isinstance(result, Matchup)
            assert result.item_a.gallery_id != result.item_b.gallery_id

    async def test_private_gallery_never_selected(self, store, make_gallery):
        """Test items of a private gallery never appear in community matchups."""
        private, _ = await make_gallery("private", count=5, is_public=False)
        await make_gallery("ana", count=2)
        await make_gallery("ben", count=2)
        selector = MatchupSelector(store.catalog, seed=4)

        for _ in range(40):
            result = await selector.select(MatchupScope.community())
            assert private.id not in result.gallery_ids

    async def test_visibility_change_applies_immediately(self, store, make_gallery):
        ana, _ = await make_gallery("ana", count=2)
        await make_gallery("ben", count=2)
        await store.catalog.set_gallery_visibility(ana.id, is_public=False)

        result = await MatchupSelector(store.catalog).select(MatchupScope.community())

        assert isinstance(result, NotEnoughItems)
        assert result.reason == "fewer than 2 public galleries"

    async def test_single_gallery_is_exhausted(self, store, make_gallery):
        await make_gallery("ana", count=5)
        result = await MatchupSelector(store.catalog).select(MatchupScope.community())
        assert isinstance(result, NotEnoughItems)
        assert result.pool_size == 5

    async def test_empty_pool(self, store):
        result = await MatchupSelector(store.catalog).select(MatchupScope.community())
        assert isinstance(result, NotEnoughItems)
        assert result.pool_size == 0

    async def test_exclusion_window_respected(self, store, make_gallery):
        ana, _ = await make_gallery("ana", count=2)
        ben, _ = await make_gallery("ben", count=2)
        cy, _ = await make_gallery("cy", count=2)
        dee, _ = await make_gallery("dee", count=2)
        selector = MatchupSelector(store.catalog, seed=8)

        for _ in range(20):
            result = await selector.select(MatchupScope.community(), [ana.id, ben.id])
            assert set(result.gallery_ids) == {cy.id, dee.id}
            assert not result.used_fallback

    async def test_exclusion_falls_back_to_full_pool(self, store, make_gallery):
        """Test the window is ignored when it leaves fewer than two galleries."""
        ana, _ = await make_gallery("ana", count=2)
        ben, _ = await make_gallery("ben", count=2)
        cy, _ = await make_gallery("cy", count=2)
        selector = MatchupSelector(store.catalog, seed=8)

        result = await selector.select(MatchupScope.community(), [ana.id, ben.id])

        assert isinstance(result, Matchup)
        assert result.used_fallback
        assert result.item_a.gallery_id != result.item_b.gallery_id
        assert set(result.gallery_ids) <= {ana.id, ben.id, cy.id}

    async def test_selection_writes_nothing(self, store, make_gallery):
        _, items = await make_gallery("ana", count=2)
        await make_gallery("ben", count=2)

        await MatchupSelector(store.catalog).select(MatchupScope.community())

        item = await store.catalog.get_item(items[0].id)
        assert item.rating == 1500.0
        assert item.total_votes == 0
        assert await store.ratings.community_ledger() == {}
