"""Shared fixtures: a file-backed SQLite store per test."""

from collections.abc import Awaitable, Callable

import pytest

from gallery_arena.core.config import ArenaConfig, StoreConfig
from gallery_arena.models import Gallery, Item
from gallery_arena.services.arena import ArenaService
from gallery_arena.services.storage import ArenaStore

GalleryFactory = Callable[..., Awaitable[tuple[Gallery, list[Item]]]]


@pytest.fixture
def config(tmp_path):
    return ArenaConfig(store=StoreConfig(database_url=f"sqlite:///{tmp_path / 'arena.db'}"))


@pytest.fixture
def store(config):
    arena_store = ArenaStore(config)
    yield arena_store
    arena_store.close_sync()


@pytest.fixture
def service(config, store):
    return ArenaService(config, store=store)


@pytest.fixture
def make_gallery(store) -> GalleryFactory:
    """Create a gallery with ``count`` items, optionally spread over collections."""

    async def _make(
        handle: str,
        count: int = 2,
        is_public: bool = True,
        collections: list[str | None] | None = None,
    ) -> tuple[Gallery, list[Item]]:
        gallery = await store.catalog.add_gallery(
            owner_id=f"owner-{handle}", display_handle=handle, is_public=is_public
        )
        items = []
        for i in range(count):
            collection = collections[i % len(collections)] if collections else None
            items.append(
                await store.catalog.add_item(
                    gallery.id,
                    media_url=f"https://cdn.example/{handle}/{i}.jpg",
                    collection=collection,
                )
            )
        return gallery, items

    return _make
