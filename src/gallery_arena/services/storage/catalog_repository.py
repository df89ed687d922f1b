"""Database access for galleries and items."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from sqlalchemy import func, update
from sqlmodel import Session, col, select

from gallery_arena.models import Gallery, Item

from .repository import AsyncRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine
    from sqlmodel.sql.expression import SelectOfScalar


def _active_items() -> SelectOfScalar[Item]:
    return (
        select(Item)
        .join(Gallery, col(Gallery.id) == col(Item.gallery_id))
        .where(col(Item.is_active).is_(True), col(Gallery.is_active).is_(True))
    )


class CatalogRepository(AsyncRepository):
    """Create, soft-delete and scan galleries and their items.

    Galleries and items are normally created by the upload pipeline; the
    write helpers here back the CLI seed command and tests.
    """

    def __init__(
        self,
        engine: Engine,
        initial_rating: float = 1500.0,
        lock: threading.Lock | None = None,
    ) -> None:
        super().__init__(engine, lock)
        self.initial_rating = initial_rating

    async def add_gallery(
        self,
        owner_id: str,
        display_handle: str,
        is_public: bool = True,
        gallery_id: str | None = None,
    ) -> Gallery:
        """Insert a gallery and return it."""

        def _add(session: Session) -> Gallery:
            gallery = Gallery(owner_id=owner_id, display_handle=display_handle, is_public=is_public)
            if gallery_id:
                gallery.id = gallery_id
            session.add(gallery)
            session.commit()
            session.refresh(gallery)
            return gallery

        return await self._run_session("add_gallery", _add)

    async def add_item(
        self,
        gallery_id: str,
        media_url: str = "",
        collection: str | None = None,
        item_id: str | None = None,
    ) -> Item:
        """Insert an item at the initial rating and return it."""

        def _add(session: Session) -> Item:
            item = Item(
                gallery_id=gallery_id,
                media_url=media_url,
                collection=collection,
                rating=self.initial_rating,
            )
            if item_id:
                item.id = item_id
            session.add(item)
            session.commit()
            session.refresh(item)
            return item

        return await self._run_session("add_item", _add)

    async def set_gallery_visibility(self, gallery_id: str, is_public: bool) -> None:
        def _set(session: Session) -> None:
            session.execute(
                update(Gallery).where(col(Gallery.id) == gallery_id).values(is_public=is_public)
            )
            session.commit()

        await self._run_session("set_gallery_visibility", _set)

    async def deactivate_item(self, item_id: str) -> None:
        """Soft-delete an item; its vote history stays intact."""

        def _deactivate(session: Session) -> None:
            session.execute(update(Item).where(col(Item.id) == item_id).values(is_active=False))
            session.commit()

        await self._run_session("deactivate_item", _deactivate)

    async def get_item(self, item_id: str) -> Item | None:
        def _get(session: Session) -> Item | None:
            return session.get(Item, item_id)

        return await self._run_session("get_item", _get)

    async def get_gallery(self, gallery_id: str) -> Gallery | None:
        def _get(session: Session) -> Gallery | None:
            return session.get(Gallery, gallery_id)

        return await self._run_session("get_gallery", _get)

    async def get_galleries(self, gallery_ids: list[str]) -> dict[str, Gallery]:
        """Point reads for several galleries, keyed by id."""

        def _get(session: Session) -> dict[str, Gallery]:
            if not gallery_ids:
                return {}
            statement = select(Gallery).where(col(Gallery.id).in_(gallery_ids))
            return {g.id: g for g in session.exec(statement).all()}

        return await self._run_session("get_galleries", _get)

    async def list_galleries(self, public_only: bool = False) -> list[Gallery]:
        """Active galleries, optionally only the publicly visible ones."""

        def _list(session: Session) -> list[Gallery]:
            statement = select(Gallery).where(col(Gallery.is_active).is_(True))
            if public_only:
                statement = statement.where(col(Gallery.is_public).is_(True))
            return list(session.exec(statement.order_by(col(Gallery.created_at))).all())

        return await self._run_session("list_galleries", _list)

    async def personal_pool(self, gallery_id: str) -> list[Item]:
        """Active items of one active gallery."""

        def _scan(session: Session) -> list[Item]:
            statement = _active_items().where(col(Item.gallery_id) == gallery_id)
            return list(session.exec(statement).all())

        return await self._run_session("personal_pool", _scan)

    async def community_pool(self) -> list[Item]:
        """Active items whose gallery is active and public right now."""

        def _scan(session: Session) -> list[Item]:
            statement = _active_items().where(col(Gallery.is_public).is_(True))
            return list(session.exec(statement).all())

        return await self._run_session("community_pool", _scan)

    async def ranking_rows(self, public_only: bool = True) -> list[tuple[Item, Gallery]]:
        """Active items paired with their gallery, for leaderboard computation."""

        def _scan(session: Session) -> list[tuple[Item, Gallery]]:
            statement = (
                select(Item, Gallery)
                .join(Gallery, col(Gallery.id) == col(Item.gallery_id))
                .where(col(Item.is_active).is_(True), col(Gallery.is_active).is_(True))
            )
            if public_only:
                statement = statement.where(col(Gallery.is_public).is_(True))
            return [(item, gallery) for item, gallery in session.exec(statement).all()]

        return await self._run_session("ranking_rows", _scan)

    async def gallery_items(self, gallery_id: str) -> list[Item]:
        """Active items of a gallery regardless of gallery visibility."""

        def _scan(session: Session) -> list[Item]:
            statement = select(Item).where(
                col(Item.gallery_id) == gallery_id, col(Item.is_active).is_(True)
            )
            return list(session.exec(statement).all())

        return await self._run_session("gallery_items", _scan)

    async def count_items(self) -> int:
        def _count(session: Session) -> int:
            statement = (
                select(func.count(col(Item.id)))
                .join(Gallery, col(Gallery.id) == col(Item.gallery_id))
                .where(col(Item.is_active).is_(True), col(Gallery.is_active).is_(True))
            )
            return session.exec(statement).one()

        return await self._run_session("count_items", _count)
