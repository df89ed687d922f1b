"""Unified arena storage: engine setup and repository wiring."""

from __future__ import annotations

import gc
import threading
from pathlib import Path

import structlog
from sqlalchemy.engine import make_url
from sqlalchemy.pool import NullPool, StaticPool
from sqlmodel import SQLModel, create_engine

from gallery_arena.core.config import ArenaConfig

from .catalog_repository import CatalogRepository
from .quota_repository import QuotaRepository
from .rating_repository import RatingRepository
from .vote_repository import VoteRepository

logger = structlog.get_logger()


class ArenaStore:
    """Persistence layer for the rating engine.

    Owns the SQLModel engine and exposes one repository per concern:
    - catalog: galleries and items (point reads, pool scans, soft delete)
    - ratings: atomic vote application and the community ledger
    - votes: the append-only vote log
    - quotas: anonymous usage counters
    """

    def __init__(self, config: ArenaConfig) -> None:
        """Initialize the store and create tables.

        Args:
            config: Engine configuration.
        """
        self.config = config
        self._engine = None
        self._session_lock: threading.Lock | None = None
        self._init_db()

        initial_rating = config.rating.initial_rating
        lock = self._session_lock
        self.catalog = CatalogRepository(self._engine, initial_rating=initial_rating, lock=lock)
        self.ratings = RatingRepository(self._engine, initial_rating=initial_rating, lock=lock)
        self.votes = VoteRepository(self._engine, lock=lock)
        self.quotas = QuotaRepository(self._engine, lock=lock)

    def _init_db(self) -> None:
        """Create the engine and tables."""
        store = self.config.store
        url = make_url(store.database_url)
        kwargs: dict = {"echo": store.echo}

        if url.get_backend_name() == "sqlite":
            kwargs["connect_args"] = {"check_same_thread": False, "timeout": store.busy_timeout}
            if url.database in (None, "", ":memory:"):
                # One shared connection, otherwise every session sees an empty database.
                # Sessions take turns on it so transactions never interleave.
                kwargs["poolclass"] = StaticPool
                self._session_lock = threading.Lock()
            else:
                kwargs["poolclass"] = NullPool
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        self._engine = create_engine(url, **kwargs)
        SQLModel.metadata.create_all(self._engine)
        logger.info("store_init", backend=url.get_backend_name(), database=url.database)

    async def close(self) -> None:
        """Dispose of the database engine."""
        self.close_sync()

    def close_sync(self) -> None:
        """Synchronously dispose of the database engine."""
        if self._engine:
            self._engine.dispose()
            self._engine = None

        gc.collect()
