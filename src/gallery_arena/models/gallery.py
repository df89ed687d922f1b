import uuid
from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class Gallery(SQLModel, table=True):
    """An owner's collection of items; visibility gates community matchups."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    owner_id: str = Field(index=True)
    display_handle: str
    is_public: bool = Field(default=True, index=True)
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Item(SQLModel, table=True):
    """A rateable image with its personal Elo rating and win/loss counters."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    gallery_id: str = Field(index=True)
    collection: str | None = Field(default=None, index=True)  # sub-group within a gallery
    media_url: str = ""
    rating: float = 1500.0
    win_count: int = Field(default=0, ge=0)
    loss_count: int = Field(default=0, ge=0)
    is_active: bool = Field(default=True, index=True)
    last_voted_at: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def total_votes(self) -> int:
        return self.win_count + self.loss_count
