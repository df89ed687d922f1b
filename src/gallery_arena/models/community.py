from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class CommunityRating(SQLModel, table=True):
    """Community-vote ledger for one item, kept apart from its personal counters."""

    __tablename__ = "community_rating"

    item_id: str = Field(primary_key=True)
    gallery_id: str = Field(index=True)
    rating: float = 1500.0
    wins: int = 0
    losses: int = 0
    points: int = 0
    last_voted_at: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def total_votes(self) -> int:
        return self.wins + self.losses
