import uuid
from datetime import UTC, datetime

from sqlmodel import Field, SQLModel

from gallery_arena.core.context import VoteScope


class Vote(SQLModel, table=True):
    """Append-only record of a single head-to-head vote."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    winner_id: str = Field(index=True)
    loser_id: str = Field(index=True)
    scope: VoteScope = Field(index=True)
    voter_id: str | None = Field(default=None, index=True)
    winner_rating_before: float
    loser_rating_before: float
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
