from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class AnonymousUsage(SQLModel, table=True):
    """Remaining matchup allowance for one anonymous identity."""

    __tablename__ = "anonymous_usage"

    identity: str = Field(primary_key=True)
    remaining: int = Field(ge=0)
    first_seen: datetime = Field(default_factory=lambda: datetime.now(UTC))
    last_seen: datetime = Field(default_factory=lambda: datetime.now(UTC))
