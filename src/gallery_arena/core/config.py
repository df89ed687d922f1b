"""Configuration schemas and loading for Gallery Arena."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_DATABASE_URL = "sqlite:///gallery_arena.db"
DATABASE_URL_ENV = "ARENA_DATABASE_URL"


class RatingConfig(BaseModel):
    """Elo update parameters.

    Attributes:
        initial_rating: Rating assigned to newly created items and ledger rows.
        k_factor: Maximum rating movement per vote.
    """

    initial_rating: float = Field(default=1500.0, ge=0)
    k_factor: float = Field(default=32.0, gt=0)


class MatchupConfig(BaseModel):
    """Matchup selection settings."""

    exclusion_window: int = Field(default=6, ge=0)
    seed: int | None = None


class RankingConfig(BaseModel):
    """Leaderboard scoring configuration.

    The blended score is
    ``round(scale * (wilson_weight * wilson + elo_weight * normalized_elo))``
    where ``normalized_elo = (elo - elo_floor) / elo_span`` clamped to [0, 1].

    Attributes:
        min_votes: Votes required before a gallery or item is ranked.
        wilson_z: z-score for the Wilson lower bound (1.96 is 95%).
        wilson_weight: Weight of the Wilson lower bound in the blend.
        elo_weight: Weight of the normalized Elo in the blend.
        elo_floor: Elo that maps to 0.0.
        elo_span: Elo range that maps onto [0, 1].
        scale: Multiplier applied before rounding.
        limit: Maximum entries per leaderboard.
    """

    min_votes: int = Field(default=5, ge=0)
    wilson_z: float = Field(default=1.96, gt=0)
    wilson_weight: float = Field(default=0.7, ge=0, le=1)
    elo_weight: float = Field(default=0.3, ge=0, le=1)
    elo_floor: float = 800.0
    elo_span: float = Field(default=1600.0, gt=0)
    scale: int = Field(default=1000, gt=0)
    limit: int = Field(default=50, ge=1)

    @model_validator(mode="after")
    def validate_weights(self) -> RankingConfig:
        total = self.wilson_weight + self.elo_weight
        if abs(total - 1.0) > 1e-9:
            msg = f"wilson_weight + elo_weight must equal 1.0 (got {total:.3f})"
            raise ValueError(msg)
        return self


class QuotaConfig(BaseModel):
    """Anonymous usage allowance."""

    anonymous_allotment: int = Field(default=3, ge=0)


class VotingConfig(BaseModel):
    """Vote recording behaviour.

    Attributes:
        deduplicate: Skip a vote when the same voter already recorded the same
            (winner, loser, scope). Off by default: repeated votes compound.
        community_win_points: Points added to the community ledger on a win.
        community_loss_points: Points added (usually negative) on a loss.
    """

    deduplicate: bool = False
    community_win_points: int = 10
    community_loss_points: int = -5


class StoreConfig(BaseModel):
    """Database settings."""

    database_url: str = DEFAULT_DATABASE_URL
    busy_timeout: float = Field(default=30.0, gt=0)
    echo: bool = False

    @field_validator("database_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v or not v.strip():
            msg = "database_url cannot be empty"
            raise ValueError(msg)
        return v.strip()


class ArenaConfig(BaseModel):
    """Complete engine configuration."""

    rating: RatingConfig = Field(default_factory=RatingConfig)
    matchup: MatchupConfig = Field(default_factory=MatchupConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    quota: QuotaConfig = Field(default_factory=QuotaConfig)
    voting: VotingConfig = Field(default_factory=VotingConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)

    def model_post_init(self, __context: Any) -> None:
        env_url = os.environ.get(DATABASE_URL_ENV)
        if env_url and "database_url" not in self.store.model_fields_set:
            self.store.database_url = env_url


def load_config(path: str | Path) -> ArenaConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to YAML configuration file.

    Returns:
        Validated ArenaConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        pydantic.ValidationError: If config is invalid.
    """
    config_path = Path(path)
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with config_path.open() as f:
        data = yaml.safe_load(f) or {}

    return ArenaConfig.model_validate(data)
