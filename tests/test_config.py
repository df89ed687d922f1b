"""Tests for configuration loading and validation."""

import tempfile
from pathlib import Path

import pydantic
import pytest
import yaml

import gallery_arena.core as core
from gallery_arena.core.config import (
    DATABASE_URL_ENV,
    DEFAULT_DATABASE_URL,
    ArenaConfig,
    RankingConfig,
    RatingConfig,
    StoreConfig,
    load_config,
)
from gallery_arena.core.context import MatchupScope, VoterContext, VoteScope
from gallery_arena.core.errors import (
    InvalidReference,
    MissingFieldError,
    QuotaExceeded,
    StoreUnavailable,
)
from gallery_arena.ranking import create_elo_rule, create_score_weights

SAMPLE_DIR = Path(__file__).resolve().parents[1] / "sample"


class TestArenaConfig:
    """Tests for ArenaConfig defaults."""

    def test_defaults(self, monkeypatch):
        """Test default engine parameters."""
        monkeypatch.delenv(DATABASE_URL_ENV, raising=False)
        config = ArenaConfig()
        assert config.rating.initial_rating == 1500.0
        assert config.rating.k_factor == 32.0
        assert config.matchup.exclusion_window == 6
        assert config.ranking.min_votes == 5
        assert config.ranking.limit == 50
        assert config.quota.anonymous_allotment == 3
        assert config.voting.deduplicate is False
        assert config.store.database_url == DEFAULT_DATABASE_URL

    def test_env_overrides_default_url(self, monkeypatch):
        monkeypatch.setenv(DATABASE_URL_ENV, "sqlite:///from-env.db")
        assert ArenaConfig().store.database_url == "sqlite:///from-env.db"

    def test_explicit_url_beats_env(self, monkeypatch):
        monkeypatch.setenv(DATABASE_URL_ENV, "sqlite:///from-env.db")
        config = ArenaConfig(store=StoreConfig(database_url="sqlite:///explicit.db"))
        assert config.store.database_url == "sqlite:///explicit.db"

    def test_non_positive_k_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            RatingConfig(k_factor=0)

    def test_weights_must_sum_to_one(self):
        """Test the score blend weights are validated."""
        with pytest.raises(pydantic.ValidationError, match="must equal 1.0"):
            RankingConfig(wilson_weight=0.5, elo_weight=0.3)

    def test_empty_url_rejected(self):
        with pytest.raises(pydantic.ValidationError, match="cannot be empty"):
            StoreConfig(database_url="  ")

    def test_factories_follow_config(self):
        config = ArenaConfig(
            rating=RatingConfig(k_factor=24),
            ranking=RankingConfig(wilson_weight=0.6, elo_weight=0.4, scale=100),
        )
        assert create_elo_rule(config).k_factor == 24
        weights = create_score_weights(config)
        assert (weights.wilson_weight, weights.elo_weight, weights.scale) == (0.6, 0.4, 100)


class TestLoadConfig:
    """Tests for config file loading."""

    def test_load_valid_yaml(self):
        """Test loading a valid YAML config."""
        config_data = {
            "rating": {"k_factor": 16},
            "matchup": {"exclusion_window": 4, "seed": 7},
            "quota": {"anonymous_allotment": 5},
            "store": {"database_url": "sqlite:///arena-test.db"},
        }

        with tempfile.NamedTemporaryFile(suffix=".yaml", delete=False, mode="w") as f:
            yaml.dump(config_data, f)
            f.flush()

            config = load_config(f.name)
            assert config.rating.k_factor == 16
            assert config.matchup.seed == 7
            assert config.quota.anonymous_allotment == 5
            assert config.store.database_url == "sqlite:///arena-test.db"

        Path(f.name).unlink()

    def test_load_empty_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path).ranking.min_votes == 5

    def test_sample_config_is_valid(self):
        config = load_config(SAMPLE_DIR / "arena.yaml")
        assert config.ranking.min_votes == 5
        assert config.voting.community_loss_points == -5

    def test_load_missing_file_fails(self):
        """Test loading missing file raises error."""
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/config.yaml")

    def test_invalid_value_fails(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.dump({"quota": {"anonymous_allotment": -1}}))
        with pytest.raises(pydantic.ValidationError):
            load_config(path)


class TestContext:
    """Tests for scope and caller context values."""

    def test_personal_scope_needs_gallery(self):
        with pytest.raises(ValueError, match="gallery_id"):
            MatchupScope(VoteScope.PERSONAL)

    def test_scope_constructors(self):
        assert MatchupScope.personal("g1") == MatchupScope(VoteScope.PERSONAL, "g1")
        assert MatchupScope.community().gallery_id is None

    def test_authentication(self):
        assert VoterContext(voter_id="u1").is_authenticated
        assert not VoterContext(anonymous_identity="anon").is_authenticated

    def test_vote_scope_values(self):
        assert VoteScope("community") is VoteScope.COMMUNITY
        assert VoteScope.PERSONAL == "personal"


class TestErrors:
    """Tests for error formatting."""

    def test_invalid_reference(self):
        error = InvalidReference("item-1")
        assert error.item_id == "item-1"
        assert "[Invalid Reference] item not found or inactive: item-1" in str(error)
        assert "[Suggestion]" in str(error)

    def test_quota_exceeded(self):
        error = QuotaExceeded()
        assert error.remaining == 0
        assert "Sign in" in str(error)

    def test_store_unavailable(self):
        error = StoreUnavailable("apply_vote", "OperationalError")
        assert error.operation == "apply_vote"
        assert "apply_vote" in error.message
        assert "OperationalError" in error.message

    def test_missing_field(self):
        error = MissingFieldError("handle", "seed.yaml")
        assert "Missing required field 'handle' in seed.yaml" in str(error)

    def test_config_error_family(self):
        """Test config files report problems through ConfigurationError subclasses."""
        assert issubclass(MissingFieldError, core.ConfigurationError)
        assert "ValidationError" not in core.__all__
        assert not hasattr(core, "ValidationError")
