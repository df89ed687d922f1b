"""Vote recording: applies the Elo rule to a winner/loser pair."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from gallery_arena.core.config import ArenaConfig
from gallery_arena.core.context import VoteScope
from gallery_arena.ranking import EloRule, create_elo_rule
from gallery_arena.services.storage import ArenaStore, VoteRequest

logger = structlog.get_logger()


@dataclass(frozen=True)
class VoteOutcome:
    """Ratings after a vote.

    Attributes:
        vote_id: Id of the appended vote record, None if the vote was skipped.
        scope: Ledger the vote was applied to.
        winner_rating: Winner's rating in that ledger after the vote.
        loser_rating: Loser's rating in that ledger after the vote.
        winner_delta: Change applied to the winner.
        loser_delta: Change applied to the loser.
        applied: False when deduplication skipped the vote.
    """

    vote_id: str | None
    scope: VoteScope
    winner_rating: float
    loser_rating: float
    winner_delta: float
    loser_delta: float
    applied: bool = True


class RatingUpdater:
    """Records votes against the personal ratings or the community ledger."""

    def __init__(
        self,
        config: ArenaConfig,
        store: ArenaStore,
        rule: EloRule | None = None,
    ) -> None:
        """Initialize the updater.

        Args:
            config: Engine configuration (K-factor, dedup flag, ledger points).
            store: Storage layer.
            rule: Elo rule override; built from config when omitted.
        """
        self.config = config
        self.store = store
        self.rule = rule or create_elo_rule(config)

    async def record_vote(
        self,
        winner_id: str,
        loser_id: str,
        scope: VoteScope,
        voter_id: str | None = None,
    ) -> VoteOutcome:
        """Apply one vote.

        Personal votes move the items' own rating and win/loss counters.
        Community votes move only the community ledger.

        Raises:
            InvalidReference: Unknown/inactive item or winner == loser.
            StoreUnavailable: The store failed; nothing was applied.
        """
        voting = self.config.voting
        request = VoteRequest(
            winner_id=winner_id,
            loser_id=loser_id,
            scope=VoteScope(scope),
            voter_id=voter_id,
            deduplicate=voting.deduplicate,
            win_points=voting.community_win_points,
            loss_points=voting.community_loss_points,
        )
        applied = await self.store.ratings.apply_vote(request, self.rule.apply)

        if not applied.applied:
            return VoteOutcome(
                vote_id=None,
                scope=request.scope,
                winner_rating=applied.winner_rating,
                loser_rating=applied.loser_rating,
                winner_delta=0.0,
                loser_delta=0.0,
                applied=False,
            )

        update = applied.update
        logger.info(
            "vote_recorded",
            scope=request.scope.value,
            winner=winner_id,
            loser=loser_id,
            winner_delta=round(update.winner_delta, 2),
        )
        return VoteOutcome(
            vote_id=applied.vote_id,
            scope=request.scope,
            winner_rating=applied.winner_rating,
            loser_rating=applied.loser_rating,
            winner_delta=update.winner_delta,
            loser_delta=update.loser_delta,
        )
