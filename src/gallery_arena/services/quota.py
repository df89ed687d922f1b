"""Anonymous matchup quota."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from gallery_arena.core.config import ArenaConfig
from gallery_arena.core.context import VoterContext
from gallery_arena.services.storage import ArenaStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class QuotaStatus:
    """Whether a matchup fetch may proceed.

    Attributes:
        allowed: True if the caller may fetch a matchup.
        remaining: Fetches left after this one; None for authenticated (unbounded) callers.
    """

    allowed: bool
    remaining: int | None


UNBOUNDED = QuotaStatus(allowed=True, remaining=None)


class AnonymousQuotaGate:
    """Bounds matchup fetches for unauthenticated callers.

    Authenticated callers are never counted. Resetting an identity's counter
    belongs to the session layer, which can simply hand out a new identity.
    """

    def __init__(self, config: ArenaConfig, store: ArenaStore) -> None:
        self.allotment = config.quota.anonymous_allotment
        self.store = store

    async def check_and_consume(self, context: VoterContext) -> QuotaStatus:
        """Consume one matchup fetch for an anonymous caller.

        Args:
            context: Caller identity.

        Returns:
            QuotaStatus. ``allowed`` is False once the allotment is spent.

        Raises:
            ValueError: Anonymous caller without an anonymous identity.
        """
        if context.is_authenticated:
            return UNBOUNDED

        identity = _require_identity(context)
        consumed, remaining = await self.store.quotas.consume(identity, self.allotment)
        if not consumed:
            logger.info("quota_exhausted", identity=identity)
        return QuotaStatus(allowed=consumed, remaining=remaining)

    async def peek(self, context: VoterContext) -> QuotaStatus:
        """Report the allowance without consuming any."""
        if context.is_authenticated:
            return UNBOUNDED

        remaining = await self.store.quotas.remaining(_require_identity(context), self.allotment)
        return QuotaStatus(allowed=remaining > 0, remaining=remaining)


def _require_identity(context: VoterContext) -> str:
    if not context.anonymous_identity:
        msg = "Anonymous callers need an anonymous_identity from the session layer"
        raise ValueError(msg)
    return context.anonymous_identity
