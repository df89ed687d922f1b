"""Per-request caller context and scope values."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class VoteScope(StrEnum):
    """Which ledger a matchup or vote belongs to."""

    PERSONAL = "personal"
    COMMUNITY = "community"


@dataclass(frozen=True)
class MatchupScope:
    """Pool a matchup is drawn from.

    Attributes:
        kind: Personal (one gallery) or community (all public galleries).
        gallery_id: Gallery whose items form the pool in personal scope.
    """

    kind: VoteScope
    gallery_id: str | None = None

    def __post_init__(self) -> None:
        if self.kind is VoteScope.PERSONAL and not self.gallery_id:
            msg = "Personal scope requires a gallery_id"
            raise ValueError(msg)

    @classmethod
    def personal(cls, gallery_id: str) -> MatchupScope:
        return cls(VoteScope.PERSONAL, gallery_id)

    @classmethod
    def community(cls) -> MatchupScope:
        return cls(VoteScope.COMMUNITY)


@dataclass(frozen=True)
class VoterContext:
    """Identity supplied by the session layer for one request.

    Attributes:
        voter_id: Authenticated user id, or None for anonymous callers.
        anonymous_identity: Opaque token identifying an anonymous caller.
        recent_gallery_ids: Galleries recently shown to this caller, oldest first.
    """

    voter_id: str | None = None
    anonymous_identity: str | None = None
    recent_gallery_ids: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_authenticated(self) -> bool:
        return self.voter_id is not None
