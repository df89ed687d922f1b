"""Engine services: selection, voting, ranking, quota and storage."""

from gallery_arena.services.arena import ArenaService, ItemView, MatchupResponse

__all__ = [
    "ArenaService",
    "ItemView",
    "MatchupResponse",
]
