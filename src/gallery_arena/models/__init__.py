"""SQLModel tables for galleries, items, votes, the community ledger and quotas."""

from gallery_arena.models.community import CommunityRating
from gallery_arena.models.gallery import Gallery, Item
from gallery_arena.models.quota import AnonymousUsage
from gallery_arena.models.vote import Vote

__all__ = ["AnonymousUsage", "CommunityRating", "Gallery", "Item", "Vote"]
