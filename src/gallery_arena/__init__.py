"""Gallery Arena.

Head-to-head voting between gallery items, with Elo ratings and
confidence-adjusted leaderboards.
"""

from gallery_arena.core.config import ArenaConfig, load_config
from gallery_arena.services.arena import ArenaService

__version__ = "0.1.0"
__all__ = [
    "ArenaConfig",
    "ArenaService",
    "__version__",
    "load_config",
]
