from .selector import Matchup, MatchupSelector, NotEnoughItems, draw_pair, remember_shown

__all__ = [
    "Matchup",
    "MatchupSelector",
    "NotEnoughItems",
    "draw_pair",
    "remember_shown",
]
