"""Core engine package for two-player Gin Rummy."""

__all__ = [
    "cards",
    "deck",
    "melds",
    "state",
    "game",
    "scoring",
    "rules_schema",
    "service",
]
