"""API module for the external book difficulty scorer."""

from .openrouter import (
    DifficultyRating,
    OpenRouterClient,
    OpenRouterError,
    parse_rating,
)

__all__ = [
    "DifficultyRating",
    "OpenRouterClient",
    "OpenRouterError",
    "parse_rating",
]
