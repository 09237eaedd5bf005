"""Utilities package for the 360 feedback reports."""

from .cache import get_cache, cache_result, clear_cache
from .case_insensitive import CaseInsensitiveDict
from .rounding import round_half_up, average_score, valid_scores, percent

__all__ = [
    "get_cache",
    "cache_result",
    "clear_cache",
    "CaseInsensitiveDict",
    "round_half_up",
    "average_score",
    "valid_scores",
    "percent",
]
