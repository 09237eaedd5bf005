"""
Deterministic rounding utilities.

This module provides the round_half_up function and the score averaging
helpers shared by every report, so that the same answers always produce
the same figures.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional


def round_half_up(value: float, decimals: int = 0):
    """
    Round a number using "round half up" strategy.

    This ensures deterministic rounding where 0.5 always rounds away from
    zero, avoiding Python's default banker's rounding.

    Args:
        value: Number to round
        decimals: Number of decimal places (0 for integer)

    Returns:
        Rounded integer when decimals is 0, otherwise a float

    Examples:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(3.125, 2)
        3.13
        >>> round_half_up(-0.125, 2)
        -0.13
    """
    if decimals == 0:
        # Convert to Decimal for precise rounding
        d = Decimal(str(value))
        rounded = d.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return int(rounded)
    else:
        quantize_str = "0." + "0" * decimals
        d = Decimal(str(value))
        rounded = d.quantize(Decimal(quantize_str), rounding=ROUND_HALF_UP)
        return float(rounded)


def valid_scores(scores: Iterable[float]) -> List[float]:
    """
    Keep only scores that count towards an average.

    A score of 0 (or below) means "not answered / not applicable" and is
    dropped.
    """
    return [s for s in scores if s is not None and s > 0]


def average_score(scores: Iterable[float], decimals: int = 2) -> Optional[float]:
    """
    Average the valid scores, rounded half up.

    Args:
        scores: Raw scores, possibly containing zeros
        decimals: Decimal places of the result

    Returns:
        The rounded average, or None when no valid score exists

    Examples:
        >>> average_score([3, 4, 0])
        3.5
        >>> average_score([0, 0]) is None
        True
    """
    kept = valid_scores(scores)
    if not kept:
        return None
    return round_half_up(sum(kept) / len(kept), decimals)


def mean(scores: List[float]) -> Optional[float]:
    """Unrounded mean of the valid scores, or None."""
    kept = valid_scores(scores)
    if not kept:
        return None
    return sum(kept) / len(kept)


def percent(part: int, total: int) -> int:
    """
    Whole-number percentage, 0 when total is 0.

    Examples:
        >>> percent(1, 3)
        33
        >>> percent(2, 3)
        67
    """
    if total <= 0:
        return 0
    return round_half_up(part / total * 100)
