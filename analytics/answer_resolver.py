"""
Answer resolution.

Turns one raw answer from a submission blob into a numeric score:
1. Look the question key up directly
2. For composite keys ("matrixQ:Communication") fall back to
   blob["matrixQ"]["Communication"]
3. Numbers are taken as-is; strings are parsed as numbers, else matched
   case-insensitively against the question's option texts

Only positive scores count towards any aggregate. The three-state
ResolvedAnswer carries that rule so callers never re-check it.
"""

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from models.enums import COMPOSITE_KEY_SEPARATOR, ScoreState
from analytics.schema_walker import QuestionMapping

# Plain decimal number, no exponent, no thousands separators
_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")

_MISSING = object()


@dataclass(frozen=True)
class ResolvedAnswer:
    """Resolved score of one answer; `value` is set unless UNANSWERED."""
    state: ScoreState
    value: Optional[float] = None

    @property
    def counts(self) -> bool:
        return self.state == ScoreState.VALUE


UNANSWERED = ResolvedAnswer(ScoreState.UNANSWERED)


def lookup_answer(response_blob: Any, question_key: str) -> Any:
    """
    Find the raw answer of a question in a response blob.

    Args:
        response_blob: Parsed submission response (object)
        question_key: Question id or composite "parent:sub" key

    Returns:
        The raw answer, or None when absent
    """
    if not isinstance(response_blob, Mapping):
        return None

    value = response_blob.get(question_key, _MISSING)
    if value is not _MISSING:
        return value

    if COMPOSITE_KEY_SEPARATOR not in question_key:
        return None

    parent_key, sub_key = question_key.split(COMPOSITE_KEY_SEPARATOR, 1)
    parent = response_blob.get(parent_key)
    if not isinstance(parent, Mapping):
        return None
    return parent.get(sub_key)


def parse_number(text: str) -> Optional[float]:
    """Parse a plain decimal string; None when it is not one."""
    text = text.strip()
    if not _NUMBER_PATTERN.match(text):
        return None
    return float(text)


def _classify(value: float) -> ResolvedAnswer:
    if value > 0:
        return ResolvedAnswer(ScoreState.VALUE, value)
    return ResolvedAnswer(ScoreState.ZERO_EXCLUDED, value)


def resolve_answer_state(
    response_blob: Any,
    question_key: str,
    mapping: Optional[QuestionMapping],
) -> ResolvedAnswer:
    """
    Resolve one answer into its three-state score.

    Booleans, arrays, objects and unmatched strings are UNANSWERED.
    Numbers <= 0 are ZERO_EXCLUDED.
    """
    raw = lookup_answer(response_blob, question_key)

    if raw is None or isinstance(raw, bool):
        return UNANSWERED

    if isinstance(raw, (int, float)):
        return _classify(raw)

    if isinstance(raw, str):
        number = parse_number(raw)
        if number is not None:
            return _classify(number)

        if mapping is not None:
            score = mapping.option_scores.get(raw.strip())
            if score is not None:
                return _classify(score)

    return UNANSWERED


def resolve_answer(
    response_blob: Any,
    question_key: str,
    mapping: Optional[QuestionMapping],
) -> Optional[float]:
    """
    Resolve one answer to its raw numeric value.

    Returns:
        The number (0 and negatives included), or None when the answer is
        missing or cannot be turned into a number
    """
    return resolve_answer_state(response_blob, question_key, mapping).value
