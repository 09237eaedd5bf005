"""
Enumerations and constants for the 360 feedback reports.

This module defines the fixed vocabularies of the survey schema and the
ordered fallback chains used when reading it.
"""

from enum import Enum
from typing import FrozenSet, List, Optional, Tuple


class QuestionType(str, Enum):
    """
    Survey element types understood by the schema walker.

    Any other `type` value found in a schema is skipped.
    """
    PANEL = "panel"
    RATING = "rating"
    RADIOGROUP = "radiogroup"
    DROPDOWN = "dropdown"
    MATRIX = "matrix"
    MULTIPLETEXT = "multipletext"
    TEXT = "text"
    COMMENT = "comment"
    TEXTAREA = "textarea"


class SubmissionStatus(str, Enum):
    """Lifecycle of a survey submission."""
    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"


class RelationshipType(str, Enum):
    """Well-known evaluator relationships. Free text is also accepted."""
    SELF = "Self"
    MANAGER = "Manager"
    PEER = "Peer"
    DIRECT_REPORT = "Direct Report"
    STAKEHOLDER = "Stakeholder"
    SKIPLINE = "Skipline"


class SelfAssessmentStatus(str, Enum):
    """Status labels returned by the self-assessment status report."""
    NOT_FOUND = "Not Found"
    NOT_ASSIGNED = "Not Assigned"
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class ScoreState(str, Enum):
    """
    Outcome of resolving one answer.

    - UNANSWERED: no answer, or an answer that cannot be turned into a number
    - ZERO_EXCLUDED: a number <= 0, valid but excluded from every aggregate
    - VALUE: a positive score
    """
    UNANSWERED = "unanswered"
    ZERO_EXCLUDED = "zero_excluded"
    VALUE = "value"


RATING_QUESTION_TYPES: FrozenSet[str] = frozenset({
    QuestionType.RATING.value,
    QuestionType.RADIOGROUP.value,
    QuestionType.DROPDOWN.value,
})

TEXT_QUESTION_TYPES: FrozenSet[str] = frozenset({
    QuestionType.TEXT.value,
    QuestionType.COMMENT.value,
    QuestionType.TEXTAREA.value,
})

# Question text preference order; the element key is the final fallback
QUESTION_TEXT_FIELDS: List[str] = ["othersText", "selfText", "title", "name"]

# Option score sources in priority order: (container, property).
# A container of None means the question element itself.
OPTION_SOURCES: List[Tuple[Optional[str], str]] = [
    ("config", "ratingOptions"),
    ("config", "options"),
    ("config", "choices"),
    (None, "choices"),
]

# Explicit score properties on an option, checked before `id` and `order`
OPTION_SCORE_FIELDS: List[str] = ["score", "Score"]

# Composite key separator for matrix rows and multiple-text items
COMPOSITE_KEY_SEPARATOR = ":"

SELF_RELATIONSHIP = RelationshipType.SELF.value.lower()
UNKNOWN_RELATIONSHIP = "Unknown"
ANONYMOUS_RATER = "Anonymous"

# Relationship groups hidden below the anonymity threshold
RESTRICTED_RELATIONSHIPS: FrozenSet[str] = frozenset({"peer", "stakeholder"})
RESTRICTED_RELATIONSHIP_MARKER = "direct"

# Score range plotted by the agreement chart
AGREEMENT_SCALE: List[int] = [1, 2, 3, 4, 5]
