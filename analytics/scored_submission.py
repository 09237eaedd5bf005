"""
Per-submission scoring.

Every report starts from the same ScoredSubmission: the submission's
resolved scores, its open-ended answers, its normalised relationship and
whether it is a self-assessment.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from models.enums import SELF_RELATIONSHIP, UNKNOWN_RELATIONSHIP
from models.records import (
    AssignmentRecord,
    EvaluatorRecord,
    SubjectRecord,
    SubmissionRecord,
)
from analytics.answer_resolver import lookup_answer, resolve_answer_state
from analytics.schema_walker import QuestionMapping, load_json_document

logger = logging.getLogger(__name__)


@dataclass
class ScoredSubmission:
    """
    One submission, resolved against a question map.

    Attributes:
        submission_id: Submission id
        subject_id: Subject being evaluated
        evaluator_id: Evaluator who answered
        relationship: Normalised relationship label ("Peer", "Unknown", ...)
        is_self: Self-assessment by either detection rule
        scores: Question key → positive score, scored questions only
        text_answers: Question key → verbatim answer, text questions only
    """
    submission_id: str
    subject_id: str
    evaluator_id: str
    relationship: str
    is_self: bool
    scores: Dict[str, float] = field(default_factory=dict)
    text_answers: Dict[str, str] = field(default_factory=dict)


def normalize_relationship(label: Optional[str]) -> str:
    """
    Title-case a relationship label.

    Examples:
        >>> normalize_relationship("  direct   report ")
        'Direct Report'
        >>> normalize_relationship("")
        'Unknown'
    """
    if not label or not label.strip():
        return UNKNOWN_RELATIONSHIP
    return " ".join(word.capitalize() for word in label.split())


def _same_employee(
    evaluator: Optional[EvaluatorRecord],
    subject: Optional[SubjectRecord],
) -> bool:
    if evaluator is None or subject is None:
        return False
    evaluator_employee = (evaluator.employee_id or "").strip()
    subject_employee = (subject.employee_id or "").strip()
    return bool(evaluator_employee) and evaluator_employee == subject_employee


def is_self_assessment(
    relationship: Optional[str],
    evaluator: Optional[EvaluatorRecord] = None,
    subject: Optional[SubjectRecord] = None,
) -> bool:
    """
    Decide whether an evaluation is a self-assessment.

    Self when the relationship label is "self" (any case, surrounding
    whitespace ignored) OR when the evaluator and the subject share a
    non-empty employee id. A disagreement between the two rules is logged
    and treated as self.
    """
    by_label = (relationship or "").strip().lower() == SELF_RELATIONSHIP
    by_identity = _same_employee(evaluator, subject)

    if by_label != by_identity:
        logger.warning(
            f"Self-assessment rules disagree for evaluator "
            f"{evaluator.id if evaluator else None} and subject "
            f"{subject.id if subject else None}: relationship={relationship!r}, "
            f"same_employee={by_identity}"
        )
    return by_label or by_identity


def _text_answer(raw) -> Optional[str]:
    if raw is None:
        return None
    if isinstance(raw, str):
        return raw if raw.strip() else None
    return json.dumps(raw)


def score_submission(
    submission: SubmissionRecord,
    assignment: Optional[AssignmentRecord],
    evaluator: Optional[EvaluatorRecord],
    subject: Optional[SubjectRecord],
    question_map: Mapping[str, QuestionMapping],
) -> ScoredSubmission:
    """
    Resolve every question of the map against one submission.

    Args:
        submission: Submission record with its raw response blob
        assignment: Assignment the submission belongs to (relationship source)
        evaluator: Evaluator record, used for self detection
        subject: Subject record, used for self detection
        question_map: Question map of the survey

    Returns:
        ScoredSubmission with positive scores and non-blank text answers
    """
    relationship_label = assignment.relationship if assignment else None
    scored = ScoredSubmission(
        submission_id=submission.id,
        subject_id=submission.subject_id,
        evaluator_id=submission.evaluator_id,
        relationship=normalize_relationship(relationship_label),
        is_self=is_self_assessment(relationship_label, evaluator, subject),
    )

    blob = load_json_document(submission.response_data)
    if not isinstance(blob, dict):
        if submission.response_data is not None:
            logger.warning(f"Submission {submission.id} has an unreadable response blob")
        return scored

    for key, mapping in question_map.items():
        if mapping.is_scored:
            answer = resolve_answer_state(blob, key, mapping)
            if answer.counts:
                scored.scores[key] = answer.value
        else:
            text = _text_answer(lookup_answer(blob, key))
            if text is not None:
                scored.text_answers[key] = text

    return scored
