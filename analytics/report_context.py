"""
Report context loading.

Reads everything one report needs for a survey from the store, builds the
question map once and scores every completed submission once.

A submission counts as completed when:
- its status is Completed and it carries a response blob
- it belongs to an active assignment of the survey
- its subject exists and is active
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from models.enums import SubmissionStatus
from models.records import (
    AssignmentRecord,
    EvaluatorRecord,
    SubjectRecord,
    SubmissionRecord,
    SurveyRecord,
)
from adapters.report_store import ReportStore
from analytics.schema_walker import QuestionMapping, build_question_map
from analytics.scored_submission import ScoredSubmission, score_submission

logger = logging.getLogger(__name__)


@dataclass
class ReportContext:
    """Survey data of one tenant, resolved for reporting."""
    tenant_id: str
    survey: SurveyRecord
    question_map: Dict[str, QuestionMapping]
    subjects: Dict[str, SubjectRecord] = field(default_factory=dict)
    evaluators: Dict[str, EvaluatorRecord] = field(default_factory=dict)
    assignments: List[AssignmentRecord] = field(default_factory=list)
    submissions: List[SubmissionRecord] = field(default_factory=list)
    completed: List[SubmissionRecord] = field(default_factory=list)
    scored: List[ScoredSubmission] = field(default_factory=list)
    completed_assignment_ids: set = field(default_factory=set)

    def active_subject(self, subject_id: str) -> Optional[SubjectRecord]:
        subject = self.subjects.get(subject_id)
        if subject is None or not subject.is_active:
            return None
        return subject

    def assignments_for(self, subject_id: str) -> List[AssignmentRecord]:
        """Active assignments of a subject in this survey."""
        return [a for a in self.assignments if a.subject_id == subject_id]

    def scored_for(self, subject_id: str) -> List[ScoredSubmission]:
        """Scored completed submissions about a subject."""
        return [s for s in self.scored if s.subject_id == subject_id]

    def assigned_subjects(self) -> List[SubjectRecord]:
        """
        Active subjects with at least one active assignment, in first
        assignment order.
        """
        seen = {}
        for assignment in self.assignments:
            subject = self.active_subject(assignment.subject_id)
            if subject is not None and subject.id not in seen:
                seen[subject.id] = subject
        return list(seen.values())


def find_assignment(
    submission: SubmissionRecord,
    assignments: List[AssignmentRecord],
) -> Optional[AssignmentRecord]:
    """
    Assignment of a submission: by assignment id when present, else by
    subject and evaluator.
    """
    if submission.assignment_id:
        for assignment in assignments:
            if assignment.id == submission.assignment_id:
                return assignment
        return None

    for assignment in assignments:
        if (
            assignment.subject_id == submission.subject_id
            and assignment.evaluator_id == submission.evaluator_id
        ):
            return assignment
    return None


def load_report_context(
    store: ReportStore,
    tenant_id: str,
    survey_id: str,
) -> Optional[ReportContext]:
    """
    Load and score the data of one survey.

    Args:
        store: Report data source
        tenant_id: Tenant scope of every read
        survey_id: Survey to report on

    Returns:
        ReportContext, or None when the survey does not exist
    """
    survey = store.get_survey(tenant_id, survey_id)
    if survey is None:
        logger.warning(f"Survey {survey_id} not found for tenant {tenant_id}")
        return None

    question_map = build_question_map(
        survey.schema_document,
        store.list_clusters(tenant_id),
        store.list_competencies(tenant_id),
    )

    context = ReportContext(
        tenant_id=tenant_id,
        survey=survey,
        question_map=question_map,
        subjects={s.id: s for s in store.list_subjects(tenant_id)},
        evaluators={e.id: e for e in store.list_evaluators(tenant_id)},
        assignments=[
            a for a in store.list_assignments(tenant_id, survey_id) if a.is_active
        ],
    )

    context.submissions = store.list_submissions(tenant_id, survey_id)
    for submission in context.submissions:
        if submission.status != SubmissionStatus.COMPLETED or submission.response_data is None:
            continue
        assignment = find_assignment(submission, context.assignments)
        if assignment is None:
            continue
        subject = context.active_subject(submission.subject_id)
        if subject is None:
            continue

        context.completed.append(submission)
        context.completed_assignment_ids.add(assignment.id)
        context.scored.append(score_submission(
            submission,
            assignment,
            context.evaluators.get(submission.evaluator_id),
            subject,
            question_map,
        ))

    logger.info(
        f"Loaded survey {survey_id} for tenant {tenant_id}: "
        f"{len(question_map)} questions, {len(context.assignments)} active assignments, "
        f"{len(context.scored)} completed submissions"
    )
    return context
