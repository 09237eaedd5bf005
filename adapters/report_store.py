"""
Report data source interface.

The report engine reads tenant data through ReportStore only. Every read
is tenant-scoped: a record of another tenant is never returned.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from models.records import (
    AssignmentRecord,
    ClusterRecord,
    CompetencyRecord,
    EvaluatorRecord,
    SubjectRecord,
    SubmissionRecord,
    SurveyRecord,
)

logger = logging.getLogger(__name__)


class ReportStore(ABC):
    """Read-only access to the records the reports are built from."""

    @abstractmethod
    def get_survey(self, tenant_id: str, survey_id: str) -> Optional[SurveyRecord]:
        ...

    @abstractmethod
    def list_clusters(self, tenant_id: str) -> List[ClusterRecord]:
        ...

    @abstractmethod
    def list_competencies(self, tenant_id: str) -> List[CompetencyRecord]:
        ...

    @abstractmethod
    def get_subject(self, tenant_id: str, subject_id: str) -> Optional[SubjectRecord]:
        ...

    @abstractmethod
    def list_subjects(self, tenant_id: str) -> List[SubjectRecord]:
        ...

    @abstractmethod
    def list_evaluators(self, tenant_id: str) -> List[EvaluatorRecord]:
        ...

    @abstractmethod
    def list_assignments(self, tenant_id: str, survey_id: str) -> List[AssignmentRecord]:
        """Assignments of a survey, active or not."""

    @abstractmethod
    def list_submissions(self, tenant_id: str, survey_id: str) -> List[SubmissionRecord]:
        """Submissions of a survey, any status."""


class InMemoryReportStore(ReportStore):
    """
    ReportStore over plain lists of records.

    Used by tests and when no data directory is configured.

    Usage:
        store = InMemoryReportStore(surveys=[survey], subjects=[subject])
        store.add(assignment, submission)
    """

    def __init__(
        self,
        surveys: Iterable[SurveyRecord] = (),
        clusters: Iterable[ClusterRecord] = (),
        competencies: Iterable[CompetencyRecord] = (),
        subjects: Iterable[SubjectRecord] = (),
        evaluators: Iterable[EvaluatorRecord] = (),
        assignments: Iterable[AssignmentRecord] = (),
        submissions: Iterable[SubmissionRecord] = (),
    ):
        self.surveys: List[SurveyRecord] = list(surveys)
        self.clusters: List[ClusterRecord] = list(clusters)
        self.competencies: List[CompetencyRecord] = list(competencies)
        self.subjects: List[SubjectRecord] = list(subjects)
        self.evaluators: List[EvaluatorRecord] = list(evaluators)
        self.assignments: List[AssignmentRecord] = list(assignments)
        self.submissions: List[SubmissionRecord] = list(submissions)

    def add(self, *records) -> None:
        """Append records to the list matching their type."""
        targets = {
            SurveyRecord: self.surveys,
            ClusterRecord: self.clusters,
            CompetencyRecord: self.competencies,
            SubjectRecord: self.subjects,
            EvaluatorRecord: self.evaluators,
            AssignmentRecord: self.assignments,
            SubmissionRecord: self.submissions,
        }
        for record in records:
            target = targets.get(type(record))
            if target is None:
                raise TypeError(f"Unsupported record type: {type(record).__name__}")
            target.append(record)

    @staticmethod
    def _for_tenant(records, tenant_id: str) -> list:
        return [r for r in records if r.tenant_id == tenant_id]

    def get_survey(self, tenant_id: str, survey_id: str) -> Optional[SurveyRecord]:
        for survey in self._for_tenant(self.surveys, tenant_id):
            if survey.id == survey_id:
                return survey
        return None

    def list_clusters(self, tenant_id: str) -> List[ClusterRecord]:
        return self._for_tenant(self.clusters, tenant_id)

    def list_competencies(self, tenant_id: str) -> List[CompetencyRecord]:
        return self._for_tenant(self.competencies, tenant_id)

    def get_subject(self, tenant_id: str, subject_id: str) -> Optional[SubjectRecord]:
        for subject in self._for_tenant(self.subjects, tenant_id):
            if subject.id == subject_id:
                return subject
        return None

    def list_subjects(self, tenant_id: str) -> List[SubjectRecord]:
        return self._for_tenant(self.subjects, tenant_id)

    def list_evaluators(self, tenant_id: str) -> List[EvaluatorRecord]:
        return self._for_tenant(self.evaluators, tenant_id)

    def list_assignments(self, tenant_id: str, survey_id: str) -> List[AssignmentRecord]:
        return [a for a in self._for_tenant(self.assignments, tenant_id) if a.survey_id == survey_id]

    def list_submissions(self, tenant_id: str, survey_id: str) -> List[SubmissionRecord]:
        return [s for s in self._for_tenant(self.submissions, tenant_id) if s.survey_id == survey_id]
