"""
Shared fixtures for the report tests.

StoreBuilder assembles an in-memory tenant with one survey; each test adds
the subjects and raters it needs.
"""

import itertools
from typing import Any, Dict, Optional

import pytest

from adapters.report_store import InMemoryReportStore
from models.enums import SubmissionStatus
from models.records import (
    AssignmentRecord,
    ClusterRecord,
    CompetencyRecord,
    EvaluatorRecord,
    SubjectRecord,
    SubmissionRecord,
    SurveyRecord,
)
from utils.cache import clear_cache

TENANT = "tenant-1"
SURVEY = "survey-1"

CLUSTERS = [
    ClusterRecord(id="cl-lead", tenant_id=TENANT, name="Leadership"),
    ClusterRecord(id="cl-exec", tenant_id=TENANT, name="Execution"),
]

COMPETENCIES = [
    CompetencyRecord(id="co-comm", tenant_id=TENANT, name="Communication", cluster_id="cl-lead"),
    CompetencyRecord(id="co-vision", tenant_id=TENANT, name="Vision", cluster_id="cl-lead"),
    CompetencyRecord(id="co-deliv", tenant_id=TENANT, name="Delivery", cluster_id="cl-exec"),
]

RATING_OPTIONS = [
    {"text": "Poor", "score": 1},
    {"text": "Good", "score": 3},
    {"text": "Excellent", "score": 5},
]


def single_rating_schema() -> Dict[str, Any]:
    """One rating question scored Poor=1, Good=3, Excellent=5."""
    return {
        "pages": [{
            "name": "page1",
            "elements": [{
                "type": "rating",
                "id": "q1",
                "title": "Listens to others",
                "importedFrom": {"clusterId": "cl-lead", "competencyId": "co-comm"},
                "config": {"ratingOptions": RATING_OPTIONS},
            }],
        }],
    }


def full_schema() -> Dict[str, Any]:
    """Rating, radiogroup in a panel, matrix, multiple text and comment."""
    return {
        "pages": [
            {
                "name": "page1",
                "questions": [
                    {
                        "type": "rating",
                        "id": "q1",
                        "title": "Listens to others",
                        "importedFrom": {"clusterId": "cl-lead", "competencyId": "co-comm"},
                        "config": {"ratingOptions": RATING_OPTIONS},
                    },
                    {
                        "type": "panel",
                        "elements": [{
                            "type": "radiogroup",
                            "id": "q2",
                            "othersText": "Delivers on time",
                            "selfText": "I deliver on time",
                            "importedFrom": {"competencyId": "co-deliv"},
                            "choices": [
                                {"value": "rarely", "text": "Rarely", "order": 0},
                                {"value": "often", "text": "Often", "order": 1},
                                {"value": "always", "text": "Always", "order": 2},
                            ],
                        }],
                    },
                ],
            },
            {
                "name": "page2",
                "elements": [
                    {
                        "type": "matrix",
                        "id": "m1",
                        "title": "Vision",
                        "importedFrom": {"clusterId": "cl-lead", "competencyId": "co-vision"},
                        "columns": [
                            {"value": 1, "text": "Low"},
                            {"value": 3, "text": "Medium"},
                            {"value": 5, "text": "High"},
                        ],
                        "rows": [
                            {"value": "Strategy", "text": "Sets direction"},
                            "Inspiration",
                        ],
                    },
                    {
                        "type": "multipletext",
                        "id": "mt1",
                        "items": [{"name": "keep", "title": "Keep doing"}, {"name": "stop"}],
                    },
                    {"type": "comment", "id": "c1", "title": "Other comments"},
                ],
            },
        ],
    }


def shared_general_schema() -> Dict[str, Any]:
    """Two ratings that both fall back to the General competency, in different clusters."""
    return {
        "pages": [{
            "name": "page1",
            "elements": [
                {
                    "type": "rating",
                    "id": "q1",
                    "title": "Leads by example",
                    "importedFrom": {"clusterId": "cl-lead"},
                    "config": {"ratingOptions": RATING_OPTIONS},
                },
                {
                    "type": "rating",
                    "id": "q2",
                    "title": "Overall impression",
                    "config": {"ratingOptions": RATING_OPTIONS},
                },
            ],
        }],
    }


class StoreBuilder:
    """
    Builds an InMemoryReportStore around one survey.

    Usage:
        builder = StoreBuilder(single_rating_schema())
        builder.subject("sub-1", employee_id="E1")
        builder.rater("sub-1", "Peer", {"q1": "Good"})
    """

    def __init__(self, schema: Any, tenant_id: str = TENANT, survey_id: str = SURVEY):
        self.tenant_id = tenant_id
        self.survey_id = survey_id
        self.store = InMemoryReportStore(
            surveys=[SurveyRecord(id=survey_id, tenant_id=tenant_id, title="360 Review", schema=schema)],
            clusters=[c.model_copy(update={"tenant_id": tenant_id}) for c in CLUSTERS],
            competencies=[c.model_copy(update={"tenant_id": tenant_id}) for c in COMPETENCIES],
        )
        self._ids = itertools.count(1)

    def subject(self, subject_id: str, employee_id: Optional[str] = None, **fields) -> SubjectRecord:
        subject = SubjectRecord(
            id=subject_id,
            tenant_id=self.tenant_id,
            employee_id=employee_id,
            full_name=fields.pop("full_name", f"Subject {subject_id}"),
            email=fields.pop("email", f"{subject_id}@example.com"),
            **fields,
        )
        self.store.add(subject)
        return subject

    def rater(
        self,
        subject_id: str,
        relationship: Optional[str],
        answers: Optional[Dict[str, Any]] = None,
        status: SubmissionStatus = SubmissionStatus.COMPLETED,
        employee_id: Optional[str] = None,
        assignment_active: bool = True,
    ) -> AssignmentRecord:
        """
        Add an evaluator and its assignment; a submission is added only
        when answers are given.
        """
        n = next(self._ids)
        evaluator = EvaluatorRecord(
            id=f"ev-{n}",
            tenant_id=self.tenant_id,
            employee_id=employee_id,
            full_name=f"Evaluator {n}",
        )
        assignment = AssignmentRecord(
            id=f"as-{n}",
            tenant_id=self.tenant_id,
            survey_id=self.survey_id,
            subject_id=subject_id,
            evaluator_id=evaluator.id,
            relationship=relationship,
            is_active=assignment_active,
        )
        self.store.add(evaluator, assignment)

        if answers is not None:
            self.store.add(SubmissionRecord(
                id=f"sm-{n}",
                tenant_id=self.tenant_id,
                survey_id=self.survey_id,
                subject_id=subject_id,
                evaluator_id=evaluator.id,
                assignment_id=assignment.id,
                status=status,
                response_data=answers,
            ))
        return assignment


@pytest.fixture
def single_rating_builder() -> StoreBuilder:
    return StoreBuilder(single_rating_schema())


@pytest.fixture
def full_builder() -> StoreBuilder:
    return StoreBuilder(full_schema())


@pytest.fixture
def shared_general_builder() -> StoreBuilder:
    return StoreBuilder(shared_general_schema())


@pytest.fixture
def blindspot_builder(single_rating_builder) -> StoreBuilder:
    """Self answers Excellent, three peers answer Good."""
    builder = single_rating_builder
    builder.subject("sub-1", employee_id="E1")
    builder.rater("sub-1", "Self", {"q1": "Excellent"}, employee_id="E1")
    for _ in range(3):
        builder.rater("sub-1", "Peer", {"q1": "Good"})
    return builder


@pytest.fixture(autouse=True)
def _clear_caches():
    clear_cache()
    yield
    clear_cache()
