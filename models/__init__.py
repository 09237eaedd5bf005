"""Models package for the 360 feedback reports."""

from .records import (
    ClusterRecord,
    CompetencyRecord,
    SurveyRecord,
    SubjectRecord,
    EvaluatorRecord,
    AssignmentRecord,
    SubmissionRecord,
)
from .schemas import (
    QuestionDefinition,
    ClusterCompetencyHierarchy,
    SubjectHeatMapItem,
    ConsolidatedReportItem,
    RateeAverageItem,
    HighLowScoresResult,
    LatentStrengthsBlindspotsResult,
    HealthResponse,
    ServiceStatus,
    ErrorResponse,
)
from .enums import (
    QuestionType,
    SubmissionStatus,
    RelationshipType,
    SelfAssessmentStatus,
    ScoreState,
)

__all__ = [
    "ClusterRecord",
    "CompetencyRecord",
    "SurveyRecord",
    "SubjectRecord",
    "EvaluatorRecord",
    "AssignmentRecord",
    "SubmissionRecord",
    "QuestionDefinition",
    "ClusterCompetencyHierarchy",
    "SubjectHeatMapItem",
    "ConsolidatedReportItem",
    "RateeAverageItem",
    "HighLowScoresResult",
    "LatentStrengthsBlindspotsResult",
    "HealthResponse",
    "ServiceStatus",
    "ErrorResponse",
    "QuestionType",
    "SubmissionStatus",
    "RelationshipType",
    "SelfAssessmentStatus",
    "ScoreState",
]
