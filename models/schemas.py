"""
Pydantic schemas for the 360 feedback report rows.

Every report returns plain records built from these models; rendering
(PDF, spreadsheet, charts) happens elsewhere. Score fields are
Optional[float] where "no data" must stay distinguishable from zero.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, computed_field


class QuestionDefinition(BaseModel):
    """One report column derived from the survey schema."""
    question_id: str
    question_text: str
    question_type: str
    cluster_name: str
    competency_name: str
    order: int = 0


class QuestionSummaryItem(BaseModel):
    """Question-level scores inside a competency."""
    question_id: str
    question_text: str
    self_score: Optional[float] = None
    others_score: Optional[float] = None
    relationship_scores: Dict[str, Optional[float]] = Field(default_factory=dict)


class CompetencySummaryItem(BaseModel):
    """Competency-level scores with their questions."""
    competency_name: str
    cluster_name: str
    self_score: Optional[float] = None
    others_score: Optional[float] = None
    relationship_scores: Dict[str, Optional[float]] = Field(default_factory=dict)
    questions: List[QuestionSummaryItem] = Field(default_factory=list)


class ClusterSummaryItem(BaseModel):
    """Cluster-level scores with their competencies."""
    cluster_name: str
    self_score: Optional[float] = None
    others_score: Optional[float] = None
    relationship_scores: Dict[str, Optional[float]] = Field(default_factory=dict)
    competencies: List[CompetencySummaryItem] = Field(default_factory=list)


class ClusterCompetencyHierarchy(BaseModel):
    """
    Cluster → competency → question tree.

    The survey-wide listing only fills names (for column ordering); the
    per-subject summary also fills scores and relationship columns.
    """
    clusters: List[ClusterSummaryItem] = Field(default_factory=list)
    relationship_types: List[str] = Field(default_factory=list)


class RelationshipStats(BaseModel):
    """Invitation counts for one relationship group."""
    sent: int = 0
    completed: int = 0

    @computed_field
    @property
    def remaining(self) -> int:
        return self.sent - self.completed


class SubjectHeatMapItem(BaseModel):
    """Heat map row: completion grid of one subject."""
    subject_id: str
    employee_id: Optional[str] = None
    full_name: str = ""
    email: str = ""
    department: Optional[str] = None
    relationship_data: Dict[str, RelationshipStats] = Field(default_factory=dict)
    grand_total: RelationshipStats = Field(default_factory=RelationshipStats)


class ConsolidatedReportItem(BaseModel):
    """
    Consolidated export row for one completed submission.

    Competency and cluster scores are sums, not averages.
    """
    submission_id: str
    subject_id: str
    employee_id: str = ""
    full_name: str = ""
    email: str = ""
    department: str = ""
    designation: str = ""
    business_unit: str = ""
    relationship: str = ""
    question_scores: Dict[str, float] = Field(default_factory=dict)
    competency_scores: Dict[str, float] = Field(default_factory=dict)
    cluster_scores: Dict[str, float] = Field(default_factory=dict)
    open_ended_responses: Dict[str, str] = Field(default_factory=dict)
    total_score: float = 0.0


class CompetencyScorePair(BaseModel):
    """Self vs others average for one competency; None means no data."""
    self_score: Optional[float] = None
    others_score: Optional[float] = None


class RateeAverageItem(BaseModel):
    """Ratee average row: one per assigned subject."""
    subject_id: str
    employee_id: Optional[str] = None
    full_name: str = ""
    email: str = ""
    department: Optional[str] = None
    competency_scores: Dict[str, CompetencyScorePair] = Field(default_factory=dict)


class HighLowScoreItem(BaseModel):
    """A ranked question in the highest / lowest scores lists."""
    rank: int
    question_id: str
    dimension: str
    item: str
    average: float


class HighLowScoresResult(BaseModel):
    """Highest (average >= threshold) and lowest scored questions."""
    highest_scores: List[HighLowScoreItem] = Field(default_factory=list)
    lowest_scores: List[HighLowScoreItem] = Field(default_factory=list)


class GapScoreItem(BaseModel):
    """Self vs others comparison for one question. gap = others - self."""
    rank: int = 0
    question_id: str
    scoring_category: str
    item: str
    self_score: float
    others_score: float
    gap: float


class LatentStrengthsBlindspotsResult(BaseModel):
    """Positive gaps (latent strengths) and negative gaps (blindspots)."""
    latent_strengths: List[GapScoreItem] = Field(default_factory=list)
    blindspots: List[GapScoreItem] = Field(default_factory=list)


class RelationshipCompletionStats(BaseModel):
    """Completion figures for one non-self relationship of a subject."""
    relationship_type: str
    total: int
    completed: int
    percent_complete: int


class SelfAssessmentStatusResult(BaseModel):
    """Status of a subject's own assessment."""
    subject_id: str
    survey_id: str
    status: str


class RaterGroupSummaryItem(BaseModel):
    """Competency averages by self, others and each visible rater group."""
    competency_name: str
    self_score: Optional[float] = None
    others_score: Optional[float] = None
    relationship_scores: Dict[str, Optional[float]] = Field(default_factory=dict)


class RaterGroupSummaryResult(BaseModel):
    relationship_types: List[str] = Field(default_factory=list)
    competency_items: List[RaterGroupSummaryItem] = Field(default_factory=list)


class AgreementChartItem(BaseModel):
    """Number of others' answers at each scale point for one competency."""
    competency_name: str
    score_distribution: Dict[int, int] = Field(default_factory=dict)


class AgreementChartResult(BaseModel):
    competency_items: List[AgreementChartItem] = Field(default_factory=list)


class OpenEndedFeedbackItem(BaseModel):
    question_id: str
    question_text: str
    response_text: str
    rater_type: str


class OpenEndedFeedbackResult(BaseModel):
    items: List[OpenEndedFeedbackItem] = Field(default_factory=list)


class ServiceStatus(BaseModel):
    """Status of the report data source."""
    report_store: str = Field(..., description="Report store backend: json|memory")
    data_dir: Optional[str] = Field(None, description="Directory of the JSON store, if used")
    document_cache: Dict[str, Any] = Field(
        default_factory=dict,
        description="Parsed tenant document cache: exists, size, maxsize, ttl",
    )


class HealthResponse(BaseModel):
    """Response schema for GET /health."""
    status: str = Field(default="healthy", description="Overall health status")
    version: str = Field(..., description="API version")
    services: ServiceStatus = Field(..., description="Data source configuration status")


class ErrorResponse(BaseModel):
    """Standardized error response."""
    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict] = Field(None, description="Additional error details")
    request_id: Optional[str] = Field(None, description="Client request ID if provided")

    class Config:
        json_schema_extra = {
            "example": {
                "error_code": "HTTP_400",
                "message": "Missing X-Tenant-Id header",
                "details": None,
                "request_id": "abc-123"
            }
        }
