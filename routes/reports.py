"""
Report routes for the Nomad 360 reporting service.

Every route is tenant-scoped through the X-Tenant-Id header. Unknown
surveys and subjects answer 200 with the empty report.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from config import settings
from models.schemas import (
    AgreementChartResult,
    ClusterCompetencyHierarchy,
    ConsolidatedReportItem,
    HighLowScoresResult,
    LatentStrengthsBlindspotsResult,
    OpenEndedFeedbackResult,
    QuestionDefinition,
    RateeAverageItem,
    RaterGroupSummaryResult,
    RelationshipCompletionStats,
    SelfAssessmentStatusResult,
    SubjectHeatMapItem,
)
from adapters.report_store import InMemoryReportStore, ReportStore
from adapters.json_store import JsonFileReportStore
from analytics.survey_reports import SurveyReportAssembler
from analytics.subject_reports import SubjectReportAssembler

router = APIRouter(prefix="/reports", tags=["Reports"])

_memory_store = InMemoryReportStore()


def get_report_store() -> ReportStore:
    """JSON store when DATA_DIR is set, else the process-wide in-memory store."""
    if settings.data_dir:
        return JsonFileReportStore(settings.data_dir)
    return _memory_store


def get_tenant_id(x_tenant_id: Optional[str] = Header(None, alias="X-Tenant-Id")) -> str:
    """Tenant of the request, taken from the X-Tenant-Id header."""
    if not x_tenant_id or not x_tenant_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing X-Tenant-Id header",
        )
    return x_tenant_id.strip()


def get_survey_reports(store: ReportStore = Depends(get_report_store)) -> SurveyReportAssembler:
    return SurveyReportAssembler(store)


def get_subject_reports(store: ReportStore = Depends(get_report_store)) -> SubjectReportAssembler:
    return SubjectReportAssembler(store)


# ============ SURVEY-WIDE ============

@router.get("/surveys/{survey_id}/hierarchy", response_model=ClusterCompetencyHierarchy)
def get_hierarchy(
    survey_id: str,
    tenant_id: str = Depends(get_tenant_id),
    reports: SurveyReportAssembler = Depends(get_survey_reports),
):
    """Clusters, competencies and questions of a survey"""
    return reports.cluster_competency_hierarchy(tenant_id, survey_id)


@router.get("/surveys/{survey_id}/heat-map", response_model=List[SubjectHeatMapItem])
def get_heat_map(
    survey_id: str,
    tenant_id: str = Depends(get_tenant_id),
    reports: SurveyReportAssembler = Depends(get_survey_reports),
):
    """Sent / completed / remaining per subject and relationship"""
    return reports.subject_heat_map(tenant_id, survey_id)


@router.get("/surveys/{survey_id}/consolidated", response_model=List[ConsolidatedReportItem])
def get_consolidated(
    survey_id: str,
    tenant_id: str = Depends(get_tenant_id),
    reports: SurveyReportAssembler = Depends(get_survey_reports),
):
    """One summed-score row per completed submission"""
    return reports.subject_consolidated(tenant_id, survey_id)


@router.get("/surveys/{survey_id}/ratee-average", response_model=List[RateeAverageItem])
def get_ratee_average(
    survey_id: str,
    tenant_id: str = Depends(get_tenant_id),
    reports: SurveyReportAssembler = Depends(get_survey_reports),
):
    """Self vs others competency averages per subject"""
    return reports.ratee_average(tenant_id, survey_id)


@router.get("/surveys/{survey_id}/questions", response_model=List[QuestionDefinition])
def get_questions(
    survey_id: str,
    tenant_id: str = Depends(get_tenant_id),
    reports: SurveyReportAssembler = Depends(get_survey_reports),
):
    """Report columns of a survey"""
    return reports.question_columns(tenant_id, survey_id)


# ============ PER SUBJECT ============

@router.get("/surveys/{survey_id}/subjects/{subject_id}/high-low", response_model=HighLowScoresResult)
def get_high_low(
    survey_id: str,
    subject_id: str,
    tenant_id: str = Depends(get_tenant_id),
    reports: SubjectReportAssembler = Depends(get_subject_reports),
):
    return reports.high_low_scores(tenant_id, survey_id, subject_id)


@router.get(
    "/surveys/{survey_id}/subjects/{subject_id}/gaps",
    response_model=LatentStrengthsBlindspotsResult,
)
def get_gaps(
    survey_id: str,
    subject_id: str,
    tenant_id: str = Depends(get_tenant_id),
    reports: SubjectReportAssembler = Depends(get_subject_reports),
):
    return reports.latent_strengths_blindspots(tenant_id, survey_id, subject_id)


@router.get(
    "/surveys/{survey_id}/subjects/{subject_id}/completion",
    response_model=List[RelationshipCompletionStats],
)
def get_completion(
    survey_id: str,
    subject_id: str,
    tenant_id: str = Depends(get_tenant_id),
    reports: SubjectReportAssembler = Depends(get_subject_reports),
):
    return reports.relationship_completion(tenant_id, survey_id, subject_id)


@router.get(
    "/surveys/{survey_id}/subjects/{subject_id}/self-assessment",
    response_model=SelfAssessmentStatusResult,
)
def get_self_assessment(
    survey_id: str,
    subject_id: str,
    tenant_id: str = Depends(get_tenant_id),
    reports: SubjectReportAssembler = Depends(get_subject_reports),
):
    return reports.self_assessment_status(tenant_id, survey_id, subject_id)


@router.get(
    "/surveys/{survey_id}/subjects/{subject_id}/rater-groups",
    response_model=RaterGroupSummaryResult,
)
def get_rater_groups(
    survey_id: str,
    subject_id: str,
    tenant_id: str = Depends(get_tenant_id),
    reports: SubjectReportAssembler = Depends(get_subject_reports),
):
    return reports.rater_group_summary(tenant_id, survey_id, subject_id)


@router.get(
    "/surveys/{survey_id}/subjects/{subject_id}/summary",
    response_model=ClusterCompetencyHierarchy,
)
def get_summary(
    survey_id: str,
    subject_id: str,
    tenant_id: str = Depends(get_tenant_id),
    reports: SubjectReportAssembler = Depends(get_subject_reports),
):
    """Cluster → competency → question scores of one subject"""
    return reports.subject_hierarchy(tenant_id, survey_id, subject_id)


@router.get(
    "/surveys/{survey_id}/subjects/{subject_id}/agreement",
    response_model=AgreementChartResult,
)
def get_agreement(
    survey_id: str,
    subject_id: str,
    tenant_id: str = Depends(get_tenant_id),
    reports: SubjectReportAssembler = Depends(get_subject_reports),
):
    return reports.agreement_chart(tenant_id, survey_id, subject_id)


@router.get(
    "/surveys/{survey_id}/subjects/{subject_id}/open-ended",
    response_model=OpenEndedFeedbackResult,
)
def get_open_ended(
    survey_id: str,
    subject_id: str,
    tenant_id: str = Depends(get_tenant_id),
    reports: SubjectReportAssembler = Depends(get_subject_reports),
):
    return reports.open_ended_feedback(tenant_id, survey_id, subject_id)
