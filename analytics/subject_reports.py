"""
Per-subject reports.

Everything a single subject's feedback report shows: ranked questions,
self vs others gaps, completion by relationship, rater-group summaries,
the agreement chart and open-ended comments.

Like the survey-wide reports, a missing survey or subject yields the
empty shape and unexpected errors are logged, never raised.
"""

import logging
from typing import List, Optional

from models.enums import ANONYMOUS_RATER, UNKNOWN_RELATIONSHIP, SelfAssessmentStatus, SubmissionStatus
from models.records import AssignmentRecord, SubjectRecord
from models.schemas import (
    AgreementChartResult,
    ClusterCompetencyHierarchy,
    ClusterSummaryItem,
    CompetencySummaryItem,
    HighLowScoresResult,
    LatentStrengthsBlindspotsResult,
    OpenEndedFeedbackItem,
    OpenEndedFeedbackResult,
    QuestionSummaryItem,
    RaterGroupSummaryItem,
    RaterGroupSummaryResult,
    RelationshipCompletionStats,
    SelfAssessmentStatusResult,
)
from adapters.report_store import ReportStore
from analytics import aggregation
from analytics.report_context import ReportContext, find_assignment, load_report_context
from analytics.scored_submission import is_self_assessment
from utils.rounding import percent

logger = logging.getLogger(__name__)


class SubjectReportAssembler:
    """
    Builds the reports of one subject within a survey.

    Usage:
        assembler = SubjectReportAssembler(store)
        gaps = assembler.latent_strengths_blindspots("tenant-1", "survey-1", "subject-1")
    """

    def __init__(self, store: ReportStore):
        self.store = store

    def _load(self, tenant_id: str, survey_id: str, subject_id: str):
        """Context and active subject, or (None, None) when either is missing."""
        context = load_report_context(self.store, tenant_id, survey_id)
        if context is None:
            return None, None
        subject = context.active_subject(subject_id)
        if subject is None:
            logger.warning(f"Subject {subject_id} not found for tenant {tenant_id}")
            return None, None
        return context, subject

    @staticmethod
    def _is_self_assignment(
        context: ReportContext,
        assignment: AssignmentRecord,
        subject: SubjectRecord,
    ) -> bool:
        return is_self_assessment(
            assignment.relationship,
            context.evaluators.get(assignment.evaluator_id),
            subject,
        )

    def high_low_scores(self, tenant_id: str, survey_id: str, subject_id: str) -> HighLowScoresResult:
        """Highest and lowest rated questions by the subject's other raters."""
        try:
            context, subject = self._load(tenant_id, survey_id, subject_id)
            if context is None:
                return HighLowScoresResult()
            return aggregation.high_low_scores(context.scored_for(subject.id), context.question_map)
        except Exception as e:
            logger.exception(f"Error building high/low scores for subject {subject_id}: {e}")
            return HighLowScoresResult()

    def latent_strengths_blindspots(
        self, tenant_id: str, survey_id: str, subject_id: str
    ) -> LatentStrengthsBlindspotsResult:
        """Questions where others rate the subject above (or below) their own rating."""
        try:
            context, subject = self._load(tenant_id, survey_id, subject_id)
            if context is None:
                return LatentStrengthsBlindspotsResult()
            return aggregation.gap_analysis(context.scored_for(subject.id), context.question_map)
        except Exception as e:
            logger.exception(f"Error building gap analysis for subject {subject_id}: {e}")
            return LatentStrengthsBlindspotsResult()

    def relationship_completion(
        self, tenant_id: str, survey_id: str, subject_id: str
    ) -> List[RelationshipCompletionStats]:
        """
        Completion per relationship, self-assessments excluded.

        Returns:
            One item per relationship, sorted by relationship, with the
            percentage rounded half up to a whole number
        """
        try:
            context, subject = self._load(tenant_id, survey_id, subject_id)
            if context is None:
                return []

            stats, _ = aggregation.completion_stats(
                (a.relationship, a.id in context.completed_assignment_ids)
                for a in context.assignments_for(subject.id)
                if not self._is_self_assignment(context, a, subject)
            )
            return [
                RelationshipCompletionStats(
                    relationship_type=relationship,
                    total=group.sent,
                    completed=group.completed,
                    percent_complete=percent(group.completed, group.sent),
                )
                for relationship, group in stats.items()
            ]
        except Exception as e:
            logger.exception(f"Error building completion stats for subject {subject_id}: {e}")
            return []

    def self_assessment_status(
        self, tenant_id: str, survey_id: str, subject_id: str
    ) -> SelfAssessmentStatusResult:
        """
        Status of the subject's own assessment.

        Not Found (no survey or subject), Not Assigned (no self assignment),
        then Completed / In Progress / Pending from the best submission.
        """
        result = SelfAssessmentStatusResult(
            subject_id=subject_id,
            survey_id=survey_id,
            status=SelfAssessmentStatus.NOT_FOUND.value,
        )
        try:
            context, subject = self._load(tenant_id, survey_id, subject_id)
            if context is None:
                return result

            self_assignments = [
                a for a in context.assignments_for(subject.id)
                if self._is_self_assignment(context, a, subject)
            ]
            if not self_assignments:
                result.status = SelfAssessmentStatus.NOT_ASSIGNED.value
                return result

            statuses = set()
            for submission in context.submissions:
                if submission.subject_id != subject.id:
                    continue
                if find_assignment(submission, self_assignments) is not None:
                    statuses.add(submission.status)

            if SubmissionStatus.COMPLETED in statuses:
                result.status = SelfAssessmentStatus.COMPLETED.value
            elif SubmissionStatus.IN_PROGRESS in statuses:
                result.status = SelfAssessmentStatus.IN_PROGRESS.value
            else:
                result.status = SelfAssessmentStatus.PENDING.value
            return result
        except Exception as e:
            logger.exception(f"Error reading self-assessment status for subject {subject_id}: {e}")
            return result

    def rater_group_summary(self, tenant_id: str, survey_id: str, subject_id: str) -> RaterGroupSummaryResult:
        """
        Competency averages by self, all others and each rater group.

        Restricted groups below the anonymity threshold are left out.
        """
        try:
            context, subject = self._load(tenant_id, survey_id, subject_id)
            if context is None:
                return RaterGroupSummaryResult()

            self_subs, others = aggregation.split_self_others(context.scored_for(subject.id))
            relationships = aggregation.visible_relationships(others)

            items = [
                RaterGroupSummaryItem(
                    competency_name=competency,
                    self_score=aggregation.pooled_average(self_subs, keys),
                    others_score=aggregation.pooled_average(others, keys),
                    relationship_scores=aggregation.relationship_averages(others, relationships, keys),
                )
                for competency, keys in aggregation.questions_by_competency(context.question_map).items()
            ]
            return RaterGroupSummaryResult(relationship_types=relationships, competency_items=items)
        except Exception as e:
            logger.exception(f"Error building rater group summary for subject {subject_id}: {e}")
            return RaterGroupSummaryResult()

    def subject_hierarchy(self, tenant_id: str, survey_id: str, subject_id: str) -> ClusterCompetencyHierarchy:
        """
        Cluster → competency → question tree with scores at every level.

        Each level pools the valid scores of all questions beneath it.
        """
        try:
            context, subject = self._load(tenant_id, survey_id, subject_id)
            if context is None:
                return ClusterCompetencyHierarchy()

            self_subs, others = aggregation.split_self_others(context.scored_for(subject.id))
            relationships = aggregation.visible_relationships(others)
            question_map = context.question_map

            def scores(keys):
                return dict(
                    self_score=aggregation.pooled_average(self_subs, keys),
                    others_score=aggregation.pooled_average(others, keys),
                    relationship_scores=aggregation.relationship_averages(others, relationships, keys),
                )

            tree = aggregation.questions_by_cluster_competency(question_map)

            clusters = []
            for cluster, competency_keys in tree.items():
                competencies = []
                for competency, keys in competency_keys.items():
                    competencies.append(CompetencySummaryItem(
                        competency_name=competency,
                        cluster_name=cluster,
                        questions=[
                            QuestionSummaryItem(
                                question_id=key,
                                question_text=question_map[key].text,
                                **scores([key]),
                            )
                            for key in keys
                        ],
                        **scores(keys),
                    ))
                cluster_keys = [key for question_keys in competency_keys.values() for key in question_keys]
                clusters.append(ClusterSummaryItem(
                    cluster_name=cluster,
                    competencies=competencies,
                    **scores(cluster_keys),
                ))

            return ClusterCompetencyHierarchy(clusters=clusters, relationship_types=relationships)
        except Exception as e:
            logger.exception(f"Error building summary hierarchy for subject {subject_id}: {e}")
            return ClusterCompetencyHierarchy()

    def agreement_chart(self, tenant_id: str, survey_id: str, subject_id: str) -> AgreementChartResult:
        """Distribution of the others' scores on the 1-5 scale per competency."""
        try:
            context, subject = self._load(tenant_id, survey_id, subject_id)
            if context is None:
                return AgreementChartResult()
            _, others = aggregation.split_self_others(context.scored_for(subject.id))
            return AgreementChartResult(
                competency_items=aggregation.score_distribution(others, context.question_map)
            )
        except Exception as e:
            logger.exception(f"Error building agreement chart for subject {subject_id}: {e}")
            return AgreementChartResult()

    def open_ended_feedback(self, tenant_id: str, survey_id: str, subject_id: str) -> OpenEndedFeedbackResult:
        """Open-ended answers of the subject's other raters, in schema order."""
        try:
            context, subject = self._load(tenant_id, survey_id, subject_id)
            if context is None:
                return OpenEndedFeedbackResult()

            _, others = aggregation.split_self_others(context.scored_for(subject.id))
            items = []
            for mapping in context.question_map.values():
                for scored in others:
                    text = scored.text_answers.get(mapping.key)
                    if text is None:
                        continue
                    items.append(OpenEndedFeedbackItem(
                        question_id=mapping.key,
                        question_text=mapping.text,
                        response_text=text,
                        rater_type=_rater_type(scored.relationship),
                    ))
            return OpenEndedFeedbackResult(items=items)
        except Exception as e:
            logger.exception(f"Error collecting open-ended feedback for subject {subject_id}: {e}")
            return OpenEndedFeedbackResult()


def _rater_type(relationship: Optional[str]) -> str:
    if not relationship or relationship == UNKNOWN_RELATIONSHIP:
        return ANONYMOUS_RATER
    return relationship
