"""
Survey-wide reports.

Each report loads the survey context once, then folds the scored
submissions into its rows. A missing survey, or any unexpected error,
yields the empty report shape; errors are logged, never raised.
"""

import logging
from typing import List

from models.schemas import (
    ClusterCompetencyHierarchy,
    ClusterSummaryItem,
    CompetencyScorePair,
    CompetencySummaryItem,
    ConsolidatedReportItem,
    QuestionDefinition,
    QuestionSummaryItem,
    RateeAverageItem,
    SubjectHeatMapItem,
)
from adapters.report_store import ReportStore
from analytics import aggregation
from analytics.report_context import load_report_context

logger = logging.getLogger(__name__)


class SurveyReportAssembler:
    """
    Builds the reports that cover every subject of a survey.

    Usage:
        assembler = SurveyReportAssembler(store)
        rows = assembler.subject_heat_map("tenant-1", "survey-1")
    """

    def __init__(self, store: ReportStore):
        self.store = store

    def cluster_competency_hierarchy(self, tenant_id: str, survey_id: str) -> ClusterCompetencyHierarchy:
        """
        List the clusters of a survey with their competencies and questions.

        Clusters and competencies are sorted by name; questions keep schema
        order. Only scored questions take part.
        """
        try:
            context = load_report_context(self.store, tenant_id, survey_id)
            if context is None:
                return ClusterCompetencyHierarchy()

            tree = aggregation.questions_by_cluster_competency(context.question_map)

            return ClusterCompetencyHierarchy(clusters=[
                ClusterSummaryItem(
                    cluster_name=cluster,
                    competencies=[
                        CompetencySummaryItem(
                            competency_name=competency,
                            cluster_name=cluster,
                            questions=[
                                QuestionSummaryItem(
                                    question_id=key,
                                    question_text=context.question_map[key].text,
                                )
                                for key in keys
                            ],
                        )
                        for competency, keys in competencies.items()
                    ],
                )
                for cluster, competencies in tree.items()
            ])
        except Exception as e:
            logger.exception(f"Error building cluster hierarchy for survey {survey_id}: {e}")
            return ClusterCompetencyHierarchy()

    def subject_heat_map(self, tenant_id: str, survey_id: str) -> List[SubjectHeatMapItem]:
        """
        Completion grid per assigned subject.

        Returns:
            One row per active subject with active assignments: relationship
            → {sent, completed, remaining} plus a grand total
        """
        try:
            context = load_report_context(self.store, tenant_id, survey_id)
            if context is None:
                return []

            rows = []
            for subject in context.assigned_subjects():
                relationship_data, grand_total = aggregation.completion_stats(
                    (a.relationship, a.id in context.completed_assignment_ids)
                    for a in context.assignments_for(subject.id)
                )
                rows.append(SubjectHeatMapItem(
                    subject_id=subject.id,
                    employee_id=subject.employee_id,
                    full_name=subject.full_name,
                    email=subject.email,
                    department=subject.department or subject.designation,
                    relationship_data=relationship_data,
                    grand_total=grand_total,
                ))

            logger.info(f"Heat map for survey {survey_id}: {len(rows)} subjects")
            return rows
        except Exception as e:
            logger.exception(f"Error building heat map for survey {survey_id}: {e}")
            return []

    def subject_consolidated(self, tenant_id: str, survey_id: str) -> List[ConsolidatedReportItem]:
        """
        One export row per completed submission.

        Competency and cluster figures are sums of question scores, not
        averages. Open-ended answers are copied verbatim.
        """
        try:
            context = load_report_context(self.store, tenant_id, survey_id)
            if context is None:
                return []

            rows = []
            for scored in context.scored:
                subject = context.subjects[scored.subject_id]
                question_scores, competency_sums, cluster_sums, total = aggregation.score_sums(
                    scored, context.question_map
                )
                rows.append(ConsolidatedReportItem(
                    submission_id=scored.submission_id,
                    subject_id=subject.id,
                    employee_id=subject.employee_id or "",
                    full_name=subject.full_name,
                    email=subject.email,
                    department=subject.department or "",
                    designation=subject.designation or "",
                    business_unit=subject.department or subject.designation or "",
                    relationship=scored.relationship,
                    question_scores=question_scores,
                    competency_scores=competency_sums,
                    cluster_scores=cluster_sums,
                    open_ended_responses=dict(scored.text_answers),
                    total_score=total,
                ))

            logger.info(f"Consolidated report for survey {survey_id}: {len(rows)} submissions")
            return rows
        except Exception as e:
            logger.exception(f"Error building consolidated report for survey {survey_id}: {e}")
            return []

    def ratee_average(self, tenant_id: str, survey_id: str) -> List[RateeAverageItem]:
        """
        Self vs others average per competency, one row per assigned subject.

        Subjects without completed submissions still get a row, with every
        score None.
        """
        try:
            context = load_report_context(self.store, tenant_id, survey_id)
            if context is None:
                return []

            competencies = aggregation.questions_by_competency(context.question_map)
            rows = []
            for subject in context.assigned_subjects():
                self_subs, others = aggregation.split_self_others(context.scored_for(subject.id))
                rows.append(RateeAverageItem(
                    subject_id=subject.id,
                    employee_id=subject.employee_id,
                    full_name=subject.full_name,
                    email=subject.email,
                    department=subject.department or subject.designation,
                    competency_scores={
                        competency: CompetencyScorePair(
                            self_score=aggregation.pooled_average(self_subs, keys),
                            others_score=aggregation.pooled_average(others, keys),
                        )
                        for competency, keys in competencies.items()
                    },
                ))
            return rows
        except Exception as e:
            logger.exception(f"Error building ratee average for survey {survey_id}: {e}")
            return []

    def question_columns(self, tenant_id: str, survey_id: str) -> List[QuestionDefinition]:
        """Every question of the survey, ordered by cluster, competency, then schema order."""
        try:
            context = load_report_context(self.store, tenant_id, survey_id)
            if context is None:
                return []

            mappings = sorted(
                context.question_map.values(),
                key=lambda m: (m.cluster_name, m.competency_name, m.order),
            )
            return [
                QuestionDefinition(
                    question_id=m.key,
                    question_text=m.text,
                    question_type=m.question_type,
                    cluster_name=m.cluster_name,
                    competency_name=m.competency_name,
                    order=m.order,
                )
                for m in mappings
            ]
        except Exception as e:
            logger.exception(f"Error listing questions for survey {survey_id}: {e}")
            return []
