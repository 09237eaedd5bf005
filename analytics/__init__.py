"""Analytics package: schema walking, answer scoring and report assembly."""

from .schema_walker import QuestionMapping, SchemaWalker, build_question_map
from .answer_resolver import ResolvedAnswer, resolve_answer, resolve_answer_state
from .scored_submission import ScoredSubmission, is_self_assessment, score_submission
from .survey_reports import SurveyReportAssembler
from .subject_reports import SubjectReportAssembler

__all__ = [
    "QuestionMapping",
    "SchemaWalker",
    "build_question_map",
    "ResolvedAnswer",
    "resolve_answer",
    "resolve_answer_state",
    "ScoredSubmission",
    "is_self_assessment",
    "score_submission",
    "SurveyReportAssembler",
    "SubjectReportAssembler",
]
