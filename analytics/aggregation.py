"""
Aggregation rules shared by every report.

All functions are pure: they take scored submissions (and a question map)
and return plain values or report rows.

Rules (deterministic):
- Only positive scores count; ScoredSubmission already drops the rest
- Averages pool every valid score of a group, rounded half up
- A group without any valid score averages to None, never 0
- Self and others are split by ScoredSubmission.is_self
"""

import logging
from collections import Counter, OrderedDict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from config import settings
from models.enums import (
    AGREEMENT_SCALE,
    RESTRICTED_RELATIONSHIP_MARKER,
    RESTRICTED_RELATIONSHIPS,
)
from models.schemas import (
    AgreementChartItem,
    GapScoreItem,
    HighLowScoreItem,
    HighLowScoresResult,
    LatentStrengthsBlindspotsResult,
    RelationshipStats,
)
from analytics.schema_walker import QuestionMapping
from analytics.scored_submission import ScoredSubmission, normalize_relationship
from utils.rounding import average_score, mean, round_half_up

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------

def split_self_others(
    submissions: Iterable[ScoredSubmission],
) -> Tuple[List[ScoredSubmission], List[ScoredSubmission]]:
    """Partition submissions into (self, others)."""
    self_subs, others = [], []
    for submission in submissions:
        (self_subs if submission.is_self else others).append(submission)
    return self_subs, others


def group_by_relationship(
    submissions: Iterable[ScoredSubmission],
) -> Dict[str, List[ScoredSubmission]]:
    """Group submissions by relationship label, labels sorted."""
    groups: Dict[str, List[ScoredSubmission]] = {}
    for submission in submissions:
        groups.setdefault(submission.relationship, []).append(submission)
    return dict(sorted(groups.items()))


def scored_questions(question_map: Mapping[str, QuestionMapping]) -> List[QuestionMapping]:
    """Scored mappings in question-map order."""
    return [mapping for mapping in question_map.values() if mapping.is_scored]


def questions_by_competency(
    question_map: Mapping[str, QuestionMapping],
) -> Dict[str, List[str]]:
    """Competency name → scored question keys, competencies sorted."""
    groups: Dict[str, List[str]] = {}
    for mapping in scored_questions(question_map):
        groups.setdefault(mapping.competency_name, []).append(mapping.key)
    return dict(sorted(groups.items()))


def questions_by_cluster_competency(
    question_map: Mapping[str, QuestionMapping],
) -> Dict[str, Dict[str, List[str]]]:
    """
    Cluster name → competency name → scored question keys.

    Clusters and the competencies within each cluster are sorted; keys keep
    question-map order. A competency name used under two clusters appears
    under both, each with its own questions.
    """
    tree: Dict[str, Dict[str, List[str]]] = {}
    for mapping in scored_questions(question_map):
        competencies = tree.setdefault(mapping.cluster_name, {})
        competencies.setdefault(mapping.competency_name, []).append(mapping.key)
    return {
        cluster: dict(sorted(competencies.items()))
        for cluster, competencies in sorted(tree.items())
    }


def competency_clusters(question_map: Mapping[str, QuestionMapping]) -> Dict[str, str]:
    """
    Competency name → cluster name, for the consolidated cluster sums.

    A competency reused under several clusters belongs to the first one
    seen in question-map order.
    """
    clusters: Dict[str, str] = {}
    for mapping in scored_questions(question_map):
        clusters.setdefault(mapping.competency_name, mapping.cluster_name)
    return clusters


# ---------------------------------------------------------------------------
# Averages
# ---------------------------------------------------------------------------

def collect_scores(submissions: Iterable[ScoredSubmission], keys: Iterable[str]) -> List[float]:
    """Every valid score of the given questions across the submissions."""
    keys = list(keys)
    collected = []
    for submission in submissions:
        for key in keys:
            score = submission.scores.get(key)
            if score is not None:
                collected.append(score)
    return collected


def pooled_average(submissions: Sequence[ScoredSubmission], keys: Iterable[str]) -> Optional[float]:
    """Pooled average of the given questions, rounded; None without data."""
    return average_score(collect_scores(submissions, keys), settings.score_decimals)


def competency_averages(
    submissions: Sequence[ScoredSubmission],
    question_map: Mapping[str, QuestionMapping],
) -> Dict[str, Optional[float]]:
    """
    Pooled average per competency.

    Returns:
        Competency name → rounded average, None for competencies without
        any valid score
    """
    return {
        competency: pooled_average(submissions, keys)
        for competency, keys in questions_by_competency(question_map).items()
    }


def question_means(
    submissions: Sequence[ScoredSubmission],
    question_map: Mapping[str, QuestionMapping],
) -> "OrderedDict[str, float]":
    """Unrounded average per answered scored question, in question-map order."""
    means: "OrderedDict[str, float]" = OrderedDict()
    for mapping in scored_questions(question_map):
        value = mean(collect_scores(submissions, [mapping.key]))
        if value is not None:
            means[mapping.key] = value
    return means


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------

def completion_stats(
    relationships: Iterable[Tuple[Optional[str], bool]],
) -> Tuple[Dict[str, RelationshipStats], RelationshipStats]:
    """
    Count invitations and completions per relationship.

    Args:
        relationships: (relationship label, completed) per assignment

    Returns:
        (relationship → stats, sorted by relationship; grand total)
    """
    stats: Dict[str, RelationshipStats] = {}
    total = RelationshipStats()
    for label, completed in relationships:
        group = stats.setdefault(normalize_relationship(label), RelationshipStats())
        group.sent += 1
        total.sent += 1
        if completed:
            group.completed += 1
            total.completed += 1
    return dict(sorted(stats.items())), total


# ---------------------------------------------------------------------------
# High / low scores
# ---------------------------------------------------------------------------

def _high_low_item(rank: int, mapping: QuestionMapping, value: float) -> HighLowScoreItem:
    return HighLowScoreItem(
        rank=rank,
        question_id=mapping.key,
        dimension=mapping.competency_name,
        item=mapping.text,
        average=round_half_up(value, settings.score_decimals),
    )


def high_low_scores(
    submissions: Sequence[ScoredSubmission],
    question_map: Mapping[str, QuestionMapping],
) -> HighLowScoresResult:
    """
    Rank questions by the others' average.

    Averages >= settings.high_score_threshold are "highest" (descending),
    the rest "lowest" (ascending). Each list keeps at most
    settings.top_items_limit items; ties keep question-map order.
    """
    _, others = split_self_others(submissions)
    means = question_means(others, question_map)

    threshold = settings.high_score_threshold
    limit = settings.top_items_limit
    high = sorted((key for key, value in means.items() if value >= threshold), key=lambda k: -means[k])
    low = sorted((key for key, value in means.items() if value < threshold), key=lambda k: means[k])

    return HighLowScoresResult(
        highest_scores=[
            _high_low_item(rank, question_map[key], means[key])
            for rank, key in enumerate(high[:limit], start=1)
        ],
        lowest_scores=[
            _high_low_item(rank, question_map[key], means[key])
            for rank, key in enumerate(low[:limit], start=1)
        ],
    )


# ---------------------------------------------------------------------------
# Gap analysis
# ---------------------------------------------------------------------------

def gap_analysis(
    submissions: Sequence[ScoredSubmission],
    question_map: Mapping[str, QuestionMapping],
) -> LatentStrengthsBlindspotsResult:
    """
    Compare the self score with the others' average per question.

    gap = others average - self score, rounded to 2 decimals.
    Positive gaps are latent strengths (largest first), negative gaps are
    blindspots (most negative first); zero gaps are dropped.

    Requires exactly one self submission and at least one other, else
    both lists are empty.
    """
    self_subs, others = split_self_others(submissions)
    if len(self_subs) != 1 or not others:
        if len(self_subs) > 1:
            logger.warning(
                f"Gap analysis skipped: {len(self_subs)} self submissions for "
                f"subject {self_subs[0].subject_id}"
            )
        return LatentStrengthsBlindspotsResult()

    self_scores = self_subs[0].scores
    others_means = question_means(others, question_map)
    decimals = settings.score_decimals

    gaps: List[GapScoreItem] = []
    for key, others_mean in others_means.items():
        self_score = self_scores.get(key)
        if self_score is None:
            continue
        gap = round_half_up(others_mean - self_score, decimals)
        if gap == 0:
            continue
        mapping = question_map[key]
        gaps.append(GapScoreItem(
            question_id=key,
            scoring_category=mapping.competency_name,
            item=mapping.text,
            self_score=round_half_up(self_score, decimals),
            others_score=round_half_up(others_mean, decimals),
            gap=gap,
        ))

    limit = settings.top_items_limit
    strengths = sorted((g for g in gaps if g.gap > 0), key=lambda g: -g.gap)[:limit]
    blindspots = sorted((g for g in gaps if g.gap < 0), key=lambda g: g.gap)[:limit]

    return LatentStrengthsBlindspotsResult(
        latent_strengths=[g.model_copy(update={"rank": i}) for i, g in enumerate(strengths, start=1)],
        blindspots=[g.model_copy(update={"rank": i}) for i, g in enumerate(blindspots, start=1)],
    )


# ---------------------------------------------------------------------------
# Sums (consolidated export)
# ---------------------------------------------------------------------------

def score_sums(
    submission: ScoredSubmission,
    question_map: Mapping[str, QuestionMapping],
) -> Tuple[Dict[str, float], Dict[str, float], Dict[str, float], float]:
    """
    Sum one submission's scores up the hierarchy.

    Returns:
        (question scores, competency sums, cluster sums, total). Cluster
        sums add up their competencies; the total adds up the questions.
    """
    clusters = competency_clusters(question_map)
    question_scores: Dict[str, float] = {}
    competency_sums: Dict[str, float] = {}

    for mapping in scored_questions(question_map):
        score = submission.scores.get(mapping.key)
        if score is None:
            continue
        question_scores[mapping.key] = score
        competency_sums[mapping.competency_name] = competency_sums.get(mapping.competency_name, 0) + score

    cluster_sums: Dict[str, float] = {}
    for competency, value in competency_sums.items():
        cluster = clusters[competency]
        cluster_sums[cluster] = cluster_sums.get(cluster, 0) + value

    return question_scores, competency_sums, cluster_sums, sum(question_scores.values())


# ---------------------------------------------------------------------------
# Rater groups
# ---------------------------------------------------------------------------

def is_restricted_relationship(relationship: str) -> bool:
    """Peer, stakeholder and direct-report groups need a minimum size."""
    label = relationship.strip().lower()
    return label in RESTRICTED_RELATIONSHIPS or RESTRICTED_RELATIONSHIP_MARKER in label


def visible_relationships(others: Sequence[ScoredSubmission]) -> List[str]:
    """
    Relationship groups that may be reported separately.

    Restricted groups with fewer than settings.anonymity_threshold
    submissions are hidden. Returns labels sorted.
    """
    visible = []
    for relationship, group in group_by_relationship(others).items():
        if is_restricted_relationship(relationship) and len(group) < settings.anonymity_threshold:
            logger.debug(f"Hiding relationship group {relationship}: {len(group)} submissions")
            continue
        visible.append(relationship)
    return visible


def relationship_averages(
    others: Sequence[ScoredSubmission],
    relationships: Sequence[str],
    keys: Iterable[str],
) -> Dict[str, Optional[float]]:
    """Pooled average of the given questions per listed relationship."""
    keys = list(keys)
    groups = group_by_relationship(others)
    return {
        relationship: pooled_average(groups.get(relationship, []), keys)
        for relationship in relationships
    }


# ---------------------------------------------------------------------------
# Agreement chart
# ---------------------------------------------------------------------------

def score_distribution(
    others: Sequence[ScoredSubmission],
    question_map: Mapping[str, QuestionMapping],
) -> List[AgreementChartItem]:
    """
    Count the others' answers at each scale point per competency.

    Scores are rounded half up to whole numbers; values outside the scale
    are ignored. Competencies are listed alphabetically, at most
    settings.agreement_chart_limit of them.
    """
    items = []
    competencies = questions_by_competency(question_map)
    for competency in list(competencies)[:settings.agreement_chart_limit]:
        counts = Counter(
            round_half_up(score) for score in collect_scores(others, competencies[competency])
        )
        items.append(AgreementChartItem(
            competency_name=competency,
            score_distribution={point: counts.get(point, 0) for point in AGREEMENT_SCALE},
        ))
    return items
