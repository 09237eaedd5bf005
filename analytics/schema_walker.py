"""
Survey schema walker.

Turns a SurveyJS-style schema document into a flat question map:
question key → QuestionMapping (text, type, cluster, competency, rating
bounds, option scores).

The walk happens in two steps:
1. parse_schema() converts the raw JSON into a small tree of typed nodes
   (pages, panels, rating / matrix / multiple-text / text questions);
2. SchemaWalker visits that tree depth-first and emits the mappings.

Malformed documents never raise: they produce an empty map.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from config import settings
from models.enums import (
    COMPOSITE_KEY_SEPARATOR,
    OPTION_SCORE_FIELDS,
    OPTION_SOURCES,
    QUESTION_TEXT_FIELDS,
    RATING_QUESTION_TYPES,
    TEXT_QUESTION_TYPES,
    QuestionType,
)
from models.records import ClusterRecord, CompetencyRecord
from utils.case_insensitive import CaseInsensitiveDict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuestionMapping:
    """
    Everything the reports need to know about one (sub-)question.

    Attributes:
        key: Question id, or "questionId:rowOrItem" for matrix rows and
            multiple-text items
        text: Display text
        question_type: Schema type (rating, radiogroup, dropdown, matrix,
            text, comment, textarea)
        cluster_name: Owning cluster
        competency_name: Owning competency
        rating_min: Lowest rating on the scale
        rating_max: Highest rating on the scale
        option_scores: Option text → score, case-insensitive
        order: Position in schema walk order
    """
    key: str
    text: str
    question_type: str
    cluster_name: str
    competency_name: str
    rating_min: int = 1
    rating_max: int = 5
    option_scores: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    order: int = 0

    @property
    def is_scored(self) -> bool:
        """Text-type questions are reported verbatim, never scored."""
        return self.question_type not in TEXT_QUESTION_TYPES


# ---------------------------------------------------------------------------
# Schema tree
# ---------------------------------------------------------------------------

@dataclass
class RatingQuestionNode:
    key: str
    question_type: str
    element: Dict[str, Any]


@dataclass
class TextQuestionNode:
    key: str
    question_type: str
    element: Dict[str, Any]


@dataclass
class MatrixQuestionNode:
    key: str
    element: Dict[str, Any]


@dataclass
class MultiTextQuestionNode:
    key: str
    element: Dict[str, Any]


@dataclass
class PanelNode:
    elements: List["SchemaNode"] = field(default_factory=list)


@dataclass
class PageNode:
    elements: List["SchemaNode"] = field(default_factory=list)


SchemaNode = Union[
    PanelNode,
    RatingQuestionNode,
    TextQuestionNode,
    MatrixQuestionNode,
    MultiTextQuestionNode,
]


def load_json_document(document: Any) -> Optional[Any]:
    """
    Accept a parsed JSON value or JSON text.

    Returns:
        The parsed value, or None when the text is not valid JSON
    """
    if isinstance(document, (bytes, bytearray)):
        document = document.decode("utf-8", errors="replace")
    if isinstance(document, str):
        try:
            return json.loads(document)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON document: {e}")
            return None
    return document


def _as_text(value: Any) -> Optional[str]:
    """Scalar JSON value as a string; None for objects, arrays, null and booleans."""
    if value is None or isinstance(value, (bool, dict, list)):
        return None
    return str(value)


def _element_key(element: Mapping[str, Any]) -> Optional[str]:
    return _as_text(element.get("id")) or _as_text(element.get("name"))


def parse_element(element: Any) -> Optional[SchemaNode]:
    """
    Convert one schema element into a typed node.

    Returns:
        The node, or None for unknown types and keyless questions
    """
    if not isinstance(element, dict):
        return None

    element_type = element.get("type")
    element_type = element_type.lower() if isinstance(element_type, str) else None

    if element_type == QuestionType.PANEL.value:
        return PanelNode(elements=parse_elements(element.get("elements")))

    key = _element_key(element)
    if not key:
        return None

    if element_type == QuestionType.MATRIX.value:
        return MatrixQuestionNode(key=key, element=element)
    if element_type == QuestionType.MULTIPLETEXT.value:
        return MultiTextQuestionNode(key=key, element=element)
    if element_type in RATING_QUESTION_TYPES:
        return RatingQuestionNode(key=key, question_type=element_type, element=element)
    if element_type in TEXT_QUESTION_TYPES:
        return TextQuestionNode(key=key, question_type=element_type, element=element)
    return None


def parse_elements(elements: Any) -> List[SchemaNode]:
    if not isinstance(elements, list):
        return []
    nodes = []
    for element in elements:
        node = parse_element(element)
        if node is not None:
            nodes.append(node)
    return nodes


def parse_schema(schema_document: Any) -> List[PageNode]:
    """
    Parse a schema document into page nodes.

    Pages list their elements under "questions" or, failing that,
    "elements".

    Returns:
        Page nodes in document order; empty when the document is
        malformed or has no "pages" array
    """
    root = load_json_document(schema_document)
    if not isinstance(root, dict):
        logger.warning("Survey schema is not a JSON object")
        return []

    pages = root.get("pages")
    if not isinstance(pages, list):
        logger.warning("Survey schema has no pages array")
        return []

    result = []
    for page in pages:
        if not isinstance(page, dict):
            continue
        elements = page.get("questions")
        if elements is None:
            elements = page.get("elements")
        result.append(PageNode(elements=parse_elements(elements)))
    return result


# ---------------------------------------------------------------------------
# Catalog lookups
# ---------------------------------------------------------------------------

def _normalize_id(value: Any) -> Optional[str]:
    text = _as_text(value)
    if text is None:
        return None
    text = text.strip().lower()
    return text or None


class CompetencyCatalog:
    """
    Tenant cluster and competency names indexed by id.

    Used to turn a question's `importedFrom` metadata into names.
    """

    def __init__(
        self,
        clusters: Iterable[ClusterRecord] = (),
        competencies: Iterable[CompetencyRecord] = (),
    ):
        self.cluster_names: Dict[str, str] = {}
        self.competencies: Dict[str, CompetencyRecord] = {}
        for cluster in clusters:
            self.cluster_names[_normalize_id(cluster.id)] = cluster.name
        for competency in competencies:
            self.competencies[_normalize_id(competency.id)] = competency

    def resolve(self, imported_from: Any) -> Tuple[Optional[str], Optional[str]]:
        """
        Resolve `importedFrom` to (cluster name, competency name).

        A resolved competency also provides the cluster when `clusterId`
        is missing or unknown.
        """
        if not isinstance(imported_from, dict):
            return None, None

        cluster_name = self.cluster_names.get(_normalize_id(imported_from.get("clusterId")))
        competency_name = None

        competency = self.competencies.get(_normalize_id(imported_from.get("competencyId")))
        if competency is not None:
            competency_name = competency.name
            if not cluster_name:
                cluster_name = self.cluster_names.get(_normalize_id(competency.cluster_id))

        return cluster_name, competency_name


# ---------------------------------------------------------------------------
# Option scores
# ---------------------------------------------------------------------------

def _as_int(value: Any) -> Optional[int]:
    """Integer from an int or an integer string; None otherwise."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def option_score(option: Any) -> Optional[int]:
    """
    Score of one choice option.

    Sources, first match wins: `score`, `Score`, an integer `id`,
    `order` + 1. Plain string options carry no score.
    """
    if not isinstance(option, dict):
        return None

    for score_field in OPTION_SCORE_FIELDS:
        value = option.get(score_field)
        if _is_number(value):
            return int(value)

    option_id = _as_int(option.get("id"))
    if option_id is not None:
        return option_id

    order = option.get("order")
    if _is_number(order):
        return int(order) + 1

    return None


def option_text(option: Any) -> Optional[str]:
    """Display text of an option: `text`, else `value`, else the plain string."""
    if isinstance(option, str):
        return option
    if isinstance(option, dict):
        text = option.get("text")
        if isinstance(text, str) and text:
            return text
        return _as_text(option.get("value"))
    return None


def extract_option_scores(element: Mapping[str, Any]) -> CaseInsensitiveDict:
    """
    Build the option text → score map of a rating-like question.

    Option lists are read from OPTION_SOURCES in priority order; an option
    text already mapped by an earlier source is not overwritten.
    """
    scores = CaseInsensitiveDict()
    for container_name, property_name in OPTION_SOURCES:
        container = element.get(container_name) if container_name else element
        if not isinstance(container, dict):
            continue
        options = container.get(property_name)
        if not isinstance(options, list):
            continue

        for option in options:
            text = option_text(option)
            score = option_score(option)
            if text and score is not None and text not in scores:
                scores[text] = score
    return scores


def extract_matrix_column_scores(element: Mapping[str, Any]) -> CaseInsensitiveDict:
    """
    Build the shared option map of a matrix from its `columns`.

    The column value is the score; zero or non-integer values are dropped.
    """
    scores = CaseInsensitiveDict()
    columns = element.get("columns")
    if not isinstance(columns, list):
        return scores

    for column in columns:
        if isinstance(column, dict):
            value = column.get("value")
            text = column.get("text") if isinstance(column.get("text"), str) else None
        else:
            value = column
            text = None

        score = _as_int(value)
        label = text or _as_text(value)
        if score is not None and score > 0 and label:
            scores[label] = score
    return scores


def rating_bounds(element: Mapping[str, Any]) -> Tuple[int, int]:
    """Rating scale bounds from `config`, else from rateMin/rateMax."""
    rating_min = settings.default_rating_min
    rating_max = settings.default_rating_max

    config = element.get("config")
    if isinstance(config, dict):
        min_value, max_value = config.get("ratingMin"), config.get("ratingMax")
    else:
        min_value, max_value = element.get("rateMin"), element.get("rateMax")

    if _as_int(min_value) is not None:
        rating_min = _as_int(min_value)
    if _as_int(max_value) is not None:
        rating_max = _as_int(max_value)
    return rating_min, rating_max


def question_text(element: Mapping[str, Any], key: str) -> str:
    """First non-empty of othersText, selfText, title, name; else the key."""
    for text_field in QUESTION_TEXT_FIELDS:
        value = element.get(text_field)
        if isinstance(value, str) and value.strip():
            return value
    return key


# ---------------------------------------------------------------------------
# Walker
# ---------------------------------------------------------------------------

class SchemaWalker:
    """
    Builds the question map of one survey.

    Walk order is page order, then element order, depth-first into panels.
    A later element with the same key replaces the earlier mapping.

    Usage:
        walker = SchemaWalker(clusters, competencies)
        question_map = walker.build_question_map(survey.schema_document)
    """

    def __init__(
        self,
        clusters: Iterable[ClusterRecord] = (),
        competencies: Iterable[CompetencyRecord] = (),
    ):
        self.catalog = CompetencyCatalog(clusters, competencies)
        self.default_cluster = settings.default_cluster_name
        self.default_competency = settings.default_competency_name

    def build_question_map(self, schema_document: Any) -> Dict[str, QuestionMapping]:
        mappings: Dict[str, QuestionMapping] = {}
        try:
            for page in parse_schema(schema_document):
                self._visit_all(page.elements, mappings)
        except Exception as e:
            logger.error(f"Error extracting question mappings from schema: {e}")
            return {}

        logger.debug(f"Extracted {len(mappings)} question mappings")
        return mappings

    def _visit_all(self, nodes: List[SchemaNode], mappings: Dict[str, QuestionMapping]) -> None:
        for node in nodes:
            self._visit(node, mappings)

    def _visit(self, node: SchemaNode, mappings: Dict[str, QuestionMapping]) -> None:
        if isinstance(node, PanelNode):
            self._visit_all(node.elements, mappings)
        elif isinstance(node, MatrixQuestionNode):
            self._visit_matrix(node, mappings)
        elif isinstance(node, MultiTextQuestionNode):
            self._visit_multitext(node, mappings)
        elif isinstance(node, RatingQuestionNode):
            self._visit_rating(node, mappings)
        elif isinstance(node, TextQuestionNode):
            self._visit_text(node, mappings)

    def _add(self, mappings: Dict[str, QuestionMapping], mapping: QuestionMapping) -> None:
        mappings.pop(mapping.key, None)
        mappings[mapping.key] = mapping

    def _names(self, *sources: Mapping[str, Any]) -> Tuple[str, str]:
        """Cluster and competency from the first source carrying importedFrom."""
        imported_from = None
        for source in sources:
            if isinstance(source, dict) and "importedFrom" in source:
                imported_from = source["importedFrom"]
                break

        cluster_name, competency_name = self.catalog.resolve(imported_from)
        return (
            cluster_name or self.default_cluster,
            competency_name or self.default_competency,
        )

    def _visit_rating(self, node: RatingQuestionNode, mappings: Dict[str, QuestionMapping]) -> None:
        cluster_name, competency_name = self._names(node.element)
        rating_min, rating_max = rating_bounds(node.element)
        self._add(mappings, QuestionMapping(
            key=node.key,
            text=question_text(node.element, node.key),
            question_type=node.question_type,
            cluster_name=cluster_name,
            competency_name=competency_name,
            rating_min=rating_min,
            rating_max=rating_max,
            option_scores=extract_option_scores(node.element),
            order=len(mappings),
        ))

    def _visit_text(self, node: TextQuestionNode, mappings: Dict[str, QuestionMapping]) -> None:
        cluster_name, competency_name = self._names(node.element)
        self._add(mappings, QuestionMapping(
            key=node.key,
            text=question_text(node.element, node.key),
            question_type=node.question_type,
            cluster_name=cluster_name,
            competency_name=competency_name,
            order=len(mappings),
        ))

    def _visit_matrix(self, node: MatrixQuestionNode, mappings: Dict[str, QuestionMapping]) -> None:
        rows = node.element.get("rows")
        if not isinstance(rows, list):
            return

        column_scores = extract_matrix_column_scores(node.element)
        for row in rows:
            if isinstance(row, dict):
                row_value = _as_text(row.get("value"))
                row_text = row.get("text") if isinstance(row.get("text"), str) else None
            else:
                row_value = _as_text(row)
                row_text = None
            if not row_value:
                continue

            cluster_name, competency_name = self._names(row, node.element)
            self._add(mappings, QuestionMapping(
                key=f"{node.key}{COMPOSITE_KEY_SEPARATOR}{row_value}",
                text=row_text or row_value,
                question_type=QuestionType.MATRIX.value,
                cluster_name=cluster_name,
                competency_name=competency_name,
                rating_min=settings.default_rating_min,
                rating_max=settings.default_rating_max,
                option_scores=column_scores.copy(),
                order=len(mappings),
            ))

    def _visit_multitext(self, node: MultiTextQuestionNode, mappings: Dict[str, QuestionMapping]) -> None:
        items = node.element.get("items")
        if not isinstance(items, list):
            return

        for item in items:
            if not isinstance(item, dict):
                continue
            item_name = _as_text(item.get("name"))
            if not item_name:
                continue
            title = item.get("title")
            self._add(mappings, QuestionMapping(
                key=f"{node.key}{COMPOSITE_KEY_SEPARATOR}{item_name}",
                text=title if isinstance(title, str) and title else item_name,
                question_type=QuestionType.TEXT.value,
                cluster_name=self.default_cluster,
                competency_name=self.default_competency,
                order=len(mappings),
            ))


def build_question_map(
    schema_document: Any,
    clusters: Iterable[ClusterRecord] = (),
    competencies: Iterable[CompetencyRecord] = (),
) -> Dict[str, QuestionMapping]:
    """
    Build the question map of a survey schema.

    Args:
        schema_document: Schema as a dict or JSON text
        clusters: Tenant cluster catalog
        competencies: Tenant competency catalog

    Returns:
        Question key → QuestionMapping, in walk order
    """
    return SchemaWalker(clusters, competencies).build_question_map(schema_document)
