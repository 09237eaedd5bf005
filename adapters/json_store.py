"""
JSON file report store.

Reads one document per tenant from `{data_dir}/{tenant_id}.json`:

    {
        "surveys": [...], "clusters": [...], "competencies": [...],
        "subjects": [...], "evaluators": [...],
        "assignments": [...], "submissions": [...]
    }

Records without a tenant_id inherit the tenant of the file. Parsed
documents are cached by path and modification time, so an edited file is
picked up on the next request.
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from config import settings
from models.records import (
    AssignmentRecord,
    ClusterRecord,
    CompetencyRecord,
    EvaluatorRecord,
    SubjectRecord,
    SubmissionRecord,
    SurveyRecord,
)
from adapters.report_store import ReportStore
from utils.cache import cache_result

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

DOCUMENT_CACHE = "tenant_documents"


@cache_result(DOCUMENT_CACHE)
def load_tenant_document(path: str, mtime: float) -> Dict[str, Any]:
    """
    Parse a tenant document.

    `mtime` only takes part in the cache key.

    Returns:
        The parsed object, or {} when the file is unreadable or malformed
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to read tenant document {path}: {e}")
        return {}

    if not isinstance(document, dict):
        logger.error(f"Tenant document {path} is not a JSON object")
        return {}
    return document


class JsonFileReportStore(ReportStore):
    """
    ReportStore backed by per-tenant JSON files.

    Environment Variables:
        DATA_DIR: Directory holding the tenant documents
    """

    def __init__(self, data_dir: Optional[str] = None):
        self.data_dir = data_dir or settings.data_dir or "."

    def _document(self, tenant_id: str) -> Dict[str, Any]:
        # Tenant ids become file names; path separators are not allowed
        if not tenant_id or os.path.basename(tenant_id) != tenant_id or tenant_id in (".", ".."):
            logger.warning(f"Rejected tenant id {tenant_id!r}")
            return {}

        path = os.path.join(self.data_dir, f"{tenant_id}.json")
        try:
            mtime = os.path.getmtime(path)
        except OSError:
            logger.warning(f"No tenant document at {path}")
            return {}
        return load_tenant_document(path, mtime)

    def _records(self, tenant_id: str, section: str, model: Type[RecordT]) -> List[RecordT]:
        raw_records = self._document(tenant_id).get(section)
        if not isinstance(raw_records, list):
            return []

        records = []
        for raw in raw_records:
            if not isinstance(raw, dict):
                continue
            data = {"tenant_id": tenant_id, **raw}
            try:
                record = model.model_validate(data)
            except ValidationError as e:
                logger.warning(f"Skipping invalid {section} record in tenant {tenant_id}: {e}")
                continue
            if record.tenant_id == tenant_id:
                records.append(record)
        return records

    def get_survey(self, tenant_id: str, survey_id: str) -> Optional[SurveyRecord]:
        for survey in self._records(tenant_id, "surveys", SurveyRecord):
            if survey.id == survey_id:
                return survey
        return None

    def list_clusters(self, tenant_id: str) -> List[ClusterRecord]:
        return self._records(tenant_id, "clusters", ClusterRecord)

    def list_competencies(self, tenant_id: str) -> List[CompetencyRecord]:
        return self._records(tenant_id, "competencies", CompetencyRecord)

    def get_subject(self, tenant_id: str, subject_id: str) -> Optional[SubjectRecord]:
        for subject in self._records(tenant_id, "subjects", SubjectRecord):
            if subject.id == subject_id:
                return subject
        return None

    def list_subjects(self, tenant_id: str) -> List[SubjectRecord]:
        return self._records(tenant_id, "subjects", SubjectRecord)

    def list_evaluators(self, tenant_id: str) -> List[EvaluatorRecord]:
        return self._records(tenant_id, "evaluators", EvaluatorRecord)

    def list_assignments(self, tenant_id: str, survey_id: str) -> List[AssignmentRecord]:
        return [
            a for a in self._records(tenant_id, "assignments", AssignmentRecord)
            if a.survey_id == survey_id
        ]

    def list_submissions(self, tenant_id: str, survey_id: str) -> List[SubmissionRecord]:
        return [
            s for s in self._records(tenant_id, "submissions", SubmissionRecord)
            if s.survey_id == survey_id
        ]
