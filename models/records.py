"""
Persistence records consumed by the report engine.

These mirror the rows the tenant database hands to the reporting layer.
Every record carries its tenant id; stores filter on it.
"""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import SubmissionStatus


class ClusterRecord(BaseModel):
    """Top-level grouping of competencies (e.g. "Leadership")."""
    id: str
    tenant_id: str
    name: str
    is_active: bool = True


class CompetencyRecord(BaseModel):
    """A competency, owned by one cluster."""
    id: str
    tenant_id: str
    name: str
    cluster_id: str
    is_active: bool = True


class SurveyRecord(BaseModel):
    """
    A survey definition.

    `schema_document` holds the SurveyJS-style JSON either as a parsed
    object or as raw JSON text. It is read from the `schema` key.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    tenant_id: str
    title: str = ""
    schema_document: Optional[Any] = Field(None, alias="schema")


class SubjectRecord(BaseModel):
    """The person being evaluated, joined with their employee profile."""
    id: str
    tenant_id: str
    employee_id: Optional[str] = None
    full_name: str = ""
    email: str = ""
    department: Optional[str] = None
    designation: Optional[str] = None
    is_active: bool = True


class EvaluatorRecord(BaseModel):
    """A person submitting feedback."""
    id: str
    tenant_id: str
    employee_id: Optional[str] = None
    full_name: str = ""
    email: str = ""
    is_active: bool = True


class AssignmentRecord(BaseModel):
    """Links a subject, an evaluator and a survey under a relationship label."""
    id: str
    tenant_id: str
    survey_id: str
    subject_id: str
    evaluator_id: str
    relationship: Optional[str] = None
    is_active: bool = True


class SubmissionRecord(BaseModel):
    """
    One evaluator's response for one assignment.

    `response_data` is the raw answer blob (object or JSON text), keyed by
    question id; matrix and multiple-text answers are nested objects.
    """
    id: str
    tenant_id: str
    survey_id: str
    subject_id: str
    evaluator_id: str
    assignment_id: Optional[str] = None
    status: SubmissionStatus = SubmissionStatus.PENDING
    response_data: Optional[Any] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        """Accept "completed", "in_progress" and similar spellings."""
        if isinstance(v, str):
            compact = v.replace("_", "").replace(" ", "").lower()
            for status in SubmissionStatus:
                if status.value.lower() == compact:
                    return status
        return v
