# app/schemas/application.py

from pydantic import BaseModel, Field, field_validator
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.models.enums import ApplicationStatus, WorkflowLevel
from app.schemas.workflow import ApplicationRecord, StageReview


# ============================================================
# APPLICATION CREATE SCHEMA (Student submits)
# ============================================================
class ApplicationCreate(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    type: str = Field(min_length=1, max_length=100)  # LEAVE, PERMISSION, ...
    description: str = Field(min_length=1)
    proof_file_url: Optional[str] = None

    # Department, mentor and Dean requirement are resolved on the server

    @field_validator("title", "type", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


# ============================================================
# APPLICATION READ (status + full review trail)
# ============================================================
class ApplicationRead(BaseModel):
    id: UUID
    title: str
    type: str
    description: str
    proof_file_url: Optional[str]

    submitted_by: UUID
    department_id: Optional[UUID]
    mentor_id: Optional[UUID]

    status: ApplicationStatus
    current_level: WorkflowLevel
    requires_dean_approval: bool
    escalation_reason: Optional[str]

    mentor: Optional[StageReview]
    hod: Optional[StageReview]
    dean: Optional[StageReview]

    rejected_by: Optional[WorkflowLevel]
    rejected_at: Optional[datetime]
    rejection_reason: Optional[str]

    version: int
    submitted_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True

    @classmethod
    def from_record(cls, record: ApplicationRecord) -> "ApplicationRead":
        return cls.model_validate(record, from_attributes=True)


# ============================================================
# PERMISSIONS (advisory, drives UI buttons)
# ============================================================
class ReviewPermissions(BaseModel):
    application_id: UUID
    can_review: bool
    current_level: WorkflowLevel
    status: ApplicationStatus
