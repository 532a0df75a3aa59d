# app/schemas/workflow.py

from pydantic import BaseModel, ConfigDict
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.models.enums import (
    ActorRole,
    ApplicationStatus,
    StageStatus,
    TERMINAL_STATUSES,
    WorkflowLevel,
)


# ============================================================
# ACTOR (identity resolved at the API boundary)
# ============================================================
class Actor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    role: ActorRole
    department_id: Optional[UUID] = None
    email: Optional[str] = None
    name: Optional[str] = None
    # Student profile: the faculty member who mentors them
    mentor_id: Optional[UUID] = None


# ============================================================
# STAGE SUB-RECORD (one per level actually entered)
# ============================================================
class StageReview(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: StageStatus = StageStatus.PENDING
    notes: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewer_id: Optional[UUID] = None


# ============================================================
# APPLICATION SNAPSHOT
# ============================================================
class ApplicationRecord(BaseModel):
    """
    Immutable snapshot of one application and its review trail.

    Transitions never mutate a snapshot; they build the next one with
    ``model_copy(update=...)`` so a record is always replaced as a whole.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: UUID
    submitted_by: UUID
    submitter_email: Optional[str] = None
    department_id: Optional[UUID] = None

    title: str
    type: str
    description: str
    proof_file_url: Optional[str] = None

    mentor_id: Optional[UUID] = None
    status: ApplicationStatus = ApplicationStatus.PENDING
    current_level: WorkflowLevel = WorkflowLevel.MENTOR
    requires_dean_approval: bool = False

    mentor: Optional[StageReview] = StageReview()
    hod: Optional[StageReview] = None
    dean: Optional[StageReview] = None

    rejected_by: Optional[WorkflowLevel] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    escalation_reason: Optional[str] = None

    version: int = 1
    submitted_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def stage(self, level: WorkflowLevel) -> Optional[StageReview]:
        return {
            WorkflowLevel.MENTOR: self.mentor,
            WorkflowLevel.HOD: self.hod,
            WorkflowLevel.DEAN: self.dean,
        }.get(level)
