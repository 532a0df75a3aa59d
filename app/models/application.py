# app/models/application.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import Boolean, Integer, String, Text, DateTime, Uuid
from sqlalchemy import Enum as SAEnum
from datetime import datetime, timezone
import uuid
from typing import Optional

from app.models.enums import ApplicationStatus, WorkflowLevel, StageStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _stage_status_column() -> Column:
    # NULL means the stage has not been entered yet
    return Column(SAEnum(StageStatus, name="stage_status"), nullable=True)


class Application(SQLModel, table=True):
    __tablename__ = "applications"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid(as_uuid=True), primary_key=True)
    )

    # --- Provenance (immutable) ---
    submitted_by: uuid.UUID = Field(
        sa_column=Column(Uuid(as_uuid=True), nullable=False, index=True)
    )

    submitter_email: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True)
    )

    department_id: Optional[uuid.UUID] = Field(
        default=None,
        sa_column=Column(Uuid(as_uuid=True), nullable=True, index=True)
    )

    # --- Request content ---
    title: str = Field(sa_column=Column(String(500), nullable=False))
    type: str = Field(sa_column=Column(String(100), nullable=False))
    description: str = Field(sa_column=Column(Text, nullable=False))

    proof_file_url: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True)
    )

    # --- Workflow state ---
    status: ApplicationStatus = Field(
        default=ApplicationStatus.PENDING,
        sa_column=Column(SAEnum(ApplicationStatus, name="application_status"), nullable=False, index=True)
    )

    current_level: WorkflowLevel = Field(
        default=WorkflowLevel.MENTOR,
        sa_column=Column(SAEnum(WorkflowLevel, name="workflow_level"), nullable=False)
    )

    requires_dean_approval: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False)
    )

    escalation_reason: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    # Optimistic concurrency counter, bumped on every persisted transition
    version: int = Field(default=1, sa_column=Column(Integer, nullable=False, default=1))

    # --- Mentor stage ---
    mentor_id: Optional[uuid.UUID] = Field(
        default=None,
        sa_column=Column(Uuid(as_uuid=True), nullable=True, index=True)
    )
    mentor_status: Optional[StageStatus] = Field(default=StageStatus.PENDING, sa_column=_stage_status_column())
    mentor_notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    mentor_reviewed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    mentor_reviewer_id: Optional[uuid.UUID] = Field(default=None, sa_column=Column(Uuid(as_uuid=True)))

    # --- HOD stage ---
    hod_status: Optional[StageStatus] = Field(default=None, sa_column=_stage_status_column())
    hod_notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    hod_reviewed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    hod_reviewer_id: Optional[uuid.UUID] = Field(default=None, sa_column=Column(Uuid(as_uuid=True)))

    # --- DEAN stage (only if required or escalated) ---
    dean_status: Optional[StageStatus] = Field(default=None, sa_column=_stage_status_column())
    dean_notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    dean_reviewed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    dean_reviewer_id: Optional[uuid.UUID] = Field(default=None, sa_column=Column(Uuid(as_uuid=True)))

    # --- Rejection details ---
    rejected_by: Optional[WorkflowLevel] = Field(
        default=None,
        sa_column=Column(SAEnum(WorkflowLevel, name="rejected_level"), nullable=True)
    )
    rejected_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    rejection_reason: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    submitted_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
