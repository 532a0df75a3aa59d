#app/models/audit.py

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from typing import Optional, Dict, Any
from uuid import UUID, uuid4
from datetime import datetime, timezone


class AuditLog(SQLModel, table=True):
    """Append-only review trail. One row per persisted workflow change."""

    __tablename__ = "audit_logs"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    application_id: UUID = Field(foreign_key="applications.id", index=True)
    actor_id: Optional[UUID] = Field(default=None)
    actor_role: Optional[str] = None

    # SUBMIT / APPROVE / REJECT / HOLD / ASSIGN_MENTOR
    action: str
    level: Optional[str] = None
    previous_status: Optional[str] = None
    new_status: Optional[str] = None
    remarks: Optional[str] = None

    # Stores {"escalated": true, "version": 3, ...}
    details: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
