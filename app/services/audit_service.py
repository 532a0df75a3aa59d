# app/services/audit_service.py

from uuid import UUID
from typing import Optional, Dict, Any, List

from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AuditLog
from app.schemas.workflow import Actor


def build_entry(
    application_id: UUID,
    actor: Actor,
    action: str,
    level: Optional[str] = None,
    previous_status: Optional[str] = None,
    new_status: Optional[str] = None,
    remarks: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """Builds (does not persist) a history row; the store commits it with the record change."""
    return AuditLog(
        application_id=application_id,
        actor_id=actor.id,
        actor_role=actor.role.value,
        action=action,
        level=level,
        previous_status=previous_status,
        new_status=new_status,
        remarks=(remarks or "").strip() or None,
        details=details or {},
    )


async def list_history(session: AsyncSession, application_id: UUID) -> List[AuditLog]:
    """Review trail of one application, oldest first."""
    result = await session.execute(
        select(AuditLog)
        .where(AuditLog.application_id == application_id)
        .order_by(AuditLog.timestamp.asc())
    )
    return list(result.scalars().all())
