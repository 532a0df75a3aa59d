# app/api/endpoints/logs.py

from fastapi import APIRouter, Depends, Query
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from uuid import UUID

from app.api.deps import get_db_session
from app.core.rbac import AllowRoles
from app.models.audit import AuditLog
from app.models.enums import ActorRole
from app.schemas.audit import AuditLogRead
from app.schemas.workflow import Actor

router = APIRouter(prefix="/api/admin", tags=["Audit & Logs"])


# -------------------------------------------------------------------
# VIEW WORKFLOW AUDIT LOGS
# -------------------------------------------------------------------
@router.get("/audit-logs", response_model=List[AuditLogRead])
async def get_audit_logs(
    action: Optional[str] = Query(None),
    actor_role: Optional[str] = Query(None),
    application_id: Optional[UUID] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    session: AsyncSession = Depends(get_db_session),
    _: Actor = Depends(AllowRoles(ActorRole.ADMIN)),
):
    """Review trail across all applications, newest first. Admin only."""
    query = select(AuditLog).order_by(AuditLog.timestamp.desc()).limit(limit)

    if action:
        query = query.where(AuditLog.action == action.upper())
    if actor_role:
        query = query.where(AuditLog.actor_role == actor_role.upper())
    if application_id:
        query = query.where(AuditLog.application_id == application_id)

    result = await session.execute(query)
    return result.scalars().all()
