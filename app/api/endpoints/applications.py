from fastapi import APIRouter, Depends, HTTPException, status, BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID

from app.api.deps import get_current_actor, get_db_session
from app.core.config import settings
from app.core.rbac import AllowRoles
from app.models.enums import ActorRole
from app.schemas.application import ApplicationCreate, ApplicationRead, ReviewPermissions
from app.schemas.audit import AuditLogRead
from app.schemas.workflow import Actor, ApplicationRecord
from app.services.application_service import (
    can_view,
    get_application,
    get_application_history,
    list_applications_for_actor,
    submit_application,
)
from app.services.authorization_service import can_act
from app.services.email_service import send_application_created_email

router = APIRouter(
    prefix="/api/applications",
    tags=["Applications"]
)


async def _load_visible(session: AsyncSession, application_id: UUID, actor: Actor) -> ApplicationRecord:
    record = await get_application(session, application_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Application not found")
    if not can_view(record, actor):
        raise HTTPException(status_code=403, detail="You do not have access to this application")
    return record


# ------------------------------------------------------------
# SUBMIT APPLICATION
# ------------------------------------------------------------
@router.post("", response_model=ApplicationRead, status_code=status.HTTP_201_CREATED)
async def create_application(
    payload: ApplicationCreate,
    background_tasks: BackgroundTasks,
    current_actor: Actor = Depends(AllowRoles(ActorRole.STUDENT)),
    session: AsyncSession = Depends(get_db_session),
):
    record = await submit_application(session, current_actor, payload)

    # Send Email Notification via Background Task
    if settings.NOTIFY_BY_EMAIL and record.submitter_email:
        email_data = {
            "name": current_actor.name,
            "email": record.submitter_email,
            "title": record.title,
            "application_id": str(record.id),
        }
        background_tasks.add_task(send_application_created_email, email_data)

    return ApplicationRead.from_record(record)


# ------------------------------------------------------------
# LIST (scoped by role)
# ------------------------------------------------------------
@router.get("", response_model=List[ApplicationRead])
async def list_applications(
    current_actor: Actor = Depends(get_current_actor),
    session: AsyncSession = Depends(get_db_session),
):
    records = await list_applications_for_actor(session, current_actor)
    return [ApplicationRead.from_record(r) for r in records]


# ------------------------------------------------------------
# GET ONE
# ------------------------------------------------------------
@router.get("/{application_id}", response_model=ApplicationRead)
async def get_application_details(
    application_id: UUID,
    current_actor: Actor = Depends(get_current_actor),
    session: AsyncSession = Depends(get_db_session),
):
    record = await _load_visible(session, application_id, current_actor)
    return ApplicationRead.from_record(record)


# ------------------------------------------------------------
# REVIEW TRAIL
# ------------------------------------------------------------
@router.get("/{application_id}/history", response_model=List[AuditLogRead])
async def get_history(
    application_id: UUID,
    current_actor: Actor = Depends(get_current_actor),
    session: AsyncSession = Depends(get_db_session),
):
    await _load_visible(session, application_id, current_actor)
    return await get_application_history(session, application_id)


# ------------------------------------------------------------
# CAN I REVIEW THIS? (UI affordance only)
# ------------------------------------------------------------
@router.get("/{application_id}/permissions", response_model=ReviewPermissions)
async def get_review_permissions(
    application_id: UUID,
    current_actor: Actor = Depends(get_current_actor),
    session: AsyncSession = Depends(get_db_session),
):
    record = await _load_visible(session, application_id, current_actor)
    return ReviewPermissions(
        application_id=record.id,
        can_review=can_act(record, current_actor),
        current_level=record.current_level,
        status=record.status,
    )
