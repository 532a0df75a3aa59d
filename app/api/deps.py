# app/api/deps.py

from typing import AsyncGenerator
from uuid import UUID

import jwt
from fastapi import BackgroundTasks, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import decode_token
from app.core.database import get_session
from app.schemas.workflow import Actor, ApplicationRecord
from app.models.enums import ApplicationStatus
from app.services.email_service import send_status_change_email, build_status_email_payload
from app.services.workflow_service import WorkflowService


# ------------------------------------------------------------
# HTTP Bearer Authentication
# ------------------------------------------------------------
bearer_scheme = HTTPBearer(auto_error=True)


# ------------------------------------------------------------
# DB Session
# ------------------------------------------------------------
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


# ------------------------------------------------------------
# Current actor from JWT claims
# ------------------------------------------------------------
async def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> Actor:

    token = credentials.credentials

    try:
        payload = decode_token(token)
    except jwt.InvalidTokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Could not validate credentials")

    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or not role:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token payload")

    try:
        return Actor(
            id=UUID(str(user_id)),
            role=str(role).upper(),
            department_id=payload.get("department_id"),
            email=payload.get("email"),
            name=payload.get("name"),
            mentor_id=payload.get("mentor_id"),
        )
    except (ValueError, ValidationError):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token payload")


# ------------------------------------------------------------
# Workflow service wired with this request's notification hooks
# ------------------------------------------------------------
async def get_workflow_service(
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
) -> WorkflowService:

    def queue_email(application: ApplicationRecord, previous: ApplicationStatus, new: ApplicationStatus):
        # Runs after the response is sent; failures never reach the reviewer
        if settings.NOTIFY_BY_EMAIL and application.submitter_email:
            background_tasks.add_task(
                send_status_change_email,
                build_status_email_payload(application, previous, new),
            )

    return WorkflowService(session, hooks=[queue_email])
