from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from uuid import UUID

from loguru import logger

from app.core.config import settings
from app.core.errors import Forbidden
from app.models.application import Application
from app.models.audit import AuditLog
from app.models.enums import ActorRole, ApplicationStatus, StageStatus, WorkflowLevel
from app.schemas.application import ApplicationCreate
from app.schemas.workflow import Actor, ApplicationRecord
from app.services import audit_service
from app.services.application_store import ApplicationStore
from app.services.authorization_service import same_department


def requires_dean_for(application_type: str) -> bool:
    return application_type.strip().upper() in {t.upper() for t in settings.DEAN_REQUIRED_TYPES}


async def submit_application(
    session: AsyncSession,
    actor: Actor,
    payload: ApplicationCreate,
) -> ApplicationRecord:
    """
    Create a fresh PENDING record waiting on the mentor stage.

    Department and mentor come from the submitter's identity, never from the
    request body. The Dean requirement follows the application type.
    """

    if actor.role != ActorRole.STUDENT:
        raise Forbidden("Only students can submit applications")

    requires_dean = requires_dean_for(payload.type)

    row = Application(
        submitted_by=actor.id,
        submitter_email=actor.email,
        department_id=actor.department_id,
        title=payload.title,
        type=payload.type,
        description=payload.description,
        proof_file_url=payload.proof_file_url or None,
        mentor_id=actor.mentor_id,
        status=ApplicationStatus.PENDING,
        current_level=WorkflowLevel.MENTOR,
        requires_dean_approval=requires_dean,
        mentor_status=StageStatus.PENDING,
        version=1,
    )

    history = audit_service.build_entry(
        row.id,
        actor,
        "SUBMIT",
        level=WorkflowLevel.MENTOR.value,
        new_status=ApplicationStatus.PENDING.value,
        details={
            "requires_dean_approval": requires_dean,
            "mentor_assigned": actor.mentor_id is not None,
        },
    )

    record = await ApplicationStore(session).insert(row, history=history)

    if record.mentor_id is None:
        logger.warning(f"Application {record.id} submitted without a mentor; waiting for assignment")
    else:
        logger.info(f"Application {record.id} submitted by {actor.id}")

    return record


async def get_application(session: AsyncSession, application_id: UUID) -> Optional[ApplicationRecord]:
    return await ApplicationStore(session).load(application_id)


def can_view(record: ApplicationRecord, actor: Actor) -> bool:
    """Read access: owner, assigned mentor, own-department HOD, Dean when involved, Admin."""
    if actor.role == ActorRole.ADMIN:
        return True
    if record.submitted_by == actor.id:
        return True
    if actor.role == ActorRole.FACULTY:
        return record.mentor_id == actor.id
    if actor.role == ActorRole.HOD:
        return same_department(actor, record)
    if actor.role == ActorRole.DEAN:
        return record.requires_dean_approval
    return False


async def list_applications_for_actor(session: AsyncSession, actor: Actor) -> List[ApplicationRecord]:
    store = ApplicationStore(session)

    if actor.role == ActorRole.ADMIN:
        return await store.list_where()

    if actor.role == ActorRole.STUDENT:
        return await store.list_where(Application.submitted_by == actor.id)

    if actor.role == ActorRole.FACULTY:
        return await store.list_where(Application.mentor_id == actor.id)

    if actor.role == ActorRole.HOD:
        if actor.department_id is None:
            return []
        return await store.list_where(Application.department_id == actor.department_id)

    if actor.role == ActorRole.DEAN:
        return await store.list_where(Application.requires_dean_approval.is_(True))

    return []


async def get_application_history(session: AsyncSession, application_id: UUID) -> List[AuditLog]:
    return await audit_service.list_history(session, application_id)
