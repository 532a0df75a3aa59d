from fastapi import APIRouter, Depends
from uuid import UUID

from app.api.deps import get_workflow_service
from app.core.rbac import AllowRoles
from app.models.enums import ActorRole
from app.schemas.application import ApplicationRead
from app.schemas.approval import MentorAssignRequest, ReviewRequest
from app.schemas.workflow import Actor
from app.services.workflow_service import WorkflowService

router = APIRouter(
    prefix="/api/approvals",
    tags=["Approvals"]
)


# ===================================================================
# REVIEW (approve / reject / hold) AT THE CURRENT LEVEL
# ===================================================================
@router.patch("/{application_id}/review", response_model=ApplicationRead)
async def review_application(
    application_id: UUID,
    data: ReviewRequest,
    current_actor: Actor = Depends(AllowRoles(ActorRole.FACULTY, ActorRole.HOD, ActorRole.DEAN)),
    service: WorkflowService = Depends(get_workflow_service),
):
    # WorkflowError subclasses are mapped to distinct responses by the app handler
    record = await service.review(
        application_id,
        current_actor,
        data.action,
        notes=data.notes,
        escalate=data.escalate,
        escalation_reason=data.escalation_reason,
    )
    return ApplicationRead.from_record(record)


# ===================================================================
# ASSIGN / REASSIGN MENTOR (before mentor review)
# ===================================================================
@router.put("/{application_id}/mentor", response_model=ApplicationRead)
async def assign_mentor(
    application_id: UUID,
    data: MentorAssignRequest,
    current_actor: Actor = Depends(AllowRoles(ActorRole.HOD)),
    service: WorkflowService = Depends(get_workflow_service),
):
    record = await service.assign_mentor(application_id, current_actor, data.mentor_id)
    return ApplicationRead.from_record(record)
