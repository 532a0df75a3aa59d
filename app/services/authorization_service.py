# app/services/authorization_service.py

from app.core.errors import AlreadyTerminal, Forbidden, WorkflowError, WrongLevel
from app.models.enums import ActorRole, ROLE_LEVEL_MAP, StageStatus, WorkflowLevel
from app.schemas.workflow import Actor, ApplicationRecord


def same_department(actor: Actor, record: ApplicationRecord) -> bool:
    """Both sides must carry a department and agree on it."""
    return (
        actor.department_id is not None
        and record.department_id is not None
        and actor.department_id == record.department_id
    )


def authorize(record: ApplicationRecord, actor: Actor) -> WorkflowLevel:
    """
    Server-side gate for every review call.

    Returns the stage the actor reviews as, or raises:
    - Forbidden: role has no stage, or the actor is not this record's reviewer
    - AlreadyTerminal: record is APPROVED / REJECTED
    - WrongLevel: right kind of reviewer, but the record is at another stage
    """
    level = ROLE_LEVEL_MAP.get(actor.role)
    if level is None:
        raise Forbidden(f"Role '{actor.role.value}' cannot review applications")

    if record.is_terminal:
        raise AlreadyTerminal(details={"status": record.status.value})

    if record.current_level != level:
        raise WrongLevel(
            f"Application is at {record.current_level.value}, not {level.value}",
            details={"current_level": record.current_level.value},
        )

    if actor.role == ActorRole.FACULTY:
        if record.mentor_id is None:
            raise Forbidden("No mentor has been assigned to this application yet")
        if actor.id != record.mentor_id:
            raise Forbidden("Only the assigned mentor can review this application")

    elif actor.role == ActorRole.HOD:
        if record.mentor is None or record.mentor.status != StageStatus.APPROVED:
            raise Forbidden("Mentor approval is required before HOD review")
        if not same_department(actor, record):
            raise Forbidden("Application belongs to another department")

    elif actor.role == ActorRole.DEAN:
        if not record.requires_dean_approval:
            raise Forbidden("Dean approval is not required for this application")

    return level


def can_act(record: ApplicationRecord, actor: Actor) -> bool:
    """Advisory check for UI affordances. Reviews always re-run `authorize`."""
    try:
        authorize(record, actor)
    except WorkflowError:
        return False
    return True
