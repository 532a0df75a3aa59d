"""Snapshot builders for the pure workflow tests."""

import uuid
from datetime import datetime, timezone

from app.models.enums import ApplicationStatus, StageStatus, WorkflowLevel
from app.core.security import create_access_token
from app.schemas.workflow import Actor, ApplicationRecord, StageReview

NOW = datetime(2026, 1, 5, 10, 30, tzinfo=timezone.utc)


def make_record(**overrides) -> ApplicationRecord:
    fields = dict(
        id=uuid.uuid4(),
        submitted_by=uuid.uuid4(),
        title="Leave",
        type="LEAVE",
        description="Family function",
        mentor_id=uuid.uuid4(),
    )
    fields.update(overrides)
    return ApplicationRecord(**fields)


def at_hod(**overrides) -> ApplicationRecord:
    fields = dict(
        status=ApplicationStatus.UNDER_REVIEW,
        current_level=WorkflowLevel.HOD,
        mentor=StageReview(status=StageStatus.APPROVED, notes="ok", reviewed_at=NOW),
        hod=StageReview(),
    )
    fields.update(overrides)
    return make_record(**fields)


def at_dean(**overrides) -> ApplicationRecord:
    fields = dict(
        status=ApplicationStatus.ESCALATED,
        current_level=WorkflowLevel.DEAN,
        requires_dean_approval=True,
        escalation_reason="needs policy exception",
        mentor=StageReview(status=StageStatus.APPROVED, reviewed_at=NOW),
        hod=StageReview(status=StageStatus.APPROVED, reviewed_at=NOW),
        dean=StageReview(),
    )
    fields.update(overrides)
    return make_record(**fields)


def auth_headers(actor: Actor) -> dict:
    """Bearer header carrying the claims the API reads for `actor`."""
    data = {"role": actor.role.value}
    if actor.department_id:
        data["department_id"] = str(actor.department_id)
    if actor.email:
        data["email"] = actor.email
    if actor.mentor_id:
        data["mentor_id"] = str(actor.mentor_id)
    token = create_access_token(subject=str(actor.id), data=data)
    return {"Authorization": f"Bearer {token}"}
