# app/services/transition_service.py
"""
Pure transition function for the review chain (Mentor -> HOD -> Dean).

`validate` never touches the database: it takes a record snapshot plus the
requested action and returns the complete next snapshot, or raises one of
the TransitionError subclasses.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from app.core.errors import AlreadyTerminal, MissingReason, WrongLevel
from app.models.enums import (
    ApplicationStatus,
    ReviewAction,
    StageStatus,
    WorkflowLevel,
)
from app.schemas.workflow import ApplicationRecord, StageReview
from app.services import escalation_service

# Snapshot attribute holding each stage's sub-record
STAGE_FIELDS = {
    WorkflowLevel.MENTOR: "mentor",
    WorkflowLevel.HOD: "hod",
    WorkflowLevel.DEAN: "dean",
}


def _is_blank(text: Optional[str]) -> bool:
    return text is None or not text.strip()


def _clean(text: Optional[str]) -> Optional[str]:
    if _is_blank(text):
        return None
    return text.strip()


def validate(
    record: ApplicationRecord,
    acting_level: WorkflowLevel,
    action: ReviewAction,
    notes: Optional[str] = None,
    escalate: bool = False,
    escalation_reason: Optional[str] = None,
    reviewer_id: Optional[UUID] = None,
    now: Optional[datetime] = None,
) -> ApplicationRecord:
    # 1. Stage check
    if acting_level not in STAGE_FIELDS or record.current_level != acting_level:
        raise WrongLevel(
            f"Application is at {record.current_level.value}, not {acting_level.value}",
            details={"current_level": record.current_level.value},
        )

    # 2. Finished records never change
    if record.is_terminal:
        raise AlreadyTerminal(details={"status": record.status.value})

    escalating = (
        escalate
        and action == ReviewAction.APPROVE
        and acting_level == WorkflowLevel.HOD
    )

    # 3. Required text
    if action == ReviewAction.REJECT and _is_blank(notes):
        raise MissingReason("Remarks are required to reject an application")
    if escalating and _is_blank(escalation_reason):
        raise MissingReason("An escalation reason is required to escalate to the Dean")

    now = now or datetime.now(timezone.utc)

    if action == ReviewAction.HOLD:
        return record.model_copy(update={"status": ApplicationStatus.UNDER_REVIEW})

    if acting_level == WorkflowLevel.DEAN and not record.requires_dean_approval:
        raise WrongLevel("Dean review is not required for this application")

    decided = StageReview(
        status=StageStatus.REJECTED if action == ReviewAction.REJECT else StageStatus.APPROVED,
        notes=_clean(notes),
        reviewed_at=now,
        reviewer_id=reviewer_id,
    )
    update = {STAGE_FIELDS[acting_level]: decided}

    # 4. Rejection freezes the level and ends the chain
    if action == ReviewAction.REJECT:
        update.update(
            status=ApplicationStatus.REJECTED,
            rejected_by=acting_level,
            rejected_at=now,
            rejection_reason=decided.notes,
        )
        return record.model_copy(update=update)

    # 6. Mentor approval hands over to the HOD
    if acting_level == WorkflowLevel.MENTOR:
        update.update(
            current_level=WorkflowLevel.HOD,
            status=ApplicationStatus.UNDER_REVIEW,
            hod=StageReview(),
        )
        return record.model_copy(update=update)

    # 7. HOD approval: the coordinator picks Dean or completion
    if acting_level == WorkflowLevel.HOD:
        introduced = escalating and not record.requires_dean_approval
        if introduced:
            update.update(
                requires_dean_approval=True,
                escalation_reason=escalation_reason.strip(),
            )
        approved = record.model_copy(update=update)

        decision = escalation_service.decide(approved, introduced=introduced)
        final = {"current_level": decision.next_level, "status": decision.next_status}
        if decision.next_level == WorkflowLevel.DEAN:
            final["dean"] = StageReview()
        return approved.model_copy(update=final)

    # 8. Dean approval is final
    update.update(
        current_level=WorkflowLevel.COMPLETED,
        status=ApplicationStatus.APPROVED,
    )
    return record.model_copy(update=update)
