# app/services/escalation_service.py

from typing import NamedTuple

from app.models.enums import ApplicationStatus, WorkflowLevel
from app.schemas.workflow import ApplicationRecord


class EscalationDecision(NamedTuple):
    next_level: WorkflowLevel
    next_status: ApplicationStatus


def decide(record: ApplicationRecord, introduced: bool = False) -> EscalationDecision:
    """
    Decide where the chain goes after the HOD has approved.

    `record` must already carry the final `requires_dean_approval` flag.
    `introduced` is True only when this very HOD approval set that flag;
    a requirement made at submission keeps the record UNDER_REVIEW.
    """
    if record.requires_dean_approval:
        status = ApplicationStatus.ESCALATED if introduced else ApplicationStatus.UNDER_REVIEW
        return EscalationDecision(WorkflowLevel.DEAN, status)

    return EscalationDecision(WorkflowLevel.COMPLETED, ApplicationStatus.APPROVED)
