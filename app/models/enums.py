from enum import Enum

class ApplicationStatus(str, Enum):
    PENDING = "PENDING"
    UNDER_REVIEW = "UNDER_REVIEW"
    ESCALATED = "ESCALATED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


TERMINAL_STATUSES = frozenset({ApplicationStatus.APPROVED, ApplicationStatus.REJECTED})


class WorkflowLevel(str, Enum):
    MENTOR = "MENTOR"
    HOD = "HOD"
    DEAN = "DEAN"
    COMPLETED = "COMPLETED"


# Review chain order; COMPLETED sits after the last stage
LEVEL_ORDER = (WorkflowLevel.MENTOR, WorkflowLevel.HOD, WorkflowLevel.DEAN, WorkflowLevel.COMPLETED)


class StageStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ReviewAction(str, Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    HOLD = "HOLD"


class ActorRole(str, Enum):
    STUDENT = "STUDENT"
    FACULTY = "FACULTY"
    HOD = "HOD"
    DEAN = "DEAN"
    ADMIN = "ADMIN"


# Which stage each reviewer role acts as
ROLE_LEVEL_MAP = {
    ActorRole.FACULTY: WorkflowLevel.MENTOR,
    ActorRole.HOD: WorkflowLevel.HOD,
    ActorRole.DEAN: WorkflowLevel.DEAN,
}
