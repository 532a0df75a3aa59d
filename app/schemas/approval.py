from pydantic import BaseModel
from uuid import UUID
from typing import Optional

from app.models.enums import ReviewAction

class ReviewRequest(BaseModel):
    action: ReviewAction
    notes: Optional[str] = None

    # HOD approval only
    escalate: bool = False
    escalation_reason: Optional[str] = None


class MentorAssignRequest(BaseModel):
    mentor_id: UUID
