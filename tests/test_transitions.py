import uuid

import pytest

from app.core.errors import AlreadyTerminal, MissingReason, WrongLevel
from app.models.enums import ApplicationStatus, ReviewAction, StageStatus, WorkflowLevel
from app.schemas.workflow import StageReview
from app.services.transition_service import validate

from tests.factories import NOW, at_dean, at_hod, make_record


# ------------------------------------------------------------
# Guards
# ------------------------------------------------------------
def test_wrong_level_rejected():
    record = make_record()
    with pytest.raises(WrongLevel):
        validate(record, WorkflowLevel.HOD, ReviewAction.APPROVE)


def test_terminal_record_rejected():
    record = at_hod(
        status=ApplicationStatus.REJECTED,
        rejected_by=WorkflowLevel.HOD,
        rejection_reason="no",
    )
    with pytest.raises(AlreadyTerminal):
        validate(record, WorkflowLevel.HOD, ReviewAction.HOLD)


@pytest.mark.parametrize("notes", [None, "", "   "])
def test_reject_requires_notes(notes):
    with pytest.raises(MissingReason):
        validate(make_record(), WorkflowLevel.MENTOR, ReviewAction.REJECT, notes=notes)


def test_escalation_requires_reason():
    with pytest.raises(MissingReason):
        validate(at_hod(), WorkflowLevel.HOD, ReviewAction.APPROVE, escalate=True, escalation_reason=" ")


def test_escalate_flag_ignored_outside_hod_approval():
    updated = validate(make_record(), WorkflowLevel.MENTOR, ReviewAction.APPROVE, escalate=True, now=NOW)
    assert updated.current_level == WorkflowLevel.HOD
    assert updated.requires_dean_approval is False


# ------------------------------------------------------------
# Reject
# ------------------------------------------------------------
def test_reject_freezes_level_and_records_reason():
    record = at_hod()
    reviewer = uuid.uuid4()

    updated = validate(
        record, WorkflowLevel.HOD, ReviewAction.REJECT,
        notes="  insufficient proof ", reviewer_id=reviewer, now=NOW,
    )

    assert updated.status == ApplicationStatus.REJECTED
    assert updated.current_level == WorkflowLevel.HOD
    assert updated.rejected_by == WorkflowLevel.HOD
    assert updated.rejected_at == NOW
    assert updated.rejection_reason == "insufficient proof"
    assert updated.hod == StageReview(
        status=StageStatus.REJECTED, notes="insufficient proof", reviewed_at=NOW, reviewer_id=reviewer
    )
    # earlier stage untouched, snapshot not mutated
    assert updated.mentor == record.mentor
    assert record.status == ApplicationStatus.UNDER_REVIEW


# ------------------------------------------------------------
# Hold
# ------------------------------------------------------------
def test_hold_only_flags_under_review():
    record = make_record()
    updated = validate(record, WorkflowLevel.MENTOR, ReviewAction.HOLD, notes="checking", now=NOW)

    assert updated == record.model_copy(update={"status": ApplicationStatus.UNDER_REVIEW})


def test_hold_is_idempotent():
    once = validate(make_record(), WorkflowLevel.MENTOR, ReviewAction.HOLD)
    twice = validate(once, WorkflowLevel.MENTOR, ReviewAction.HOLD)
    assert once == twice


# ------------------------------------------------------------
# Approve
# ------------------------------------------------------------
def test_mentor_approval_moves_to_hod():
    updated = validate(make_record(), WorkflowLevel.MENTOR, ReviewAction.APPROVE, notes="ok", now=NOW)

    assert updated.current_level == WorkflowLevel.HOD
    assert updated.status == ApplicationStatus.UNDER_REVIEW
    assert updated.mentor.status == StageStatus.APPROVED
    assert updated.mentor.notes == "ok"
    assert updated.mentor.reviewed_at == NOW
    assert updated.hod == StageReview()
    assert updated.dean is None


def test_hod_approval_without_dean_completes():
    updated = validate(at_hod(), WorkflowLevel.HOD, ReviewAction.APPROVE, now=NOW)

    assert updated.status == ApplicationStatus.APPROVED
    assert updated.current_level == WorkflowLevel.COMPLETED
    assert updated.hod.status == StageStatus.APPROVED
    assert updated.dean is None


def test_hod_escalation_enters_dean_stage():
    updated = validate(
        at_hod(), WorkflowLevel.HOD, ReviewAction.APPROVE,
        escalate=True, escalation_reason="needs policy exception", now=NOW,
    )

    assert updated.status == ApplicationStatus.ESCALATED
    assert updated.current_level == WorkflowLevel.DEAN
    assert updated.requires_dean_approval is True
    assert updated.escalation_reason == "needs policy exception"
    assert updated.dean == StageReview()


def test_mandatory_dean_review_is_not_an_escalation():
    updated = validate(at_hod(requires_dean_approval=True), WorkflowLevel.HOD, ReviewAction.APPROVE, now=NOW)

    assert updated.current_level == WorkflowLevel.DEAN
    assert updated.status == ApplicationStatus.UNDER_REVIEW
    assert updated.escalation_reason is None


def test_escalate_when_dean_already_required_is_idempotent():
    updated = validate(
        at_hod(requires_dean_approval=True), WorkflowLevel.HOD, ReviewAction.APPROVE,
        escalate=True, escalation_reason="again", now=NOW,
    )

    assert updated.current_level == WorkflowLevel.DEAN
    assert updated.status == ApplicationStatus.UNDER_REVIEW
    assert updated.escalation_reason is None


def test_dean_approval_is_final():
    updated = validate(at_dean(), WorkflowLevel.DEAN, ReviewAction.APPROVE, notes="granted", now=NOW)

    assert updated.status == ApplicationStatus.APPROVED
    assert updated.current_level == WorkflowLevel.COMPLETED
    assert updated.dean.status == StageStatus.APPROVED
    assert updated.dean.notes == "granted"


def test_dean_rejection():
    updated = validate(at_dean(), WorkflowLevel.DEAN, ReviewAction.REJECT, notes="policy", now=NOW)

    assert updated.status == ApplicationStatus.REJECTED
    assert updated.rejected_by == WorkflowLevel.DEAN
    assert updated.current_level == WorkflowLevel.DEAN


def test_dean_hold_clears_escalated_flag():
    updated = validate(at_dean(), WorkflowLevel.DEAN, ReviewAction.HOLD)
    assert updated.status == ApplicationStatus.UNDER_REVIEW
    assert updated.current_level == WorkflowLevel.DEAN


def test_completed_record_cannot_be_reviewed_at_any_stage():
    record = at_dean(
        status=ApplicationStatus.APPROVED,
        current_level=WorkflowLevel.COMPLETED,
        dean=StageReview(status=StageStatus.APPROVED, reviewed_at=NOW),
    )
    for level in (WorkflowLevel.MENTOR, WorkflowLevel.HOD, WorkflowLevel.DEAN):
        with pytest.raises((WrongLevel, AlreadyTerminal)):
            validate(record, level, ReviewAction.APPROVE)
