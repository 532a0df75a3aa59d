# app/services/application_store.py

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.application import Application
from app.models.audit import AuditLog
from app.schemas.workflow import ApplicationRecord, StageReview

STAGE_PREFIXES = ("mentor", "hod", "dean")

# Columns a transition may rewrite. Provenance and request content are
# fixed at submission.
MUTABLE_FIELDS = (
    "mentor_id",
    "status",
    "current_level",
    "requires_dean_approval",
    "escalation_reason",
    "rejected_by",
    "rejected_at",
    "rejection_reason",
)


# ----------------------------------------------------
# Row <-> snapshot
# ----------------------------------------------------
def _stage_from_row(row: Application, prefix: str) -> Optional[StageReview]:
    status = getattr(row, f"{prefix}_status")
    if status is None:
        return None
    return StageReview(
        status=status,
        notes=getattr(row, f"{prefix}_notes"),
        reviewed_at=getattr(row, f"{prefix}_reviewed_at"),
        reviewer_id=getattr(row, f"{prefix}_reviewer_id"),
    )


def to_record(row: Application) -> ApplicationRecord:
    return ApplicationRecord(
        id=row.id,
        submitted_by=row.submitted_by,
        submitter_email=row.submitter_email,
        department_id=row.department_id,
        title=row.title,
        type=row.type,
        description=row.description,
        proof_file_url=row.proof_file_url,
        mentor_id=row.mentor_id,
        status=row.status,
        current_level=row.current_level,
        requires_dean_approval=bool(row.requires_dean_approval),
        mentor=_stage_from_row(row, "mentor"),
        hod=_stage_from_row(row, "hod"),
        dean=_stage_from_row(row, "dean"),
        rejected_by=row.rejected_by,
        rejected_at=row.rejected_at,
        rejection_reason=row.rejection_reason,
        escalation_reason=row.escalation_reason,
        version=row.version,
        submitted_at=row.submitted_at,
        updated_at=row.updated_at,
    )


def _stage_columns(prefix: str, stage: Optional[StageReview]) -> Dict[str, Any]:
    return {
        f"{prefix}_status": stage.status if stage else None,
        f"{prefix}_notes": stage.notes if stage else None,
        f"{prefix}_reviewed_at": stage.reviewed_at if stage else None,
        f"{prefix}_reviewer_id": stage.reviewer_id if stage else None,
    }


def to_columns(record: ApplicationRecord) -> Dict[str, Any]:
    values = {field: getattr(record, field) for field in MUTABLE_FIELDS}
    for prefix in STAGE_PREFIXES:
        values.update(_stage_columns(prefix, getattr(record, prefix)))
    return values


# ----------------------------------------------------
# Store
# ----------------------------------------------------
class ApplicationStore:
    """
    Durable home of application records.

    Every write after submission goes through `compare_and_swap`, which only
    succeeds if the row still carries the version the caller read.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load(self, application_id: UUID) -> Optional[ApplicationRecord]:
        result = await self.session.execute(
            select(Application)
            .where(Application.id == application_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return to_record(row) if row else None

    async def insert(self, row: Application, history: Optional[AuditLog] = None) -> ApplicationRecord:
        self.session.add(row)
        await self.session.flush()
        if history is not None:
            history.application_id = row.id
            self.session.add(history)
        await self.session.commit()
        await self.session.refresh(row)
        return to_record(row)

    async def compare_and_swap(
        self,
        application_id: UUID,
        expected_version: int,
        new_record: ApplicationRecord,
        history: Optional[AuditLog] = None,
    ) -> Optional[ApplicationRecord]:
        """
        Atomically replace the record if its version is still `expected_version`.

        Returns the stored record (with its bumped version) or None when the
        precondition no longer holds. The history entry, if any, commits in
        the same transaction.
        """
        now = datetime.now(timezone.utc)
        stmt = (
            update(Application)
            .where(Application.id == application_id)
            .where(Application.version == expected_version)
            .values(**to_columns(new_record), version=expected_version + 1, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)

        if result.rowcount != 1:
            await self.session.rollback()
            logger.warning(
                f"Stale write rejected for application {application_id} (expected v{expected_version})"
            )
            return None

        if history is not None:
            history.details = {**(history.details or {}), "version": expected_version + 1}
            self.session.add(history)

        await self.session.commit()
        return new_record.model_copy(update={"version": expected_version + 1, "updated_at": now})

    async def list_where(self, *conditions) -> List[ApplicationRecord]:
        query = select(Application).order_by(Application.submitted_at.desc())
        for condition in conditions:
            query = query.where(condition)
        result = await self.session.execute(query)
        return [to_record(row) for row in result.scalars().all()]
