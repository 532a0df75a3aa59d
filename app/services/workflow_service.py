# app/services/workflow_service.py

import asyncio
import inspect
from functools import partial
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Set, Union
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AlreadyTerminal, Conflict, Forbidden, NotFound, WrongLevel
from app.models.enums import (
    ActorRole,
    ApplicationStatus,
    ReviewAction,
    StageStatus,
    WorkflowLevel,
)
from app.schemas.workflow import Actor, ApplicationRecord
from app.services import audit_service
from app.services.application_store import ApplicationStore
from app.services.authorization_service import authorize, same_department
from app.services.transition_service import validate

# (application, previous_status, new_status)
NotificationHook = Callable[
    [ApplicationRecord, ApplicationStatus, ApplicationStatus],
    Union[None, Awaitable[Any]],
]


class WorkflowService:
    def __init__(
        self,
        session: AsyncSession,
        hooks: Optional[Iterable[NotificationHook]] = None,
        store: Optional[ApplicationStore] = None,
    ):
        self.store = store or ApplicationStore(session)
        self.hooks: List[NotificationHook] = list(hooks or [])
        self._pending: Set[asyncio.Future] = set()

    def add_hook(self, hook: NotificationHook) -> None:
        self.hooks.append(hook)

    # ===================================================================
    # REVIEW (approve / reject / hold)
    # ===================================================================
    async def review(
        self,
        application_id: UUID,
        actor: Actor,
        action: ReviewAction,
        notes: Optional[str] = None,
        escalate: bool = False,
        escalation_reason: Optional[str] = None,
    ) -> ApplicationRecord:
        # 1. Load
        current = await self.store.load(application_id)
        if current is None:
            raise NotFound(details={"application_id": str(application_id)})

        # 2. Gate (re-checked on every call, whatever the UI showed)
        level = authorize(current, actor)

        # 3. Compute the whole next record
        updated = validate(
            current,
            level,
            action,
            notes=notes,
            escalate=escalate,
            escalation_reason=escalation_reason,
            reviewer_id=actor.id,
        )

        # Repeated HOLD: nothing to write
        if updated == current:
            logger.debug(f"Application {application_id}: {action.value} by {actor.role.value} is a no-op")
            return current

        # 4. Conditional write
        history = audit_service.build_entry(
            current.id,
            actor,
            action.value,
            level=level.value,
            previous_status=current.status.value,
            new_status=updated.status.value,
            remarks=notes,
            details={
                "from_level": current.current_level.value,
                "to_level": updated.current_level.value,
                "escalated": updated.requires_dean_approval and not current.requires_dean_approval,
                "escalation_reason": updated.escalation_reason,
            },
        )
        stored = await self.store.compare_and_swap(current.id, current.version, updated, history=history)

        # 5. Lost race: the caller reloads and decides
        if stored is None:
            raise Conflict(details={"application_id": str(application_id)})

        logger.info(
            f"Application {application_id}: {action.value} at {level.value} by {actor.id} "
            f"({current.status.value} -> {stored.status.value}, level {stored.current_level.value})"
        )

        await self._notify(stored, current.status, stored.status)
        return stored

    # ===================================================================
    # MENTOR ASSIGNMENT (before the mentor stage has acted)
    # ===================================================================
    async def assign_mentor(self, application_id: UUID, actor: Actor, mentor_id: UUID) -> ApplicationRecord:
        current = await self.store.load(application_id)
        if current is None:
            raise NotFound(details={"application_id": str(application_id)})

        if actor.role not in (ActorRole.ADMIN, ActorRole.HOD):
            raise Forbidden("Only an Admin or HOD can assign mentors")
        if actor.role == ActorRole.HOD and not same_department(actor, current):
            raise Forbidden("Application belongs to another department")

        if current.is_terminal:
            raise AlreadyTerminal(details={"status": current.status.value})
        if (
            current.current_level != WorkflowLevel.MENTOR
            or current.status != ApplicationStatus.PENDING
            or current.mentor is None
            or current.mentor.status != StageStatus.PENDING
        ):
            raise WrongLevel(
                "Mentor can only be assigned before the mentor review",
                details={"current_level": current.current_level.value},
            )

        if current.mentor_id == mentor_id:
            return current

        history = audit_service.build_entry(
            current.id,
            actor,
            "ASSIGN_MENTOR",
            level=WorkflowLevel.MENTOR.value,
            previous_status=current.status.value,
            new_status=current.status.value,
            details={
                "previous_mentor_id": str(current.mentor_id) if current.mentor_id else None,
                "mentor_id": str(mentor_id),
            },
        )
        stored = await self.store.compare_and_swap(
            current.id,
            current.version,
            current.model_copy(update={"mentor_id": mentor_id}),
            history=history,
        )
        if stored is None:
            raise Conflict(details={"application_id": str(application_id)})

        logger.info(f"Application {application_id}: mentor set to {mentor_id} by {actor.id}")
        return stored

    # ===================================================================
    # NOTIFICATION HOOKS (fire-and-forget)
    # ===================================================================
    async def _notify(
        self,
        application: ApplicationRecord,
        previous_status: ApplicationStatus,
        new_status: ApplicationStatus,
    ) -> None:
        # Sync hooks only enqueue work; coroutines are scheduled, never awaited here
        for hook in self.hooks:
            try:
                result = hook(application, previous_status, new_status)
            except Exception:
                # The transition is already committed
                logger.exception(f"Notification hook failed for application {application.id}")
                continue

            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(partial(self._hook_done, application.id))

    def _hook_done(self, application_id: UUID, task: "asyncio.Future") -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error(f"Notification hook failed for application {application_id}")

    async def drain(self) -> None:
        """Wait for scheduled hooks to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
