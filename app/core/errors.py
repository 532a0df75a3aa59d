# app/core/errors.py

from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger


class WorkflowError(Exception):
    """Base for every failure the review workflow reports to its callers."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "WORKFLOW_ERROR"
    default_message: str = "Workflow error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class NotFound(WorkflowError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Application not found"


class Forbidden(WorkflowError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    default_message = "You are not the reviewer for this application"


# ------------------------------------------------------------
# Transition failures (raised by the pure validator)
# ------------------------------------------------------------
class TransitionError(WorkflowError):
    code = "INVALID_TRANSITION"


class WrongLevel(TransitionError):
    status_code = status.HTTP_409_CONFLICT
    code = "WRONG_LEVEL"
    default_message = "Application is not at your review stage"


class AlreadyTerminal(TransitionError):
    status_code = status.HTTP_409_CONFLICT
    code = "ALREADY_TERMINAL"
    default_message = "Application has already been finalised"


class MissingReason(TransitionError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "MISSING_REASON"
    default_message = "A reason is required for this action"


class Conflict(WorkflowError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = (
        "Application was changed by another reviewer. Reload it and try again."
    )


# ------------------------------------------------------------
# FastAPI handler
# ------------------------------------------------------------
async def workflow_error_handler(request: Request, exc: WorkflowError) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} -> {exc.code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "code": exc.code,
            "message": exc.message,
            "details": exc.details,
        },
    )
