"""
Error types surfaced by the timeline engine.

Every error carries a machine-readable ``code`` and the HTTP status it maps
to; the FastAPI handlers in ``main.py`` render them as
``{"error": {"code": ..., "message": ...}}``.
"""
from typing import Optional


class TimelineError(Exception):
    status_code = 500
    code = "WEDDING_TIMELINE_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self) -> dict:
        return {"error": {"code": self.code, "message": self.message}}


class ValidationFailed(TimelineError):
    status_code = 400
    code = "VALIDATION_ERROR"


class UnknownAction(ValidationFailed):
    code = "UNKNOWN_ACTION"


class DependencyCycle(ValidationFailed):
    code = "DEPENDENCY_CYCLE"


class NotFound(TimelineError):
    status_code = 404
    code = "NOT_FOUND"


class TaskBlocked(TimelineError):
    status_code = 409
    code = "TASK_BLOCKED"


class DownstreamError(TimelineError):
    """A collaborator (database, email, AI provider) returned a failure"""
    status_code = 502
    code = "DOWNSTREAM_ERROR"


class AIServiceError(DownstreamError):
    code = "AI_SERVICE_ERROR"
