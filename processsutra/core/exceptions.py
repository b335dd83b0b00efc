"""Domain exceptions for the ProcessSutra flow engine.

Every error carries a human-readable message, a machine-readable error code
and a details dict so an HTTP layer can map it to a response.
"""

from typing import Any, Optional


class ProcessSutraError(Exception):
    """Base exception for all flow engine errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, task_id).
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class InvalidFlowRuleError(ProcessSutraError, ValueError):
    """Raised when flow rule data fails validation at the store boundary."""

    def __init__(self, message: str, errors: Optional[list[dict]] = None) -> None:
        self.errors = errors or []
        super().__init__(message, "VALIDATION_ERROR", {"errors": self.errors})


class DuplicateStartRuleError(ProcessSutraError):
    """Raised when a system would end up with more than one start rule."""

    def __init__(self, system: str) -> None:
        super().__init__(
            f"System '{system}' already has a starting rule",
            "DUPLICATE_START_RULE",
            {"system": system},
        )


class CycleDetectedError(ProcessSutraError):
    """Raised when a rule would close a loop and cycles are not allowed."""

    def __init__(self, message: str, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__(message, "CYCLE_DETECTED", {"cycle": cycle})


class InvalidTATError(ProcessSutraError, ValueError):
    """Raised when TAT inputs or calendar configuration are out of range."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "INVALID_TAT")


class NoStartRuleError(ProcessSutraError):
    """Raised when a flow is started for a system without a start rule."""

    def __init__(self, system: str) -> None:
        super().__init__(
            "No starting rule found for this system",
            "NO_START_RULE",
            {"system": system},
        )


class FlowStartError(ProcessSutraError):
    """Raised when a flow start request is missing required data."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "FLOW_START_ERROR", details)


class TaskNotFoundError(ProcessSutraError):
    """Raised when a task id does not resolve."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} not found", "TASK_NOT_FOUND", {"task_id": task_id})


class TenantAccessError(ProcessSutraError):
    """Raised when a caller touches another organization's task."""

    def __init__(self, task_id: str) -> None:
        super().__init__("Access denied to this task", "TENANT_ACCESS_DENIED", {"task_id": task_id})


class FormRequiredError(ProcessSutraError):
    """Raised when a task with a linked form is completed before submission."""

    def __init__(self, task_id: str, form_id: str) -> None:
        super().__init__(
            "Cannot complete task: Form must be submitted before marking task as complete",
            "FORM_REQUIRED",
            {"task_id": task_id, "form_id": form_id},
        )


class TaskStateError(ProcessSutraError):
    """Raised when a task transition is not allowed from its current state."""

    def __init__(self, message: str, task_id: str) -> None:
        super().__init__(message, "INVALID_TASK_STATE", {"task_id": task_id})
