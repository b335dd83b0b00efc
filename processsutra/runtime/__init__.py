"""Live flow instances advanced by task completion."""

from .flows import (
    FlowInstance,
    FlowRuntime,
    FormSubmission,
    TaskInstance,
    TaskInstanceStatus
)

__all__ = [
    "FlowInstance",
    "FlowRuntime",
    "FormSubmission",
    "TaskInstance",
    "TaskInstanceStatus"
]
