"""Core entities, schemas and exceptions for the flow engine."""

from .entities import (
    FlowRule,
    MergeCondition,
    OfficeHours,
    ProjectedTask,
    TaskStatus,
    TatType
)
from .exceptions import (
    CycleDetectedError,
    DuplicateStartRuleError,
    FlowStartError,
    FormRequiredError,
    InvalidFlowRuleError,
    InvalidTATError,
    NoStartRuleError,
    ProcessSutraError,
    TaskNotFoundError,
    TaskStateError,
    TenantAccessError
)
from .schemas import FlowRuleCreate

__all__ = [
    "FlowRule",
    "MergeCondition",
    "OfficeHours",
    "ProjectedTask",
    "TaskStatus",
    "TatType",
    "FlowRuleCreate",
    "ProcessSutraError",
    "InvalidFlowRuleError",
    "DuplicateStartRuleError",
    "CycleDetectedError",
    "InvalidTATError",
    "NoStartRuleError",
    "FlowStartError",
    "TaskNotFoundError",
    "TenantAccessError",
    "FormRequiredError",
    "TaskStateError"
]
