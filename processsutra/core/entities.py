"""
Core Flow Entities

This module defines the entities shared by the engine, the rule store and
the runtime. Flow rules are the edges of a workflow graph; projected tasks
are the transient nodes the walker materializes when it projects a timeline.

Entities:
- FlowRule: (system, current task, status) -> (next task, assignee, TAT)
- ProjectedTask: a future task with planned start/end times
- OfficeHours: the working window used by the simulator TAT rules
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4


class TatType(str, Enum):
    """
    Turn-around-time interpretation policies.
    The value stored on a rule decides how `tat` is read.
    """
    HOUR = "hourtat"
    DAY = "daytat"
    BEFORE = "beforetat"
    SPECIFY = "specifytat"

    @classmethod
    def parse(cls, value) -> "TatType":
        """Parse a stored value, accepting the short aliases ("hour", "day", ...)."""
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        if not normalized.endswith("tat"):
            normalized = f"{normalized}tat"
        return cls(normalized)


class TaskStatus(Enum):
    """Lifecycle of a projected task during simulated playback."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    LUNCH_BREAK = "lunch_break"
    COMPLETED = "completed"


class MergeCondition(str, Enum):
    """How a task with several incoming rules waits on its prerequisites."""
    ALL = "all"
    ANY = "any"


@dataclass
class FlowRule:
    """
    One edge of a workflow graph.

    A rule with an empty `current_task` starts the graph for its system;
    an empty `next_task` terminates it. Several rules may share the same
    (system, current_task) pair and branch on `status`.
    """
    system: str = ""
    current_task: str = ""
    status: str = ""
    next_task: str = ""
    tat: float = 1.0
    tat_type: TatType = TatType.DAY
    doer: str = ""
    email: str = ""
    form_id: Optional[str] = None

    # Tenant and runtime options
    id: str = field(default_factory=lambda: str(uuid4()))
    organization_id: Optional[str] = None
    transferable: bool = False
    transfer_to_emails: list = field(default_factory=list)
    merge_condition: MergeCondition = MergeCondition.ALL

    @property
    def is_start_rule(self) -> bool:
        return self.current_task == ""

    @property
    def is_terminal(self) -> bool:
        return self.next_task == ""

    @property
    def label(self) -> str:
        current = self.current_task or "<start>"
        return f"{self.system}: {current} [{self.status or '-'}] -> {self.next_task or '<end>'}"


@dataclass
class OfficeHours:
    """Working window used when a TAT is anchored to the start of the day."""
    start_hour: int = 9
    end_hour: int = 18


@dataclass
class ProjectedTask:
    """
    A task the flow walker projects into the future.

    Created pending at projection time and advanced by the simulation
    driver. Waiting and processing times are in minutes.
    """
    id: str = field(default_factory=lambda: f"sim-{uuid4().hex[:8]}")
    task_name: str = ""
    doer: str = ""
    doer_email: str = ""
    form_id: Optional[str] = None

    status: TaskStatus = TaskStatus.PENDING
    start_time: Optional[datetime] = None
    planned_end_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None

    tat: float = 0.0
    tat_type: TatType = TatType.HOUR

    waiting_time: float = 0.0
    processing_time: float = 0.0
    lunch_break_taken: bool = False

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def planned_hours(self) -> float:
        """Planned duration in hours."""
        if self.start_time is None or self.planned_end_time is None:
            return 0.0
        return (self.planned_end_time - self.start_time).total_seconds() / 3600
