"""
Flow Runtime - Live flow instances

Starts flows and advances them as users complete tasks:
- start: the system's start rule creates the first task
- complete: every rule leaving the task on the chosen status creates a
  next task, planned with the business calendar
- merge: when several rules lead to one task, "all" waits for every
  prerequisite, "any" proceeds on the first
- form gate: a task linked to a form needs a submission before completion

State is kept in memory; persistence and notifications belong to the
caller.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import uuid4
import logging

from ..core.entities import FlowRule, MergeCondition
from ..core.exceptions import (
    FlowStartError,
    FormRequiredError,
    NoStartRuleError,
    TaskNotFoundError,
    TaskStateError,
    TenantAccessError
)
from ..engine.business_calendar import TATConfig, calculate_tat
from ..engine.cycles import reachable_tasks
from ..engine.walker import RuleIndex
from ..store.rules import InMemoryRuleStore

logger = logging.getLogger(__name__)


class TaskInstanceStatus(Enum):
    """Status of a live task."""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class FlowInstance:
    """One running flow of a system."""
    flow_id: str = field(default_factory=lambda: str(uuid4()))
    organization_id: str = ""
    system: str = ""
    order_number: str = ""
    description: str = ""
    initiated_by: str = ""
    initiated_at: Optional[datetime] = None
    initial_form_data: Optional[dict] = None


@dataclass
class TaskInstance:
    """A live task assigned to a doer."""
    id: str = field(default_factory=lambda: str(uuid4()))
    flow_id: str = ""
    organization_id: str = ""
    system: str = ""
    order_number: str = ""
    task_name: str = ""
    status: TaskInstanceStatus = TaskInstanceStatus.PENDING
    planned_time: Optional[datetime] = None
    doer_email: str = ""
    form_id: Optional[str] = None
    created_at: Optional[datetime] = None

    # Completion
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    completion_status: Optional[str] = None


@dataclass
class FormSubmission:
    """Form data submitted against a task."""
    response_id: str = field(default_factory=lambda: f"resp_{uuid4().hex[:12]}")
    flow_id: str = ""
    task_id: str = ""
    task_name: str = ""
    form_id: Optional[str] = None
    data: dict = field(default_factory=dict)
    submitted_by: str = ""
    submitted_at: Optional[datetime] = None


class FlowRuntime:
    """
    Runs flow instances against the rules in a store.

    `now` is always passed in by the caller.
    """

    def __init__(self, store: InMemoryRuleStore, tat_config: Optional[TATConfig] = None):
        self.store = store
        self.tat_config = tat_config or TATConfig()

        self._flows: dict[str, FlowInstance] = {}
        self._tasks: dict[str, TaskInstance] = {}
        self._submissions: dict[str, list[FormSubmission]] = {}

    def start_flow(
        self,
        organization_id: str,
        system: str,
        order_number: str,
        description: str,
        initiated_by: str,
        now: datetime,
        initial_form_data: Optional[dict] = None
    ) -> tuple[FlowInstance, TaskInstance]:
        """Create a flow instance and its first task."""
        if not order_number:
            raise FlowStartError("Order Number/Unique ID is required", field="order_number")
        if not description:
            raise FlowStartError("Flow description is required", field="description")

        rules = self.store.list(organization_id, system)
        start_rule = RuleIndex(rules).start_rule(system)
        if start_rule is None:
            raise NoStartRuleError(system)
        if start_rule.is_terminal:
            raise FlowStartError("Starting rule has no first task", field="next_task")

        flow = FlowInstance(
            organization_id=organization_id,
            system=system,
            order_number=order_number,
            description=description,
            initiated_by=initiated_by,
            initiated_at=now,
            initial_form_data=initial_form_data
        )
        task = self._build_task(flow, start_rule, now)

        self._flows[flow.flow_id] = flow
        self._tasks[task.id] = task
        logger.info(
            "Flow %s started for %r (order %s) by %s; first task %r -> %s",
            flow.flow_id, system, order_number, initiated_by, task.task_name, task.doer_email
        )
        return flow, task

    def submit_form(
        self,
        task_id: str,
        data: dict[str, Any],
        submitted_by: str,
        now: datetime
    ) -> FormSubmission:
        """Record form data for a task."""
        task = self._require_task(task_id)
        submission = FormSubmission(
            flow_id=task.flow_id,
            task_id=task.id,
            task_name=task.task_name,
            form_id=task.form_id,
            data=dict(data),
            submitted_by=submitted_by,
            submitted_at=now
        )
        self._submissions.setdefault(task.id, []).append(submission)
        return submission

    def complete_task(
        self,
        organization_id: str,
        task_id: str,
        completion_status: str,
        completed_by: str,
        now: datetime
    ) -> tuple[TaskInstance, list[TaskInstance]]:
        """
        Complete a task and create the tasks that follow it.

        Returns the completed task and the newly created tasks.
        """
        if not completion_status:
            raise ValueError("Completion status is required")

        task = self._require_task(task_id)
        if task.organization_id != organization_id:
            logger.warning(
                "User %s attempted to complete task %s from another organization",
                completed_by, task_id
            )
            raise TenantAccessError(task_id)
        if task.status != TaskInstanceStatus.PENDING:
            raise TaskStateError(f"Task is already {task.status.value}", task_id)
        if task.form_id and not self._submissions.get(task.id):
            raise FormRequiredError(task.id, task.form_id)

        rules = self.store.list(organization_id, task.system)
        index = RuleIndex(rules)
        next_rules = [
            rule for rule in index.outgoing(task.system, task.task_name)
            if rule.status == completion_status
        ]

        # Plan successors first; the task stays pending if planning raises.
        flow = self._flows[task.flow_id]
        created: list[TaskInstance] = []
        for rule in next_rules:
            if not rule.next_task:
                continue
            if not self._ready_to_create(flow, rule, rules, task, created):
                continue
            created.append(self._build_task(flow, rule, now))

        task.status = TaskInstanceStatus.COMPLETED
        task.completed_at = now
        task.completed_by = completed_by
        task.completion_status = completion_status
        for new_task in created:
            self._tasks[new_task.id] = new_task

        logger.info(
            "Task %r (%s) completed by %s with status %r; %d next task(s)",
            task.task_name, task.id, completed_by, completion_status, len(created)
        )
        return task, created

    def _ready_to_create(
        self,
        flow: FlowInstance,
        rule: FlowRule,
        rules: list[FlowRule],
        completing: TaskInstance,
        pending: list[TaskInstance]
    ) -> bool:
        """
        Merge and duplicate checks for a task with several incoming rules.

        Rules leaving a task downstream of `rule.next_task` close a loop
        back into it and are not prerequisites.
        """
        downstream = reachable_tasks(rules, rule.next_task)
        prerequisites = [
            r for r in rules
            if r.next_task == rule.next_task
            and not r.is_start_rule
            and r.current_task not in downstream
        ]
        if len(prerequisites) <= 1:
            return True

        flow_tasks = self.tasks_for_flow(flow.flow_id)
        wait_for_all = any(r.merge_condition == MergeCondition.ALL for r in prerequisites)
        if wait_for_all:
            completed = {
                t.task_name for t in flow_tasks
                if t.status == TaskInstanceStatus.COMPLETED
            }
            completed.add(completing.task_name)
            if not all(p.current_task in completed for p in prerequisites):
                logger.info("Waiting for parallel tasks before %r", rule.next_task)
                return False

        if any(
            t.task_name == rule.next_task and t.status != TaskInstanceStatus.CANCELLED
            for t in [*flow_tasks, *pending]
        ):
            logger.info("Next task %r already exists", rule.next_task)
            return False
        return True

    def _build_task(self, flow: FlowInstance, rule: FlowRule, now: datetime) -> TaskInstance:
        """Plan the task a rule leads to without registering it."""
        return TaskInstance(
            flow_id=flow.flow_id,
            organization_id=flow.organization_id,
            system=flow.system,
            order_number=flow.order_number,
            task_name=rule.next_task,
            planned_time=calculate_tat(now, rule.tat, rule.tat_type, self.tat_config),
            doer_email=rule.email,
            form_id=rule.form_id,
            created_at=now
        )

    def _require_task(self, task_id: str) -> TaskInstance:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def get_task(self, task_id: str) -> Optional[TaskInstance]:
        return self._tasks.get(task_id)

    def get_flow(self, flow_id: str) -> Optional[FlowInstance]:
        return self._flows.get(flow_id)

    def flows_for_organization(self, organization_id: str) -> list[FlowInstance]:
        return [f for f in self._flows.values() if f.organization_id == organization_id]

    def tasks_for_flow(self, flow_id: str) -> list[TaskInstance]:
        """Tasks of a flow in creation order."""
        return [t for t in self._tasks.values() if t.flow_id == flow_id]

    def submissions_for_task(self, task_id: str) -> list[FormSubmission]:
        return list(self._submissions.get(task_id, []))
