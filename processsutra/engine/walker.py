"""
Flow Walker

Projects the timeline of a workflow without touching persisted state:

1. Find the start rule (empty current task) for the system
2. Follow completion transitions from each task to the next
3. Chain start times: each task starts when the previous one is planned
   to end
4. Stop when the graph ends, a branch is unmapped, or max_steps is reached

Cycles in the rule graph are legitimate (follow-up loops) and are bounded by
max_steps rather than rejected.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Protocol
import logging
import random

from ..core.entities import FlowRule, OfficeHours, ProjectedTask
from .tat import planned_end_time
from .throughput import ThroughputParams

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 10
DEFAULT_COMPLETION_STATUS = "Done"
MAX_WAITING_MINUTES = 30.0


class WaitingTimeSource(Protocol):
    """Supplies the display-only waiting time (minutes) before a task starts."""

    def next_waiting_time(self) -> float:
        ...


class RandomWaitingTime:
    """Uniform waiting time in [0, max_minutes]; seed it for repeatable runs."""

    def __init__(self, max_minutes: float = MAX_WAITING_MINUTES, seed: Optional[int] = None):
        self.max_minutes = max_minutes
        self._random = random.Random(seed)

    def next_waiting_time(self) -> float:
        return self._random.uniform(0, self.max_minutes)


class NoWaitingTime:
    """Always zero; used when projections must be fully deterministic."""

    def next_waiting_time(self) -> float:
        return 0.0


class RuleIndex:
    """
    Rules of one snapshot indexed by (system, current_task).

    Lookups preserve the original rule order so the first eligible rule
    wins when several statuses match.
    """

    def __init__(self, rules: Iterable[FlowRule]):
        self._by_task: dict[tuple[str, str], list[FlowRule]] = defaultdict(list)
        for rule in rules:
            self._by_task[(rule.system, rule.current_task or "")].append(rule)

    def start_rule(self, system: str) -> Optional[FlowRule]:
        """The rule that starts `system`, or None."""
        candidates = self._by_task.get((system, ""), [])
        if not candidates:
            return None
        if len(candidates) > 1:
            logger.warning(
                "System %r has %d start rules; using the first (%s)",
                system, len(candidates), candidates[0].next_task
            )
        return candidates[0]

    def outgoing(self, system: str, task_name: str) -> list[FlowRule]:
        return list(self._by_task.get((system, task_name), []))

    def next_rule(
        self,
        system: str,
        task_name: str,
        completion_status: Optional[str] = DEFAULT_COMPLETION_STATUS
    ) -> Optional[FlowRule]:
        """First rule leaving `task_name` on `completion_status` (any status if None)."""
        for rule in self._by_task.get((system, task_name), []):
            if completion_status is None or rule.status == completion_status:
                return rule
        return None


@dataclass
class TimelineSummary:
    """Aggregates over a projected or simulated timeline."""
    total: int = 0
    completed_count: int = 0
    performance_percent: float = 0.0
    total_throughput_hours: float = 0.0


def _project_task(
    rule: FlowRule,
    start_time: datetime,
    params: ThroughputParams,
    office_hours: OfficeHours,
    waiting_time: float
) -> ProjectedTask:
    return ProjectedTask(
        task_name=rule.next_task,
        doer=rule.doer,
        doer_email=rule.email,
        form_id=rule.form_id,
        start_time=start_time,
        planned_end_time=planned_end_time(start_time, rule, params, office_hours),
        tat=rule.tat,
        tat_type=rule.tat_type,
        waiting_time=waiting_time
    )


def project_timeline(
    system: str,
    rules: Iterable[FlowRule],
    now: datetime,
    params: Optional[ThroughputParams] = None,
    office_hours: Optional[OfficeHours] = None,
    max_steps: int = DEFAULT_MAX_STEPS,
    completion_status: Optional[str] = DEFAULT_COMPLETION_STATUS,
    waiting_time: Optional[WaitingTimeSource] = None
) -> list[ProjectedTask]:
    """
    Project the ordered list of tasks a flow of `system` would go through.

    Returns an empty list when the system has no start rule; callers decide
    how to surface that. `rules` is read once up front.
    """
    if max_steps < 1:
        raise ValueError("max_steps must be at least 1")

    params = params or ThroughputParams()
    office_hours = office_hours or OfficeHours()
    waiting_time = waiting_time or RandomWaitingTime()

    index = RuleIndex(rules)
    start_rule = index.start_rule(system)
    if start_rule is None:
        logger.info("No starting rule found for system %r", system)
        return []
    if start_rule.is_terminal:
        logger.warning("Start rule of system %r has no first task", system)
        return []

    tasks = [_project_task(start_rule, now, params, office_hours, 0.0)]
    current_task = start_rule.next_task

    while len(tasks) < max_steps and current_task:
        rule = index.next_rule(system, current_task, completion_status)
        if rule is None or rule.is_terminal:
            break

        cursor = tasks[-1].planned_end_time
        tasks.append(
            _project_task(rule, cursor, params, office_hours, waiting_time.next_waiting_time())
        )
        current_task = rule.next_task

    if len(tasks) >= max_steps and current_task:
        logger.debug("Projection for %r capped at %d steps", system, max_steps)

    return tasks


def summarize(tasks: list[ProjectedTask], current_time: datetime) -> TimelineSummary:
    """Completion count, performance and elapsed hours for a timeline."""
    total = len(tasks)
    completed = sum(1 for t in tasks if t.is_completed)

    summary = TimelineSummary(total=total, completed_count=completed)
    if total:
        summary.performance_percent = completed / total * 100
        summary.total_throughput_hours = (
            (current_time - tasks[0].start_time).total_seconds() / 3600
        )
    return summary
