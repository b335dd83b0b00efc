"""
Metrics Calculator for Simulation Analysis

Breaks a simulated timeline down by doer and measures how many tasks
finished within their planned time.
"""

from dataclasses import dataclass, field
from typing import Optional
import statistics

from ..core.entities import ProjectedTask


@dataclass
class DoerMetrics:
    """Workload of one assignee in a timeline."""
    doer_email: str = ""
    task_count: int = 0
    completed: int = 0
    planned_hours: float = 0.0
    processing_minutes: float = 0.0


@dataclass
class TimelineMetrics:
    """Per-doer breakdown plus timing statistics."""
    doers: dict = field(default_factory=dict)
    on_time_rate: float = 0.0
    avg_waiting_minutes: float = 0.0
    avg_planned_hours: float = 0.0
    bottleneck: Optional[str] = None


class MetricsCalculator:
    """Calculates workload and timing metrics for projected tasks."""

    def doer_breakdown(self, tasks: list[ProjectedTask]) -> dict[str, DoerMetrics]:
        breakdown: dict[str, DoerMetrics] = {}
        for task in tasks:
            metrics = breakdown.setdefault(task.doer_email, DoerMetrics(doer_email=task.doer_email))
            metrics.task_count += 1
            metrics.planned_hours += task.planned_hours
            if task.is_completed:
                metrics.completed += 1
                metrics.processing_minutes += task.processing_time
        return breakdown

    def on_time_rate(self, tasks: list[ProjectedTask]) -> float:
        """
        Share of completed tasks that finished by their planned end time.

        Returns 0 when nothing has completed yet.
        """
        completed = [t for t in tasks if t.is_completed and t.actual_end_time is not None]
        if not completed:
            return 0.0
        on_time = sum(1 for t in completed if t.actual_end_time <= t.planned_end_time)
        return on_time / len(completed)

    def calculate(self, tasks: list[ProjectedTask]) -> TimelineMetrics:
        result = TimelineMetrics(
            doers=self.doer_breakdown(tasks),
            on_time_rate=self.on_time_rate(tasks)
        )
        if tasks:
            result.avg_waiting_minutes = statistics.mean(t.waiting_time for t in tasks)
            result.avg_planned_hours = statistics.mean(t.planned_hours for t in tasks)
        if result.doers:
            result.bottleneck = max(
                result.doers.values(), key=lambda m: m.planned_hours
            ).doer_email
        return result
