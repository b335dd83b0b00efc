"""
Simulation Engine

Plays a projected flow timeline forward on a simulated clock:
- Projects tasks from the flow rules with the flow walker
- Advances the clock tick by tick
- Moves each task through pending -> in_progress -> (lunch_break) -> completed
- Collects completion and throughput metrics
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Optional
from uuid import uuid4
import logging

from ..core.entities import FlowRule, OfficeHours, ProjectedTask, TaskStatus
from ..core.exceptions import NoStartRuleError
from ..engine.tat import LUNCH_DURATION, lunch_window
from ..engine.throughput import ThroughputParams
from ..engine.walker import (
    DEFAULT_COMPLETION_STATUS,
    DEFAULT_MAX_STEPS,
    MAX_WAITING_MINUTES,
    RandomWaitingTime,
    TimelineSummary,
    WaitingTimeSource,
    project_timeline,
    summarize
)

logger = logging.getLogger(__name__)


@dataclass
class SimulationConfig:
    """
    Configuration for simulation runs.

    step_minutes is how far the clock moves per tick (60 = one simulated
    hour per tick).
    """
    step_minutes: int = 60
    max_steps: int = DEFAULT_MAX_STEPS
    completion_status: Optional[str] = DEFAULT_COMPLETION_STATUS
    max_waiting_minutes: float = MAX_WAITING_MINUTES

    throughput: ThroughputParams = field(default_factory=ThroughputParams)
    office_hours: OfficeHours = field(default_factory=OfficeHours)

    # Randomization
    random_seed: Optional[int] = None


@dataclass
class FlowSimulation:
    """State of one simulated flow."""
    flow_id: str = field(default_factory=lambda: f"sim-flow-{uuid4().hex[:8]}")
    system: str = ""
    order_number: str = field(default_factory=lambda: f"SIM-{uuid4().hex[:6].upper()}")
    description: str = ""
    tasks: list = field(default_factory=list)

    current_time: Optional[datetime] = None
    is_running: bool = False
    ticks: int = 0

    @property
    def is_finished(self) -> bool:
        return bool(self.tasks) and all(t.is_completed for t in self.tasks)


def advance_task(task: ProjectedTask, clock: datetime) -> None:
    """
    Apply one tick of the task state machine at `clock`.

    Transitions are decided on the status the task had before the tick.
    """
    lunch_start, lunch_end = lunch_window(clock)
    status = task.status

    if status == TaskStatus.PENDING:
        if task.start_time <= clock:
            task.status = TaskStatus.IN_PROGRESS
            task.start_time = clock

    elif status == TaskStatus.IN_PROGRESS:
        if task.planned_end_time <= clock:
            task.status = TaskStatus.COMPLETED
            task.actual_end_time = clock
            elapsed = (clock - task.start_time).total_seconds() / 60
            task.processing_time = max(0.0, elapsed - 60)
        elif lunch_start <= clock <= lunch_end and not task.lunch_break_taken:
            task.status = TaskStatus.LUNCH_BREAK
            task.lunch_break_taken = True
            task.planned_end_time += LUNCH_DURATION

    elif status == TaskStatus.LUNCH_BREAK:
        if clock > lunch_end:
            task.status = TaskStatus.IN_PROGRESS


class Simulator:
    """
    Main simulation engine.

    Builds a flow simulation from rules and drives its clock.
    """

    def __init__(self, config: SimulationConfig = None, waiting_time: WaitingTimeSource = None):
        self.config = config or SimulationConfig()
        self.waiting_time = waiting_time or RandomWaitingTime(
            self.config.max_waiting_minutes, self.config.random_seed
        )
        self.simulation: Optional[FlowSimulation] = None
        self._started_at: Optional[datetime] = None
        self._rules: list[FlowRule] = []

    def start(self, system: str, rules: Iterable[FlowRule], now: datetime) -> FlowSimulation:
        """Project the flow of `system` and start the clock at `now`."""
        self._rules = list(rules)
        tasks = self._project(system, now)
        if not tasks:
            raise NoStartRuleError(system)

        self._started_at = now
        self.simulation = FlowSimulation(
            system=system,
            description=f"Simulation of {system} workflow",
            tasks=tasks,
            current_time=now,
            is_running=True
        )
        logger.info(
            "Simulation %s started for %r with %d tasks",
            self.simulation.flow_id, system, len(tasks)
        )
        return self.simulation

    def _project(self, system: str, now: datetime) -> list[ProjectedTask]:
        return project_timeline(
            system,
            self._rules,
            now,
            params=self.config.throughput,
            office_hours=self.config.office_hours,
            max_steps=self.config.max_steps,
            completion_status=self.config.completion_status,
            waiting_time=self.waiting_time
        )

    def _require_simulation(self) -> FlowSimulation:
        if self.simulation is None:
            raise RuntimeError("No simulation has been started")
        return self.simulation

    def tick(self) -> FlowSimulation:
        """Advance the clock one step and update every task."""
        sim = self._require_simulation()
        if not sim.is_running:
            return sim

        sim.current_time += timedelta(minutes=self.config.step_minutes)
        sim.ticks += 1
        for task in sim.tasks:
            advance_task(task, sim.current_time)

        if sim.is_finished:
            sim.is_running = False
            logger.info("Simulation %s finished after %d ticks", sim.flow_id, sim.ticks)
        return sim

    def run(self, max_ticks: int = 1000) -> TimelineSummary:
        """Tick until every task completes, the run is paused or max_ticks is hit."""
        sim = self._require_simulation()
        for _ in range(max_ticks):
            if not sim.is_running:
                break
            self.tick()
        return self.summary()

    def pause(self) -> None:
        self._require_simulation().is_running = False

    def resume(self) -> None:
        sim = self._require_simulation()
        if not sim.is_finished:
            sim.is_running = True

    def reset(self) -> FlowSimulation:
        """Re-project the same system from the original start time."""
        sim = self._require_simulation()
        return self.start(sim.system, self._rules, self._started_at)

    def summary(self) -> TimelineSummary:
        sim = self._require_simulation()
        return summarize(sim.tasks, sim.current_time)
