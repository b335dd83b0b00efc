"""
Flow Simulation

Plays a projected flow timeline on a simulated clock so admins can see
when each task would start and finish, where lunch breaks land and how
team size or peak-hour slowdowns change the total throughput time.
"""

from .simulator import (
    FlowSimulation,
    SimulationConfig,
    Simulator,
    advance_task
)
from .metrics import (
    DoerMetrics,
    MetricsCalculator,
    TimelineMetrics
)

__all__ = [
    "FlowSimulation",
    "SimulationConfig",
    "Simulator",
    "advance_task",
    "DoerMetrics",
    "MetricsCalculator",
    "TimelineMetrics"
]
