"""
Flow Engine

- TAT calculator: planned end times with the lunch-break rule
- Throughput model: effective speed from team, peak and per-user factors
- Flow walker: start-rule lookup and bounded timeline projection
- Business calendar: office-hours and weekend-aware TAT for live tasks
- Cycle detection: loops in the rule graph
"""

from .tat import (
    compute_end_time,
    overlaps_lunch,
    planned_end_time
)
from .throughput import (
    ThroughputParams,
    adjust_duration,
    effective_speed,
    is_in_peak_window
)
from .walker import (
    NoWaitingTime,
    RandomWaitingTime,
    RuleIndex,
    TimelineSummary,
    WaitingTimeSource,
    project_timeline,
    summarize
)
from .business_calendar import (
    TATConfig,
    calculate_tat,
    is_working_time,
    next_working_time
)
from .cycles import (
    CycleDetectionResult,
    detect_cycle,
    reachable_tasks,
    validate_no_cycle
)

__all__ = [
    "compute_end_time",
    "overlaps_lunch",
    "planned_end_time",
    "ThroughputParams",
    "adjust_duration",
    "effective_speed",
    "is_in_peak_window",
    "NoWaitingTime",
    "RandomWaitingTime",
    "RuleIndex",
    "TimelineSummary",
    "WaitingTimeSource",
    "project_timeline",
    "summarize",
    "TATConfig",
    "calculate_tat",
    "is_working_time",
    "next_working_time",
    "CycleDetectionResult",
    "detect_cycle",
    "reachable_tasks",
    "validate_no_cycle"
]
