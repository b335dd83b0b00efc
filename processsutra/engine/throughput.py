"""
Throughput Model

Effective speed of an actor at a point in time. The multiplier combines:
- a base speed percentage
- a peak-hour slowdown inside a configured HH:MM window
- a per-actor speed percentage
- a linear team benefit of 30% per additional member

Durations are scaled by dividing by the multiplier, so a faster actor
finishes sooner. The multiplier never drops below MIN_SPEED.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

MIN_SPEED = 0.1
TEAM_MEMBER_BENEFIT = 0.3


@dataclass
class ThroughputParams:
    """Throughput factors; the defaults leave durations unchanged."""
    base_speed_percent: float = 100.0
    peak_start: str = "10:00"
    peak_end: str = "16:00"
    peak_speed_percent: float = 100.0
    team_count: int = 1
    per_actor_speed_percent: dict = field(default_factory=dict)

    def __post_init__(self):
        if self.team_count < 1:
            raise ValueError("team_count must be at least 1")
        self.peak_start = _normalize_hhmm(self.peak_start)
        self.peak_end = _normalize_hhmm(self.peak_end)

    @property
    def peak_window(self) -> tuple[str, str]:
        return self.peak_start, self.peak_end


def _normalize_hhmm(value: str) -> str:
    """Zero-pad an "H:MM" string so lexical comparison orders times."""
    hours, _, minutes = str(value).partition(":")
    return f"{int(hours):02d}:{int(minutes or 0):02d}"


def is_in_peak_window(at_time: datetime, params: ThroughputParams) -> bool:
    """Whether the wall-clock time falls inside the peak window, inclusive."""
    clock = at_time.strftime("%H:%M")
    return params.peak_start <= clock <= params.peak_end


def team_multiplier(team_count: int) -> float:
    return 1 + (team_count - 1) * TEAM_MEMBER_BENEFIT


def effective_speed(actor_id: str, at_time: datetime, params: ThroughputParams) -> float:
    """Speed multiplier for `actor_id` working at `at_time`."""
    speed = params.base_speed_percent / 100

    if is_in_peak_window(at_time, params):
        speed *= params.peak_speed_percent / 100

    speed *= params.per_actor_speed_percent.get(actor_id, 100) / 100
    speed *= team_multiplier(params.team_count)

    return max(MIN_SPEED, speed)


def adjust_duration(base_duration: timedelta, speed: float) -> timedelta:
    """Scale a duration by an effective speed."""
    return base_duration / speed
