"""
Business Calendar TAT

Planned times for live tasks, honouring office hours and configurable
weekend days. Weekend days use the 0 = Sunday ... 6 = Saturday numbering
stored in organization settings (e.g. "0,6" or "5").
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Union
import logging

from ..core.entities import TatType
from ..core.exceptions import InvalidTATError

logger = logging.getLogger(__name__)

MAX_TAT = 365


@dataclass
class TATConfig:
    """Organization calendar settings."""
    office_start_hour: int = 9
    office_end_hour: int = 17
    timezone: str = "Asia/Kolkata"
    skip_weekends: bool = True
    weekend_days: str = "0,6"
    _weekend: frozenset = field(default=frozenset(), init=False, repr=False, compare=False)

    def __post_init__(self):
        if not (0 <= self.office_start_hour <= 23 and 0 <= self.office_end_hour <= 24):
            raise InvalidTATError("Office hours must be within the day")
        if self.office_end_hour <= self.office_start_hour:
            raise InvalidTATError("Office end hour must be after start hour")
        self._weekend = parse_weekend_days(self.weekend_days)
        if self.skip_weekends and len(self._weekend) >= 7:
            raise InvalidTATError("At least one working day is required")

    def is_weekend(self, moment: datetime) -> bool:
        return self.skip_weekends and weekday_number(moment) in self._weekend


def parse_weekend_days(weekend_days: str) -> frozenset:
    """Parse "0,6" style weekend configuration."""
    if not weekend_days:
        return frozenset()
    days = set()
    for part in str(weekend_days).split(","):
        part = part.strip()
        if not part:
            continue
        day = int(part)
        if not 0 <= day <= 6:
            raise InvalidTATError(f"Weekend day {day} must be between 0 and 6")
        days.add(day)
    return frozenset(days)


def weekday_number(moment: datetime) -> int:
    """Day of week with Sunday as 0."""
    return (moment.weekday() + 1) % 7


def _at_office_start(moment: datetime, config: TATConfig) -> datetime:
    return moment.replace(hour=config.office_start_hour, minute=0, second=0, microsecond=0)


def _next_working_day_start(moment: datetime, config: TATConfig) -> datetime:
    """Office start on the first non-weekend day after `moment`'s day."""
    result = _at_office_start(moment + timedelta(days=1), config)
    while config.is_weekend(result):
        result += timedelta(days=1)
    return result


def hour_tat(timestamp: datetime, tat: float, config: TATConfig = None) -> datetime:
    """Consume `tat` working hours starting at `timestamp`."""
    config = config or TATConfig()
    current = timestamp
    remaining = float(tat)

    while remaining > 0:
        if config.is_weekend(current):
            current = _next_working_day_start(current - timedelta(days=1), config)
            continue

        if current.hour < config.office_start_hour:
            current = _at_office_start(current, config)
            continue

        if current.hour >= config.office_end_hour:
            current = _next_working_day_start(current, config)
            continue

        hours_left_today = config.office_end_hour - (current.hour + current.minute / 60)

        if remaining < hours_left_today:
            current = current.replace(second=0, microsecond=0) + timedelta(hours=remaining)
            remaining = 0
        elif remaining == hours_left_today and current.minute == 0:
            # landing exactly on office end rolls to the next working morning
            remaining = 0
            current = _next_working_day_start(current, config)
        else:
            remaining -= hours_left_today
            current = _next_working_day_start(current, config)

    return current


def day_tat(timestamp: datetime, tat: float, config: TATConfig = None) -> datetime:
    """Add `tat` working days, keeping the time of day."""
    config = config or TATConfig()
    result = timestamp
    days_added = 0

    while days_added < tat:
        result += timedelta(days=1)
        if not config.is_weekend(result):
            days_added += 1

    return result


def before_tat(timestamp: datetime, tat: float, config: TATConfig = None) -> datetime:
    """Go back `tat` working days and anchor at office start."""
    config = config or TATConfig()
    result = timestamp
    days_subtracted = 0

    while days_subtracted < tat:
        result -= timedelta(days=1)
        if not config.is_weekend(result):
            days_subtracted += 1

    return _at_office_start(result, config)


def specify_tat(timestamp: datetime, hour: float, config: TATConfig = None) -> datetime:
    """Next working day at the given hour of the day."""
    config = config or TATConfig()
    if hour < 0 or hour > 23:
        raise InvalidTATError("Specify TAT hour must be between 0 and 23")

    result = (timestamp + timedelta(days=1)).replace(
        hour=int(hour), minute=0, second=0, microsecond=0
    )
    while config.is_weekend(result):
        result += timedelta(days=1)
    return result


_DISPATCH = {
    TatType.HOUR: hour_tat,
    TatType.DAY: day_tat,
    TatType.BEFORE: before_tat,
    TatType.SPECIFY: specify_tat,
}


def calculate_tat(
    timestamp: datetime,
    tat: float,
    tat_type: Union[TatType, str],
    config: TATConfig = None
) -> datetime:
    """
    Planned time for a live task.

    Validates inputs, then dispatches on the TAT type. Unknown types fall
    back to hour TAT with a warning.
    """
    config = config or TATConfig()

    if not isinstance(timestamp, datetime):
        raise InvalidTATError("Invalid timestamp provided to calculate_tat")
    if isinstance(tat, bool) or not isinstance(tat, (int, float)) or tat != tat:
        raise InvalidTATError("TAT must be a valid number")
    if tat < 0:
        raise InvalidTATError("TAT cannot be negative")
    if tat > MAX_TAT:
        raise InvalidTATError(f"TAT cannot exceed {MAX_TAT} days")

    try:
        kind = TatType.parse(tat_type)
    except ValueError:
        logger.warning("Unrecognized TAT type %r; falling back to hour TAT", tat_type)
        kind = TatType.HOUR

    logger.debug("TAT calculation started: %s tat=%s type=%s", timestamp.isoformat(), tat, kind.value)
    result = _DISPATCH[kind](timestamp, tat, config)
    logger.debug("TAT calculation completed: %s -> %s", timestamp.isoformat(), result.isoformat())

    return result


def is_working_time(moment: datetime, config: TATConfig = None) -> bool:
    """Whether `moment` falls inside office hours on a working day."""
    config = config or TATConfig()
    if config.is_weekend(moment):
        return False
    minutes = moment.hour * 60 + moment.minute
    return config.office_start_hour * 60 <= minutes < config.office_end_hour * 60


def next_working_time(moment: datetime, config: TATConfig = None) -> datetime:
    """`moment` itself if it is working time, else the next office start."""
    config = config or TATConfig()
    if is_working_time(moment, config):
        return moment

    result = _at_office_start(moment, config)
    if moment.hour >= config.office_end_hour:
        result += timedelta(days=1)
    while config.is_weekend(result):
        result += timedelta(days=1)
    return result
