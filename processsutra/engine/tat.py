"""
TAT Calculator

Computes the planned end time of a task from its start time, TAT magnitude
and TAT type:
- hourtat: start + tat hours
- daytat: start + tat working days of 8 hours
- beforetat: next calendar day at office start + tat hours
- specifytat: start + tat * 60 minutes

A one hour lunch break is added when the task overlaps 12:00-13:00 on the
day it starts. Later days are not checked.
"""

from datetime import datetime, time, timedelta
from typing import Optional, Union
import logging

from ..core.entities import FlowRule, OfficeHours, TatType
from .throughput import ThroughputParams, adjust_duration, effective_speed

logger = logging.getLogger(__name__)

WORKING_HOURS_PER_DAY = 8
LUNCH_START = time(12, 0)
LUNCH_END = time(13, 0)
LUNCH_DURATION = timedelta(hours=1)


def lunch_window(day: datetime) -> tuple[datetime, datetime]:
    """Lunch window on the calendar day of `day`."""
    return (
        datetime.combine(day.date(), LUNCH_START, tzinfo=day.tzinfo),
        datetime.combine(day.date(), LUNCH_END, tzinfo=day.tzinfo)
    )


def overlaps_lunch(start_time: datetime, end_time: datetime) -> bool:
    """Check whether [start_time, end_time] overlaps the start day's lunch window."""
    lunch_start, lunch_end = lunch_window(start_time)
    return end_time > lunch_start and start_time < lunch_end


def base_end_time(
    start_time: datetime,
    tat: float,
    tat_type: Union[TatType, str],
    office_hours: Optional[OfficeHours] = None
) -> datetime:
    """
    End time for a TAT before throughput and lunch adjustments.

    Unknown TAT types are treated as zero duration and logged; they should
    have been rejected when the rule was written.
    """
    office_hours = office_hours or OfficeHours()

    try:
        kind = TatType.parse(tat_type)
    except ValueError:
        logger.warning(
            "Unrecognized TAT type %r; treating duration as zero (start=%s, tat=%s)",
            tat_type, start_time.isoformat(), tat
        )
        return start_time

    if kind == TatType.HOUR:
        return start_time + timedelta(hours=tat)
    if kind == TatType.DAY:
        return start_time + timedelta(hours=tat * WORKING_HOURS_PER_DAY)
    if kind == TatType.BEFORE:
        next_midnight = datetime.combine(
            start_time.date() + timedelta(days=1), time(0, 0), tzinfo=start_time.tzinfo
        )
        return next_midnight + timedelta(hours=office_hours.start_hour + tat)
    # specifytat: minute arithmetic keeps fractional hours exact
    return start_time + timedelta(minutes=tat * 60)


def compute_end_time(
    start_time: datetime,
    tat: float,
    tat_type: Union[TatType, str],
    office_hours: Optional[OfficeHours] = None
) -> datetime:
    """Planned end time for a TAT including the lunch adjustment."""
    end_time = base_end_time(start_time, tat, tat_type, office_hours)

    if overlaps_lunch(start_time, end_time):
        end_time += LUNCH_DURATION

    return end_time


def planned_end_time(
    start_time: datetime,
    rule: FlowRule,
    params: Optional[ThroughputParams] = None,
    office_hours: Optional[OfficeHours] = None
) -> datetime:
    """
    Planned end time of the task a rule leads to.

    The base TAT duration is divided by the assignee's effective speed at
    the start time, then the lunch adjustment is applied.
    """
    params = params or ThroughputParams()

    base_end = base_end_time(start_time, rule.tat, rule.tat_type, office_hours)
    speed = effective_speed(rule.email, start_time, params)
    end_time = start_time + adjust_duration(base_end - start_time, speed)

    if overlaps_lunch(start_time, end_time):
        end_time += LUNCH_DURATION

    logger.debug(
        "Planned %s for %s: %s -> %s (speed %.2f)",
        rule.next_task, rule.email, start_time.isoformat(), end_time.isoformat(), speed
    )
    return end_time
