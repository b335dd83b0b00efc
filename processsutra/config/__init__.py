"""
Configuration Management

Centralized configuration for:
- Office hours used by the simulator TAT rules
- Business calendar (office hours, weekends) for live tasks
- Throughput factors
- Projection and simulation settings
"""

from .settings import (
    Settings,
    OfficeHoursConfig,
    BusinessCalendarConfig,
    ThroughputConfig,
    SimulationSettings,
    get_settings
)

__all__ = [
    "Settings",
    "OfficeHoursConfig",
    "BusinessCalendarConfig",
    "ThroughputConfig",
    "SimulationSettings",
    "get_settings"
]
