"""
Settings Management with Pydantic

Provides type-safe configuration management with:
- Environment variable support
- Validation
- Converters to the engine's plain dataclasses
"""

from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.entities import OfficeHours
from ..engine.business_calendar import TATConfig
from ..engine.throughput import ThroughputParams
from ..simulation.simulator import SimulationConfig


class OfficeHoursConfig(BaseSettings):
    """Office window used by the simulator TAT rules."""
    model_config = SettingsConfigDict(
        env_prefix="OFFICE_",
        extra="ignore"
    )

    start_hour: int = Field(default=9, ge=0, le=23)
    end_hour: int = Field(default=18, ge=1, le=24)

    @model_validator(mode="after")
    def _check_order(self) -> "OfficeHoursConfig":
        if self.end_hour <= self.start_hour:
            raise ValueError("Office end hour must be after start hour")
        return self

    def to_office_hours(self) -> OfficeHours:
        return OfficeHours(start_hour=self.start_hour, end_hour=self.end_hour)


class BusinessCalendarConfig(BaseSettings):
    """Organization calendar for live task planning."""
    model_config = SettingsConfigDict(
        env_prefix="TAT_",
        extra="ignore"
    )

    office_start_hour: int = Field(default=9, ge=0, le=23)
    office_end_hour: int = Field(default=17, ge=1, le=24)
    timezone: str = "Asia/Kolkata"
    skip_weekends: bool = True
    weekend_days: str = "0,6"  # 0 = Sunday ... 6 = Saturday

    def to_tat_config(self) -> TATConfig:
        return TATConfig(
            office_start_hour=self.office_start_hour,
            office_end_hour=self.office_end_hour,
            timezone=self.timezone,
            skip_weekends=self.skip_weekends,
            weekend_days=self.weekend_days
        )


class ThroughputConfig(BaseSettings):
    """Throughput factors; the defaults leave durations unchanged."""
    model_config = SettingsConfigDict(
        env_prefix="THROUGHPUT_",
        extra="ignore"
    )

    base_speed_percent: float = Field(default=100.0, gt=0)
    peak_start: str = "10:00"
    peak_end: str = "16:00"
    peak_speed_percent: float = Field(default=100.0, gt=0)
    team_count: int = Field(default=1, ge=1)

    @field_validator("peak_start", "peak_end")
    @classmethod
    def _hhmm(cls, value: str) -> str:
        hours, sep, minutes = value.partition(":")
        if not sep or not hours.isdigit() or not minutes.isdigit():
            raise ValueError("Peak times must use HH:MM")
        if int(hours) > 23 or int(minutes) > 59:
            raise ValueError("Peak times must be a valid time of day")
        return f"{int(hours):02d}:{int(minutes):02d}"

    def to_params(self, per_actor_speed_percent: Optional[dict] = None) -> ThroughputParams:
        return ThroughputParams(
            base_speed_percent=self.base_speed_percent,
            peak_start=self.peak_start,
            peak_end=self.peak_end,
            peak_speed_percent=self.peak_speed_percent,
            team_count=self.team_count,
            per_actor_speed_percent=dict(per_actor_speed_percent or {})
        )


class SimulationSettings(BaseSettings):
    """Projection and playback settings."""
    model_config = SettingsConfigDict(
        env_prefix="SIMULATION_",
        extra="ignore"
    )

    max_steps: int = Field(default=10, ge=1)
    completion_status: str = "Done"
    step_minutes: int = Field(default=60, ge=1)
    max_waiting_minutes: float = Field(default=30.0, ge=0)
    random_seed: Optional[int] = None


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Application
    app_name: str = "ProcessSutra"
    debug: bool = False
    log_level: str = "INFO"

    # Sub-configurations
    office_hours: OfficeHoursConfig = Field(default_factory=OfficeHoursConfig)
    calendar: BusinessCalendarConfig = Field(default_factory=BusinessCalendarConfig)
    throughput: ThroughputConfig = Field(default_factory=ThroughputConfig)
    simulation: SimulationSettings = Field(default_factory=SimulationSettings)

    # Rule store
    reject_cycles: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables."""
        return cls(
            office_hours=OfficeHoursConfig(),
            calendar=BusinessCalendarConfig(),
            throughput=ThroughputConfig(),
            simulation=SimulationSettings()
        )

    def simulation_config(self, per_actor_speed_percent: Optional[dict] = None) -> SimulationConfig:
        """Simulator configuration assembled from the sections."""
        return SimulationConfig(
            step_minutes=self.simulation.step_minutes,
            max_steps=self.simulation.max_steps,
            completion_status=self.simulation.completion_status,
            max_waiting_minutes=self.simulation.max_waiting_minutes,
            throughput=self.throughput.to_params(per_actor_speed_percent),
            office_hours=self.office_hours.to_office_hours(),
            random_seed=self.simulation.random_seed
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
