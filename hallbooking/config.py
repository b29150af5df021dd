"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import BusinessHours, DurationLimits, Venue


class BusinessHoursConfig(BaseModel):
    """Business-hours grid of a venue day."""
    start_hour: int = 9
    end_hour: int = 16
    end_minute: int = 30
    interval_minutes: int = 30

    @field_validator("start_hour", "end_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 23."""
        if not 0 <= v <= 23:
            raise ValueError(f"Hour must be between 0 and 23, got {v}")
        return v

    @field_validator("end_minute")
    @classmethod
    def validate_minute(cls, v: int) -> int:
        if not 0 <= v <= 59:
            raise ValueError(f"Minute must be between 0 and 59, got {v}")
        return v

    @field_validator("interval_minutes")
    @classmethod
    def validate_interval(cls, value: int) -> int:
        """Ensure the grid interval is positive."""
        if value <= 0:
            raise ValueError("interval_minutes must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "BusinessHoursConfig":
        """Ensure the configured window opens before it closes."""
        if self.end_hour * 60 + self.end_minute <= self.start_hour * 60:
            raise ValueError("business hours must close after they open")
        return self

    def to_business_hours(self) -> BusinessHours:
        return BusinessHours(
            start_hour=self.start_hour,
            end_hour=self.end_hour,
            end_minute=self.end_minute,
            interval_minutes=self.interval_minutes,
        )


class BookingLimitsConfig(BaseModel):
    """Booking length and advance-booking limits."""
    min_duration_minutes: int = 30
    max_duration_minutes: int = 8 * 60
    max_advance_days: int = 90

    @model_validator(mode="after")
    def validate_durations(self) -> "BookingLimitsConfig":
        if self.min_duration_minutes <= 0:
            raise ValueError("min_duration_minutes must be greater than zero")
        if self.max_duration_minutes < self.min_duration_minutes:
            raise ValueError("max_duration_minutes must not be below min_duration_minutes")
        if self.max_advance_days < 0:
            raise ValueError("max_advance_days must not be negative")
        return self

    def to_duration_limits(self) -> DurationLimits:
        return DurationLimits(
            min_minutes=self.min_duration_minutes,
            max_minutes=self.max_duration_minutes,
        )


class VenueConfig(BaseModel):
    """Venue configuration."""
    id: str
    name: str
    requires_approval: bool = False
    business_hours: Optional[BusinessHoursConfig] = None  # Falls back to the global grid


def _default_venues() -> List[VenueConfig]:
    return [
        VenueConfig(id="general-hall", name="Conference Hall", requires_approval=True),
        VenueConfig(id="video-conference", name="Video Conference Hall", requires_approval=False),
        VenueConfig(id="convention-center", name="Convention Center", requires_approval=True),
        VenueConfig(id="lab", name="Lab", requires_approval=True),
        VenueConfig(id="mba-seminar", name="MBA Seminar Hall", requires_approval=False),
    ]


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Asia/Kolkata"
    data_file: str = "bookings.json"
    business_hours: BusinessHoursConfig = Field(default_factory=BusinessHoursConfig)
    limits: BookingLimitsConfig = Field(default_factory=BookingLimitsConfig)
    venues: List[VenueConfig] = Field(default_factory=_default_venues)

    @field_validator("venues")
    @classmethod
    def validate_venues(cls, value: List[VenueConfig]) -> List[VenueConfig]:
        """Ensure venue ids are unique."""
        seen: set[str] = set()
        for venue in value:
            key = venue.id.lower()
            if key in seen:
                raise ValueError(f"Duplicate venue id detected: {venue.id}")
            seen.add(key)
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def find_venue(self, venue_id: str) -> VenueConfig | None:
        """Find a venue by its id, case-insensitively."""
        for venue in self.venues:
            if venue.id.lower() == venue_id.lower():
                return venue
        return None

    def build_venues(self) -> List[Venue]:
        """Turn the venue configuration into domain venues with resolved grids."""
        return [
            Venue(
                id=venue.id,
                name=venue.name,
                requires_approval=venue.requires_approval,
                business_hours=(venue.business_hours or self.business_hours).to_business_hours(),
            )
            for venue in self.venues
        ]

    def resolve_data_file(self, config_path: Path | None = None) -> Path:
        """Relative data paths are resolved next to the config file."""
        path = Path(self.data_file)
        if path.is_absolute() or config_path is None:
            return path
        return config_path.parent / path


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_path: Path | None = None) -> tuple[AppConfig, Path | None]:
    """
    Load the configuration, falling back to built-in defaults.

    An explicitly given path must exist; when no path is given and no
    config.yaml is found, defaults are used.

    Returns:
        The configuration and the path it was loaded from, if any
    """
    if config_path is not None:
        return AppConfig.load_from_yaml(config_path), config_path

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path), default_path
    return AppConfig(), None
