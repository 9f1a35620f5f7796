"""Configuration management for on-call documents."""

from typing import Literal

import pytz
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from oncall.models import CompensationPolicy


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # PagerDuty API
    pagerduty_api_url: str = Field(
        default="https://api.pagerduty.com",
        description="Base URL of the PagerDuty REST API",
    )
    pagerduty_time_zone: str = Field(
        default="MST",
        description="Timezone PagerDuty renders incident timestamps in",
    )
    page_size: int = Field(
        default=50,
        description="Number of incidents requested per page",
        ge=1,
        le=100,
    )
    request_timeout: float = Field(
        default=30.0,
        description="HTTP request timeout in seconds",
        gt=0,
    )

    # Report output
    output_dir: str = Field(
        default="./output",
        description="Directory holding generated reports",
    )
    lookback_days: int = Field(
        default=7,
        description="Days to look back when no previous report exists",
        ge=1,
    )

    # Compensation rules
    timezone: str = Field(
        default="MST",
        description="Reference timezone for hour-of-day and weekday checks",
    )
    business_hours_start: int = Field(default=9, ge=0, le=23)
    business_hours_end: int = Field(default=17, ge=0, le=23)
    late_night_start: int = Field(default=22, ge=0, le=23)
    late_night_end: int = Field(default=4, ge=0, le=23)

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format: 'text' for human-readable, 'json' for structured",
    )

    @field_validator("pagerduty_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Remove trailing slashes so paths can be appended."""
        return v.rstrip("/")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate timezone is a known tz database name."""
        try:
            pytz.timezone(v)
            return v
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"Invalid timezone: {v}. Must be a valid tz database name.")

    @model_validator(mode="after")
    def validate_windows(self) -> "Settings":
        """Validate the business-hours window is ordered."""
        if self.business_hours_start > self.business_hours_end:
            raise ValueError(
                f"business_hours_start ({self.business_hours_start}) must not be after "
                f"business_hours_end ({self.business_hours_end})"
            )
        return self

    def get_pagerduty_config(self) -> dict:
        """Get keyword arguments for the PagerDuty client.

        Returns:
            Dictionary with client configuration.
        """
        return {
            "api_url": self.pagerduty_api_url,
            "time_zone": self.pagerduty_time_zone,
            "page_size": self.page_size,
            "timeout": self.request_timeout,
        }

    def get_compensation_policy(self) -> CompensationPolicy:
        """Get the immutable policy used to derive hours earned."""
        return CompensationPolicy(
            timezone=self.timezone,
            business_hours_start=self.business_hours_start,
            business_hours_end=self.business_hours_end,
            late_night_start=self.late_night_start,
            late_night_end=self.late_night_end,
        )


def load_settings() -> Settings:
    """Load and return application settings.

    Returns:
        Settings instance with values from environment.
    """
    return Settings()
