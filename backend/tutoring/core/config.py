# backend/tutoring/core/config.py
import logging
import os
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz

logger = logging.getLogger(__name__)


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


_BACKEND_ROOT = Path(__file__).resolve().parents[2]

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = _BACKEND_ROOT / ".env"
    logger.debug(f"[CONFIG] Looking for .env at: {env_path} (exists: {env_path.exists()})")
    load_dotenv(env_path)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=None,
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(default="development", description="Deployment environment name")
    database_url: str = Field(
        default=f"sqlite:///{_BACKEND_ROOT / 'tutoring.db'}",
        description="SQLAlchemy database URL for lessons, invitations and availability",
    )
    log_level: str = Field(default="INFO", description="Root log level")

    # Tutor-local time convention used to map instants onto the weekly grid
    tutor_timezone: str = Field(default="Europe/Warsaw")

    # Cancellation tiers (hours before the lesson, rounded)
    cancellation_late_hours: int = Field(default=2, ge=0)
    cancellation_notice_hours: int = Field(default=24, ge=0)
    cancellation_late_student_fee_rate: Decimal = Field(default=Decimal("0.50"), ge=0, le=1)
    cancellation_late_tutor_reduction_rate: Decimal = Field(default=Decimal("0.30"), ge=0, le=1)
    cancellation_notice_student_fee_rate: Decimal = Field(default=Decimal("0.25"), ge=0, le=1)
    cancellation_notice_tutor_reduction_rate: Decimal = Field(default=Decimal("0.15"), ge=0, le=1)

    # Reschedule tier (no 24h tier for reschedules)
    reschedule_late_hours: int = Field(default=2, ge=0)
    reschedule_late_student_fee_rate: Decimal = Field(default=Decimal("0.25"), ge=0, le=1)
    reschedule_late_tutor_reduction_rate: Decimal = Field(default=Decimal("0.15"), ge=0, le=1)
    min_reschedule_lead_hours: int = Field(default=2, ge=0)

    # Availability matching
    max_suggested_times: int = Field(default=10, ge=1)
    availability_grid_start_hour: int = Field(default=8, ge=0, le=23)
    availability_grid_end_hour: int = Field(default=21, ge=0, le=23)
    next_slot_horizon_days: int = Field(default=14, ge=1)

    # Invitations and lessons
    invitation_ttl_hours: int = Field(default=24, ge=1)
    default_lesson_price: Decimal = Decimal("100.00")
    default_lesson_duration_minutes: int = Field(default=60, ge=15)

    @field_validator("tutor_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = (value or "INFO").strip().upper()
        if normalized not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return normalized

    @model_validator(mode="after")
    def _validate_tiers(self) -> "Settings":
        if self.cancellation_late_hours > self.cancellation_notice_hours:
            raise ValueError("cancellation_late_hours must not exceed cancellation_notice_hours")
        if self.reschedule_late_hours > self.cancellation_notice_hours:
            raise ValueError("reschedule_late_hours must not exceed cancellation_notice_hours")
        if self.availability_grid_start_hour > self.availability_grid_end_hour:
            raise ValueError("availability grid must start before it ends")
        return self

    @property
    def availability_grid_hours(self) -> tuple[str, ...]:
        """Hour labels of the weekly grid shown to tutors ("08:00" .. "21:00")."""
        return tuple(
            f"{hour:02d}:00"
            for hour in range(self.availability_grid_start_hour, self.availability_grid_end_hour + 1)
        )

    def get_tutor_timezone(self) -> pytz.BaseTzInfo:
        return pytz.timezone(self.tutor_timezone)


settings = Settings()
