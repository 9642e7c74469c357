"""Typed settings loader for the weather lookup client."""

from __future__ import annotations

from datetime import tzinfo
from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AnyUrl, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    openweather_api_key: str | None = Field(
        default=None, alias="OPENWEATHER_API_KEY", repr=False
    )
    openweather_base_url: AnyUrl = Field(
        default=AnyUrl("https://api.openweathermap.org/data/2.5"),
        alias="OPENWEATHER_BASE_URL",
    )
    weather_units: Literal["metric"] = Field(default="metric", alias="WEATHER_UNITS")
    weather_timeout_seconds: float = Field(default=10.0, alias="WEATHER_TIMEOUT_SECONDS")
    weather_timezone: str | None = Field(default=None, alias="WEATHER_TIMEZONE")
    weather_forecast_days: int = Field(default=5, alias="WEATHER_FORECAST_DAYS")
    weather_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="WEATHER_LOG_LEVEL"
    )

    weather_default_city: str | None = Field(default=None, alias="WEATHER_DEFAULT_CITY")
    weather_default_lat: float | None = Field(default=None, alias="WEATHER_DEFAULT_LAT")
    weather_default_lon: float | None = Field(default=None, alias="WEATHER_DEFAULT_LON")

    journal_dir: Path = Field(default=Path("./data/journal"), alias="JOURNAL_DIR")
    weather_raw_payload_dir: Path = Field(
        default=Path("./data/raw/weather"),
        alias="WEATHER_RAW_PAYLOAD_DIR",
    )
    weather_journal_raw_payloads: bool = Field(
        default=False, alias="WEATHER_JOURNAL_RAW_PAYLOADS"
    )

    @field_validator(
        "openweather_api_key",
        "weather_timezone",
        "weather_default_city",
        "weather_default_lat",
        "weather_default_lon",
        mode="before",
    )
    @classmethod
    def empty_string_to_none(cls, value: Any) -> Any:
        """Treat empty env-string values as unset."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator("weather_timezone")
    @classmethod
    def validate_timezone(cls, value: str | None) -> str | None:
        if value is None:
            return None
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @model_validator(mode="after")
    def validate_ranges(self) -> Settings:
        """Validate numeric ranges and paired coordinate defaults."""
        if self.weather_timeout_seconds <= 0:
            raise ValueError("WEATHER_TIMEOUT_SECONDS must be > 0.")
        if not (1 <= self.weather_forecast_days <= 5):
            raise ValueError("WEATHER_FORECAST_DAYS must be between 1 and 5.")

        has_default_lat = self.weather_default_lat is not None
        has_default_lon = self.weather_default_lon is not None
        if has_default_lat != has_default_lon:
            raise ValueError("WEATHER_DEFAULT_LAT and WEATHER_DEFAULT_LON must be set together.")
        if has_default_lat and not (-90 <= self.weather_default_lat <= 90):
            raise ValueError("WEATHER_DEFAULT_LAT must be between -90 and 90.")
        if has_default_lon and not (-180 <= self.weather_default_lon <= 180):
            raise ValueError("WEATHER_DEFAULT_LON must be between -180 and 180.")
        return self

    @property
    def local_timezone(self) -> tzinfo | None:
        """Zone used for calendar days and clock strings; None means process-local."""
        if self.weather_timezone is None:
            return None
        return ZoneInfo(self.weather_timezone)

    def safe_summary(self) -> dict[str, Any]:
        """Return config summary safe for journaling (no credentials)."""
        return {
            "base_url": str(self.openweather_base_url),
            "credential_configured": bool(self.openweather_api_key),
            "units": self.weather_units,
            "timeout_seconds": self.weather_timeout_seconds,
            "timezone": self.weather_timezone or "local",
            "forecast_days": self.weather_forecast_days,
            "log_level": self.weather_log_level,
            "raw_journaling": self.weather_journal_raw_payloads,
        }


def load_settings() -> Settings:
    """Load and validate settings, raising ConfigurationError on failure."""
    try:
        settings = Settings()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Failed reading environment/.env: {exc}") from exc

    settings.journal_dir.mkdir(parents=True, exist_ok=True)
    settings.weather_raw_payload_dir.mkdir(parents=True, exist_ok=True)
    return settings
