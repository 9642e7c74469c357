"""Typed models for lookup keys, normalized conditions and forecasts."""

from __future__ import annotations

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

COORDINATES_LABEL = "Your Location"


class LocationKey(BaseModel):
    """Subject of a lookup: either a place name or a coordinate pair."""

    model_config = ConfigDict(frozen=True)

    city: str | None = None
    lat: float | None = None
    lon: float | None = None

    @classmethod
    def by_city(cls, city: str) -> LocationKey:
        return cls(city=city)

    @classmethod
    def by_coords(cls, lat: float, lon: float) -> LocationKey:
        return cls(lat=lat, lon=lon)

    @field_validator("city")
    @classmethod
    def validate_city(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        if not text:
            raise ValueError("city must not be empty")
        return text

    @model_validator(mode="after")
    def validate_form(self) -> LocationKey:
        has_coords = self.lat is not None or self.lon is not None
        if self.city is not None:
            if has_coords:
                raise ValueError("Use either city or lat/lon, not both.")
            return self
        if self.lat is None or self.lon is None:
            raise ValueError("Missing location: provide a city or both latitude and longitude.")
        if not (-90 <= self.lat <= 90):
            raise ValueError(f"Invalid latitude {self.lat}; expected between -90 and 90.")
        if not (-180 <= self.lon <= 180):
            raise ValueError(f"Invalid longitude {self.lon}; expected between -180 and 180.")
        return self

    @property
    def is_city(self) -> bool:
        return self.city is not None

    @property
    def label(self) -> str:
        """Display name used when no provider name is available."""
        return self.city if self.city is not None else COORDINATES_LABEL

    def query_params(self) -> dict[str, str]:
        if self.city is not None:
            return {"q": self.city}
        return {"lat": f"{self.lat}", "lon": f"{self.lon}"}

    def describe(self) -> str:
        if self.city is not None:
            return self.city
        return f"({self.lat:.4f}, {self.lon:.4f})"


class CurrentConditions(BaseModel):
    """Normalized current conditions; every field except the forecast."""

    location: str
    country: str
    temperature: int
    feels_like: int
    condition: str
    description: str
    humidity: int
    wind_speed: int = Field(description="km/h")
    wind_direction: str
    visibility: int = Field(description="km")
    uv_index: int | None = Field(
        default=None, description="Not provided by the current-conditions endpoint"
    )
    pressure: int = Field(description="hPa")
    dew_point: int
    sunrise: str
    sunset: str


class DailyBucket(BaseModel):
    """Per-calendar-date accumulator used while aggregating forecast entries."""

    forecast_date: date
    timestamp: int
    highs: list[float] = Field(default_factory=list)
    lows: list[float] = Field(default_factory=list)
    weather_code: str

    def add_reading(self, high: float, low: float) -> None:
        self.highs.append(high)
        self.lows.append(low)


class ForecastDay(BaseModel):
    """Finalized one-day forecast summary."""

    model_config = ConfigDict(frozen=True)

    day: str
    high: int
    low: int
    condition: str
    icon: str


class WeatherSnapshot(CurrentConditions):
    """Canonical lookup output handed to the presentation layer.

    Every field is populated except `uv_index`, which stays None on real
    snapshots because the current-conditions endpoint does not report it.
    """

    forecast: list[ForecastDay] = Field(default_factory=list, max_length=5)
    is_placeholder: bool = False
    degraded_reason: str | None = None


class FetchFailure(BaseModel):
    """Classified reason a conditions fetch did not produce data."""

    category: Literal["configuration", "not_found", "auth", "provider"]
    message: str
    status_code: int | None = None
    body: str | None = None


class ConditionsResult(BaseModel):
    """Explicit success/failure result of the conditions fetch."""

    conditions: CurrentConditions | None = None
    failure: FetchFailure | None = None
    raw_payload: dict[str, Any] | None = None

    @model_validator(mode="after")
    def validate_outcome(self) -> ConditionsResult:
        if (self.conditions is None) == (self.failure is None):
            raise ValueError("ConditionsResult needs exactly one of conditions or failure.")
        return self

    @property
    def ok(self) -> bool:
        return self.conditions is not None


class ForecastResult(BaseModel):
    """Aggregated daily forecast plus the raw payload it came from."""

    days: list[ForecastDay] = Field(default_factory=list)
    raw_payload: dict[str, Any] | None = None


class LookupResult(BaseModel):
    """Final snapshot and the intermediate results it was assembled from."""

    location: LocationKey
    snapshot: WeatherSnapshot
    conditions: ConditionsResult
    forecast: ForecastResult | None = None
