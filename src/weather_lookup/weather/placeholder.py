"""Fixed degraded-mode snapshot substituted when current conditions are unavailable."""

from __future__ import annotations

from .models import ForecastDay, LocationKey, WeatherSnapshot

PLACEHOLDER_DESCRIPTION = "Weather data temporarily unavailable"

PLACEHOLDER_FORECAST: tuple[ForecastDay, ...] = (
    ForecastDay(day="Today", high=27, low=22, condition="Partly Cloudy", icon="cloud"),
    ForecastDay(day="Tomorrow", high=26, low=21, condition="Sunny", icon="sun"),
    ForecastDay(day="Wednesday", high=24, low=19, condition="Rainy", icon="rain"),
    ForecastDay(day="Thursday", high=28, low=23, condition="Sunny", icon="sun"),
    ForecastDay(day="Friday", high=25, low=20, condition="Partly Cloudy", icon="cloud"),
)


def placeholder_snapshot(location: LocationKey, reason: str | None = None) -> WeatherSnapshot:
    """Build the canned snapshot labelled with the lookup's location."""
    return WeatherSnapshot(
        location=location.label,
        country="Unknown",
        temperature=25,
        feels_like=28,
        condition="Partly Cloudy",
        description=PLACEHOLDER_DESCRIPTION,
        humidity=65,
        wind_speed=10,
        wind_direction="NE",
        visibility=10,
        uv_index=5,
        pressure=1013,
        dew_point=18,
        sunrise="06:30",
        sunset="18:30",
        forecast=list(PLACEHOLDER_FORECAST),
        is_placeholder=True,
        degraded_reason=reason,
    )
