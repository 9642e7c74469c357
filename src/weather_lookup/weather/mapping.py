"""Canonical vocabulary for provider weather codes, wind bearings and units."""

from __future__ import annotations

import math
from datetime import datetime, tzinfo

CONDITION_LABELS: dict[str, str] = {
    "Clear": "Sunny",
    "Clouds": "Partly Cloudy",
    "Rain": "Rainy",
    "Drizzle": "Light Rain",
    "Thunderstorm": "Thunderstorm",
    "Snow": "Snowy",
    "Mist": "Misty",
    "Fog": "Foggy",
}

ICON_KEYS: dict[str, str] = {
    "Clear": "sun",
    "Clouds": "cloud",
    "Rain": "rain",
    "Drizzle": "rain",
    "Thunderstorm": "rain",
    "Snow": "cloud",
    "Mist": "cloud",
    "Fog": "cloud",
}
DEFAULT_ICON = "cloud"

COMPASS_POINTS: tuple[str, ...] = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)
COMPASS_SECTOR_DEGREES = 22.5

MS_TO_KMH = 3.6


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 going toward +infinity."""
    return math.floor(value + 0.5)


def canonical_condition(code: str) -> str:
    """Map a provider weather group to its display label; unknown codes pass through."""
    return CONDITION_LABELS.get(code, code)


def canonical_icon(code: str) -> str:
    return ICON_KEYS.get(code, DEFAULT_ICON)


def compass_direction(degrees: float) -> str:
    """Resolve a bearing in [0, 360) to one of 16 compass labels."""
    index = round_half_up(degrees / COMPASS_SECTOR_DEGREES) % len(COMPASS_POINTS)
    return COMPASS_POINTS[index]


def wind_speed_kmh(meters_per_second: float) -> int:
    return round_half_up(meters_per_second * MS_TO_KMH)


def visibility_km(meters: float) -> int:
    return int(meters) // 1000


def dew_point(temperature: float, humidity: float) -> int:
    # Approximation; good to within ~1C above 50% relative humidity.
    return round_half_up(temperature - ((100 - humidity) / 5))


def format_clock(epoch_seconds: int, tz: tzinfo | None = None) -> str:
    """Format epoch seconds as a 24-hour HH:MM string in the given zone."""
    return datetime.fromtimestamp(epoch_seconds, tz).strftime("%H:%M")
