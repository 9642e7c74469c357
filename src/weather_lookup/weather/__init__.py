"""OpenWeatherMap lookups: conditions, daily forecast aggregation, fallback."""

from .base import WeatherProvider
from .models import (
    ConditionsResult,
    CurrentConditions,
    ForecastDay,
    ForecastResult,
    LocationKey,
    LookupResult,
    WeatherSnapshot,
)
from .openweather import OpenWeatherMapProvider
from .service import WeatherLookupService

__all__ = [
    "ConditionsResult",
    "CurrentConditions",
    "ForecastDay",
    "ForecastResult",
    "LocationKey",
    "LookupResult",
    "OpenWeatherMapProvider",
    "WeatherLookupService",
    "WeatherProvider",
    "WeatherSnapshot",
]
