"""Lookup orchestration: conditions, then forecast, with placeholder fallback."""

from __future__ import annotations

import logging

from .base import WeatherProvider
from .models import LocationKey, LookupResult, WeatherSnapshot
from .placeholder import placeholder_snapshot


class WeatherLookupService:
    """Combines the conditions fetch and forecast aggregation into one snapshot.

    A failed conditions fetch is fatal for the lookup and produces the
    placeholder snapshot; the forecast is only requested once conditions
    succeeded, and an empty forecast is accepted as-is.
    """

    def __init__(self, provider: WeatherProvider, logger: logging.Logger) -> None:
        self.provider = provider
        self.logger = logger

    def lookup(self, location: LocationKey) -> WeatherSnapshot:
        return self.lookup_detailed(location).snapshot

    def lookup_detailed(self, location: LocationKey) -> LookupResult:
        conditions_result = self.provider.lookup_conditions(location)
        if conditions_result.failure is not None:
            failure = conditions_result.failure
            self.logger.error(
                "Conditions fetch failed for %s (%s, status=%s): %s",
                location.describe(),
                failure.category,
                failure.status_code,
                failure.message,
                extra={
                    "location": location.describe(),
                    "status_code": failure.status_code,
                    "category": failure.category,
                },
            )
            self.logger.warning(
                "Using placeholder weather data for %s",
                location.describe(),
                extra={"location": location.describe()},
            )
            return LookupResult(
                location=location,
                snapshot=placeholder_snapshot(location, reason=failure.message),
                conditions=conditions_result,
            )

        forecast_result = self.provider.fetch_forecast(location)
        if not forecast_result.days:
            self.logger.warning("No forecast days available for %s", location.describe())

        snapshot = WeatherSnapshot(
            **conditions_result.conditions.model_dump(),
            forecast=forecast_result.days,
        )
        return LookupResult(
            location=location,
            snapshot=snapshot,
            conditions=conditions_result,
            forecast=forecast_result,
        )
