"""Provider interface for current conditions and forecast lookups."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..exceptions import (
    AuthenticationError,
    ConfigurationError,
    LocationNotFoundError,
    ProviderError,
    WeatherLookupError,
)
from .models import ConditionsResult, CurrentConditions, FetchFailure, ForecastResult, LocationKey


class WeatherProvider(ABC):
    """Base contract for weather providers used by the lookup service."""

    @abstractmethod
    def fetch_conditions(
        self, location: LocationKey
    ) -> tuple[CurrentConditions, dict[str, Any]]:
        """Fetch and normalize current conditions, raising a classified error on failure."""

    @abstractmethod
    def fetch_forecast(self, location: LocationKey) -> ForecastResult:
        """Fetch and aggregate the daily forecast; failures yield an empty result."""

    @abstractmethod
    def close(self) -> None:
        """Release provider resources."""

    def lookup_conditions(self, location: LocationKey) -> ConditionsResult:
        """Run `fetch_conditions` and fold classified errors into a result value."""
        try:
            conditions, raw_payload = self.fetch_conditions(location)
        except WeatherLookupError as exc:
            return ConditionsResult(failure=failure_from_error(exc))
        return ConditionsResult(conditions=conditions, raw_payload=raw_payload)

    def __enter__(self) -> WeatherProvider:
        return self

    def __exit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        self.close()


def failure_from_error(exc: WeatherLookupError) -> FetchFailure:
    body: str | None = None
    if isinstance(exc, ConfigurationError):
        category = "configuration"
    elif isinstance(exc, LocationNotFoundError):
        category = "not_found"
    elif isinstance(exc, AuthenticationError):
        category = "auth"
    else:
        category = "provider"
        if isinstance(exc, ProviderError):
            body = exc.body
    return FetchFailure(
        category=category,
        message=str(exc),
        status_code=exc.status_code,
        body=body,
    )
