"""OpenWeatherMap (api.openweathermap.org/data/2.5) provider implementation."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import datetime
from typing import Any

import httpx

from ..config import Settings
from ..exceptions import (
    AuthenticationError,
    ConfigurationError,
    LocationNotFoundError,
    ProviderError,
)
from ..redaction import sanitize_text
from .base import WeatherProvider
from .forecast import aggregate_forecast
from .mapping import (
    canonical_condition,
    compass_direction,
    dew_point,
    format_clock,
    round_half_up,
    visibility_km,
    wind_speed_kmh,
)
from .models import CurrentConditions, ForecastResult, LocationKey

_AUTH_REJECTED_STATUSES = frozenset({401, 403})


class OpenWeatherMapProvider(WeatherProvider):
    """Fetches current conditions and 5-day/3-hour forecasts from OpenWeatherMap."""

    provider_name = "openweathermap"

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        *,
        transport: httpx.BaseTransport | None = None,
        now_provider: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self._tz = settings.local_timezone
        self._now_provider = now_provider or (lambda: datetime.now(self._tz))
        self._client = httpx.Client(
            base_url=str(settings.openweather_base_url),
            timeout=settings.weather_timeout_seconds,
            headers={
                "Accept": "application/json",
                "User-Agent": "weather-lookup/0.1",
            },
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def fetch_conditions(
        self, location: LocationKey
    ) -> tuple[CurrentConditions, dict[str, Any]]:
        """Fetch current conditions for a city or coordinate pair."""
        api_key = self._require_api_key()
        response = self._get("/weather", location, api_key=api_key, context="conditions fetch")

        status = response.status_code
        if status == 404 and location.is_city:
            raise LocationNotFoundError(f"City not found: {location.city}", status_code=status)
        if status in _AUTH_REJECTED_STATUSES:
            raise AuthenticationError(
                f"OpenWeatherMap rejected the API key (HTTP {status}).",
                status_code=status,
            )
        if not response.is_success:
            body = sanitize_text(response.text[:300])
            raise ProviderError(
                f"OpenWeatherMap conditions fetch failed with status {status}: {body}",
                status_code=status,
                body=body,
            )

        payload = self._json_body(response, context="conditions fetch")
        return self.normalize_conditions(payload, location), payload

    def fetch_forecast(self, location: LocationKey) -> ForecastResult:
        """Fetch the 3-hourly forecast and aggregate it into daily summaries.

        Every failure here is non-fatal: the caller gets an empty forecast and
        a warning is logged.
        """
        try:
            api_key = self._require_api_key()
            response = self._get("/forecast", location, api_key=api_key, context="forecast fetch")
        except (ConfigurationError, ProviderError) as exc:
            self.logger.warning("Forecast unavailable, continuing without it: %s", exc)
            return ForecastResult()

        if not response.is_success:
            self.logger.warning(
                "Forecast fetch returned HTTP %d; continuing without forecast.",
                response.status_code,
            )
            return ForecastResult()

        try:
            payload = self._json_body(response, context="forecast fetch")
        except ProviderError as exc:
            self.logger.warning("Forecast unavailable, continuing without it: %s", exc)
            return ForecastResult()

        days = aggregate_forecast(
            payload,
            today=self._now_provider().date(),
            tz=self._tz,
            max_days=self.settings.weather_forecast_days,
        )
        self.logger.info("Aggregated %d forecast day(s) for %s", len(days), location.describe())
        return ForecastResult(days=days, raw_payload=payload)

    def normalize_conditions(
        self, payload: dict[str, Any], location: LocationKey
    ) -> CurrentConditions:
        """Convert a raw `/weather` payload into canonical metric conditions."""
        main = self._require_dict(payload, "main")
        wind = self._require_dict(payload, "wind")
        sys_info = self._require_dict(payload, "sys")

        weather = payload.get("weather")
        if not isinstance(weather, list) or not weather or not isinstance(weather[0], dict):
            raise ProviderError(
                "OpenWeatherMap conditions payload missing 'weather' entries.",
                category="malformed",
            )
        code = self._as_str(weather[0].get("main"))
        if code is None:
            raise ProviderError(
                "OpenWeatherMap conditions payload missing 'weather[0].main'.",
                category="malformed",
            )
        condition = canonical_condition(code)

        temperature = self._require_number(main, "temp", field_name="main.temp")
        humidity = self._require_number(main, "humidity", field_name="main.humidity")
        # Calm winds are reported without a bearing.
        bearing = self._as_float(wind.get("deg")) or 0.0

        return CurrentConditions(
            location=self._as_str(payload.get("name")) or location.label,
            country=self._as_str(sys_info.get("country")) or "Unknown",
            temperature=round_half_up(temperature),
            feels_like=round_half_up(
                self._require_number(main, "feels_like", field_name="main.feels_like")
            ),
            condition=condition,
            description=self._as_str(weather[0].get("description")) or condition,
            humidity=round_half_up(humidity),
            wind_speed=wind_speed_kmh(
                self._require_number(wind, "speed", field_name="wind.speed")
            ),
            wind_direction=compass_direction(bearing),
            visibility=visibility_km(
                self._require_number(payload, "visibility", field_name="visibility")
            ),
            uv_index=None,
            pressure=round_half_up(
                self._require_number(main, "pressure", field_name="main.pressure")
            ),
            dew_point=dew_point(temperature, humidity),
            sunrise=self._require_clock(sys_info, "sunrise", field_name="sys.sunrise"),
            sunset=self._require_clock(sys_info, "sunset", field_name="sys.sunset"),
        )

    def _require_api_key(self) -> str:
        api_key = self.settings.openweather_api_key
        if not api_key:
            raise ConfigurationError(
                "OpenWeatherMap API key is not configured; set OPENWEATHER_API_KEY."
            )
        return api_key

    def _get(
        self,
        endpoint: str,
        location: LocationKey,
        *,
        api_key: str,
        context: str,
    ) -> httpx.Response:
        params = {
            **location.query_params(),
            "appid": api_key,
            "units": self.settings.weather_units,
        }
        try:
            response = self._client.get(endpoint, params=params)
        except httpx.HTTPError as exc:
            raise ProviderError(
                f"OpenWeatherMap {context} request failed: {sanitize_text(str(exc))}",
                category="network",
            ) from exc

        self.logger.info(
            "OpenWeatherMap %s %s -> HTTP %d",
            context,
            sanitize_text(str(response.request.url)),
            response.status_code,
            extra={"location": location.describe(), "status_code": response.status_code},
        )
        return response

    @staticmethod
    def _json_body(response: httpx.Response, context: str) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderError(
                f"OpenWeatherMap {context} returned non-JSON response.",
                status_code=response.status_code,
                category="malformed",
            ) from exc
        if not isinstance(payload, dict):
            raise ProviderError(
                f"OpenWeatherMap {context} returned unexpected payload type "
                f"{type(payload).__name__}.",
                status_code=response.status_code,
                category="malformed",
            )
        return payload

    @staticmethod
    def _require_dict(payload: dict[str, Any], key: str) -> dict[str, Any]:
        value = payload.get(key)
        if not isinstance(value, dict):
            raise ProviderError(
                f"OpenWeatherMap conditions payload missing '{key}' object.",
                category="malformed",
            )
        return value

    @classmethod
    def _require_number(cls, payload: dict[str, Any], key: str, *, field_name: str) -> float:
        value = cls._as_float(payload.get(key))
        if value is None:
            raise ProviderError(
                f"OpenWeatherMap conditions payload missing numeric '{field_name}'.",
                category="malformed",
            )
        return value

    def _require_clock(self, payload: dict[str, Any], key: str, *, field_name: str) -> str:
        epoch = self._require_number(payload, key, field_name=field_name)
        try:
            return format_clock(int(epoch), self._tz)
        except (OverflowError, OSError, ValueError) as exc:
            raise ProviderError(
                f"OpenWeatherMap conditions payload has out-of-range '{field_name}'.",
                category="malformed",
            ) from exc

    @staticmethod
    def _as_str(value: Any) -> str | None:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    @staticmethod
    def _as_float(value: Any) -> float | None:
        if isinstance(value, bool):
            return None
        if not isinstance(value, (int, float)):
            return None
        try:
            number = float(value)
        except OverflowError:
            return None
        return number if math.isfinite(number) else None
