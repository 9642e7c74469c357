"""Tests for OpenWeatherMap conditions normalization, error classification and forecast fetch."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from types import SimpleNamespace
from typing import Any

import httpx
import pytest

from weather_lookup.exceptions import (
    AuthenticationError,
    ConfigurationError,
    LocationNotFoundError,
    ProviderError,
)
from weather_lookup.weather.models import LocationKey
from weather_lookup.weather.openweather import OpenWeatherMapProvider

API_KEY = "owm-test-key-123"
TODAY = date(2026, 2, 24)
LONDON = LocationKey.by_city("London")


def _ts(day: date, hour: int, minute: int = 0) -> int:
    return int(datetime(day.year, day.month, day.day, hour, minute, tzinfo=UTC).timestamp())


def _make_settings(**overrides: Any) -> Any:
    defaults = {
        "openweather_api_key": API_KEY,
        "openweather_base_url": "https://api.openweathermap.org/data/2.5",
        "weather_units": "metric",
        "weather_timeout_seconds": 5.0,
        "weather_forecast_days": 5,
        "local_timezone": UTC,
    }
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def _make_provider(
    handler: Callable[[httpx.Request], httpx.Response],
    **settings_overrides: Any,
) -> OpenWeatherMapProvider:
    return OpenWeatherMapProvider(
        settings=_make_settings(**settings_overrides),
        logger=logging.getLogger("test_owm_provider"),
        transport=httpx.MockTransport(handler),
        now_provider=lambda: datetime(2026, 2, 24, 8, 0, tzinfo=UTC),
    )


def _conditions_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": "London",
        "dt": _ts(TODAY, 8),
        "sys": {"country": "GB", "sunrise": _ts(TODAY, 6, 15), "sunset": _ts(TODAY, 17, 45)},
        "main": {"temp": 30.4, "feels_like": 33.6, "humidity": 70, "pressure": 1012},
        "weather": [{"main": "Clouds", "description": "scattered clouds"}],
        "wind": {"speed": 5.0, "deg": 180},
        "visibility": 8500,
    }
    payload.update(overrides)
    return payload


def _forecast_payload() -> dict[str, Any]:
    entries = []
    for offset in range(6):
        day = TODAY + timedelta(days=offset)
        for hour, high, low in ((3, 18.0, 12.0), (12, 24.6, 15.0), (21, 20.0, 11.4)):
            entries.append(
                {
                    "dt": _ts(day, hour),
                    "main": {"temp_max": high + offset, "temp_min": low},
                    "weather": [{"main": "Rain" if offset % 2 else "Clear"}],
                }
            )
    return {"cod": "200", "cnt": len(entries), "list": entries}


class _Recorder:
    """Routes /weather and /forecast to canned responses, recording requests."""

    def __init__(
        self,
        weather: httpx.Response | None = None,
        forecast: httpx.Response | None = None,
    ) -> None:
        self.weather = weather or httpx.Response(200, json=_conditions_payload())
        self.forecast = forecast or httpx.Response(200, json=_forecast_payload())
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/weather"):
            return self.weather
        if request.url.path.endswith("/forecast"):
            return self.forecast
        return httpx.Response(500, text="unexpected path")


def test_conditions_are_normalized_to_metric_snapshot_fields() -> None:
    recorder = _Recorder()
    provider = _make_provider(recorder)

    conditions, raw = provider.fetch_conditions(LONDON)

    assert conditions.location == "London"
    assert conditions.country == "GB"
    assert conditions.temperature == 30
    assert conditions.feels_like == 34
    assert conditions.condition == "Partly Cloudy"
    assert conditions.description == "scattered clouds"
    assert conditions.humidity == 70
    assert conditions.wind_speed == 18
    assert conditions.wind_direction == "S"
    assert conditions.visibility == 8
    assert conditions.pressure == 1012
    assert conditions.dew_point == 24
    assert conditions.sunrise == "06:15"
    assert conditions.sunset == "17:45"
    assert conditions.uv_index is None
    assert raw["name"] == "London"


def test_city_request_uses_query_key_and_credential_params() -> None:
    recorder = _Recorder()
    provider = _make_provider(recorder)
    provider.fetch_conditions(LocationKey.by_city("São Paulo"))

    [request] = recorder.requests
    assert request.url.path == "/data/2.5/weather"
    assert request.url.params["q"] == "São Paulo"
    assert request.url.params["appid"] == API_KEY
    assert request.url.params["units"] == "metric"


def test_coordinate_request_uses_lat_lon_params() -> None:
    recorder = _Recorder()
    provider = _make_provider(recorder)
    provider.fetch_conditions(LocationKey.by_coords(8.95, 125.54))

    [request] = recorder.requests
    assert request.url.params["lat"] == "8.95"
    assert request.url.params["lon"] == "125.54"
    assert "q" not in request.url.params


@pytest.mark.parametrize("missing_key", [None, ""])
def test_missing_credential_fails_before_any_request(missing_key: str | None) -> None:
    recorder = _Recorder()
    provider = _make_provider(recorder, openweather_api_key=missing_key)

    with pytest.raises(ConfigurationError, match="OPENWEATHER_API_KEY"):
        provider.fetch_conditions(LONDON)
    assert recorder.requests == []


def test_city_not_found_is_classified() -> None:
    recorder = _Recorder(weather=httpx.Response(404, json={"cod": "404", "message": "city not found"}))
    provider = _make_provider(recorder)

    with pytest.raises(LocationNotFoundError, match="Nonexistentville"):
        provider.fetch_conditions(LocationKey.by_city("Nonexistentville"))


def test_not_found_for_coordinates_is_a_provider_error() -> None:
    recorder = _Recorder(weather=httpx.Response(404, text="nothing here"))
    provider = _make_provider(recorder)

    with pytest.raises(ProviderError) as exc_info:
        provider.fetch_conditions(LocationKey.by_coords(0.0, 0.0))
    assert exc_info.value.status_code == 404


def test_rejected_credential_is_classified() -> None:
    recorder = _Recorder(
        weather=httpx.Response(401, json={"cod": 401, "message": "Invalid API key."})
    )
    provider = _make_provider(recorder)

    with pytest.raises(AuthenticationError) as exc_info:
        provider.fetch_conditions(LONDON)
    assert exc_info.value.status_code == 401


def test_other_status_carries_code_and_body() -> None:
    recorder = _Recorder(weather=httpx.Response(503, text="upstream unavailable"))
    provider = _make_provider(recorder)

    with pytest.raises(ProviderError) as exc_info:
        provider.fetch_conditions(LONDON)
    assert exc_info.value.status_code == 503
    assert exc_info.value.body == "upstream unavailable"
    assert exc_info.value.category == "http"


def test_transport_failure_is_a_network_provider_error() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = _make_provider(_handler)
    with pytest.raises(ProviderError) as exc_info:
        provider.fetch_conditions(LONDON)
    assert exc_info.value.category == "network"
    assert exc_info.value.status_code is None


def test_non_json_body_is_malformed() -> None:
    recorder = _Recorder(weather=httpx.Response(200, text="<html>oops</html>"))
    provider = _make_provider(recorder)

    with pytest.raises(ProviderError, match="non-JSON") as exc_info:
        provider.fetch_conditions(LONDON)
    assert exc_info.value.category == "malformed"


def test_missing_required_field_is_malformed() -> None:
    payload = _conditions_payload()
    del payload["main"]["feels_like"]
    recorder = _Recorder(weather=httpx.Response(200, json=payload))
    provider = _make_provider(recorder)

    with pytest.raises(ProviderError, match="main.feels_like"):
        provider.fetch_conditions(LONDON)


def test_optional_fields_fall_back() -> None:
    payload = _conditions_payload(wind={"speed": 0.0}, sys={"sunrise": 0, "sunset": 0})
    del payload["name"]
    recorder = _Recorder(weather=httpx.Response(200, json=payload))
    provider = _make_provider(recorder)

    conditions, _ = provider.fetch_conditions(LocationKey.by_coords(1.0, 2.0))
    assert conditions.location == "Your Location"
    assert conditions.country == "Unknown"
    assert conditions.wind_direction == "N"
    assert conditions.sunrise == "00:00"


def test_unmapped_weather_code_passes_through() -> None:
    payload = _conditions_payload(weather=[{"main": "Haze", "description": "haze"}])
    provider = _make_provider(_Recorder(weather=httpx.Response(200, json=payload)))

    conditions, _ = provider.fetch_conditions(LONDON)
    assert conditions.condition == "Haze"


def test_lookup_conditions_returns_failure_result_instead_of_raising() -> None:
    recorder = _Recorder(weather=httpx.Response(500, text="boom"))
    provider = _make_provider(recorder)

    result = provider.lookup_conditions(LONDON)
    assert not result.ok
    assert result.failure is not None
    assert result.failure.category == "provider"
    assert result.failure.status_code == 500
    assert result.failure.body == "boom"


def test_lookup_conditions_classifies_each_error_type() -> None:
    not_found = _make_provider(_Recorder(weather=httpx.Response(404, text="")))
    auth = _make_provider(_Recorder(weather=httpx.Response(401, text="")))
    no_key = _make_provider(_Recorder(), openweather_api_key=None)

    assert not_found.lookup_conditions(LONDON).failure.category == "not_found"
    assert auth.lookup_conditions(LONDON).failure.category == "auth"
    assert no_key.lookup_conditions(LONDON).failure.category == "configuration"


def test_forecast_is_aggregated_into_five_days() -> None:
    provider = _make_provider(_Recorder())

    result = provider.fetch_forecast(LONDON)

    assert [d.day for d in result.days] == [
        "Today",
        "Tomorrow",
        "Thursday",
        "Friday",
        "Saturday",
    ]
    today = result.days[0]
    assert (today.high, today.low, today.condition, today.icon) == (25, 11, "Sunny", "sun")
    tomorrow = result.days[1]
    assert (tomorrow.high, tomorrow.condition, tomorrow.icon) == (26, "Rainy", "rain")
    assert result.raw_payload is not None


@pytest.mark.parametrize("status", [401, 404, 500])
def test_forecast_non_success_yields_empty_forecast(status: int) -> None:
    provider = _make_provider(_Recorder(forecast=httpx.Response(status, text="nope")))
    result = provider.fetch_forecast(LONDON)
    assert result.days == []
    assert result.raw_payload is None


def test_forecast_transport_failure_yields_empty_forecast() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    provider = _make_provider(_handler)
    assert provider.fetch_forecast(LONDON).days == []


def test_forecast_without_entries_is_empty_not_an_error() -> None:
    provider = _make_provider(
        _Recorder(forecast=httpx.Response(200, json={"cod": "200", "list": []}))
    )
    result = provider.fetch_forecast(LONDON)
    assert result.days == []
    assert result.raw_payload == {"cod": "200", "list": []}


def test_request_logging_redacts_credential(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="test_owm_provider")
    provider = _make_provider(_Recorder())

    provider.fetch_conditions(LONDON)

    messages = [r.getMessage() for r in caplog.records if r.name == "test_owm_provider"]
    assert messages
    assert any("appid=[REDACTED]" in message for message in messages)
    assert all(API_KEY not in message for message in messages)


def test_provider_closes_client_as_context_manager() -> None:
    with _make_provider(_Recorder()) as provider:
        provider.fetch_conditions(LONDON)
    assert provider._client.is_closed


def test_non_finite_conditions_value_is_malformed() -> None:
    body = json.dumps(_conditions_payload(wind={"speed": math.nan, "deg": 90})).encode()
    recorder = _Recorder(
        weather=httpx.Response(
            200, content=body, headers={"Content-Type": "application/json"}
        )
    )
    provider = _make_provider(recorder)

    with pytest.raises(ProviderError, match="wind.speed") as exc_info:
        provider.fetch_conditions(LONDON)
    assert exc_info.value.category == "malformed"

    result = provider.lookup_conditions(LONDON)
    assert result.failure is not None
    assert result.failure.category == "provider"


def test_out_of_range_sunset_is_malformed() -> None:
    payload = _conditions_payload()
    payload["sys"]["sunset"] = 10**20
    provider = _make_provider(_Recorder(weather=httpx.Response(200, json=payload)))

    with pytest.raises(ProviderError, match="sys.sunset") as exc_info:
        provider.fetch_conditions(LONDON)
    assert exc_info.value.category == "malformed"


def test_forecast_without_credential_is_empty_and_sends_nothing() -> None:
    recorder = _Recorder()
    provider = _make_provider(recorder, openweather_api_key=None)

    result = provider.fetch_forecast(LONDON)

    assert result.days == []
    assert result.raw_payload is None
    assert recorder.requests == []
