"""Aggregation of 3-hourly forecast entries into per-day summaries."""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta, tzinfo
from typing import Any

from .mapping import canonical_condition, canonical_icon, round_half_up
from .models import DailyBucket, ForecastDay

MAX_FORECAST_DAYS = 5

_WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def day_label(forecast_date: date, today: date) -> str:
    """Return `Today`, `Tomorrow`, or the full English weekday name."""
    if forecast_date == today:
        return "Today"
    if forecast_date == today + timedelta(days=1):
        return "Tomorrow"
    return _WEEKDAY_NAMES[forecast_date.weekday()]


def _parse_entry(entry: Any) -> tuple[int, float, float, str] | None:
    """Extract (timestamp, high, low, weather code) or None when malformed."""
    if not isinstance(entry, dict):
        return None
    timestamp = entry.get("dt")
    if not _is_number(timestamp):
        return None

    main = entry.get("main")
    if not isinstance(main, dict):
        return None
    high = main.get("temp_max")
    low = main.get("temp_min")
    if not _is_number(high) or not _is_number(low):
        return None

    weather = entry.get("weather")
    if not isinstance(weather, list) or not weather or not isinstance(weather[0], dict):
        return None
    code = weather[0].get("main")
    if not isinstance(code, str) or not code.strip():
        return None
    return int(timestamp), float(high), float(low), code.strip()


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def bucket_entries(entries: list[Any], tz: tzinfo | None = None) -> dict[date, DailyBucket]:
    """Group entries by local calendar date, in first-seen order.

    The first entry seen for a date fixes the bucket's timestamp and weather
    code; later entries only add high/low readings.
    """
    buckets: dict[date, DailyBucket] = {}
    for entry in entries:
        parsed = _parse_entry(entry)
        if parsed is None:
            continue
        timestamp, high, low, code = parsed
        try:
            forecast_date = datetime.fromtimestamp(timestamp, tz).date()
        except (OverflowError, OSError, ValueError):
            continue

        bucket = buckets.get(forecast_date)
        if bucket is None:
            buckets[forecast_date] = DailyBucket(
                forecast_date=forecast_date,
                timestamp=timestamp,
                highs=[high],
                lows=[low],
                weather_code=code,
            )
        else:
            bucket.add_reading(high, low)
    return buckets


def reduce_buckets(
    buckets: dict[date, DailyBucket],
    today: date,
    max_days: int = MAX_FORECAST_DAYS,
) -> list[ForecastDay]:
    """Reduce buckets to ForecastDay summaries, keeping the first `max_days`."""
    days: list[ForecastDay] = []
    for bucket in list(buckets.values())[:max_days]:
        days.append(
            ForecastDay(
                day=day_label(bucket.forecast_date, today),
                high=round_half_up(max(bucket.highs)),
                low=round_half_up(min(bucket.lows)),
                condition=canonical_condition(bucket.weather_code),
                icon=canonical_icon(bucket.weather_code),
            )
        )
    return days


def aggregate_forecast(
    payload: Any,
    *,
    today: date,
    tz: tzinfo | None = None,
    max_days: int = MAX_FORECAST_DAYS,
) -> list[ForecastDay]:
    """Aggregate a provider forecast payload into at most `max_days` days."""
    if not isinstance(payload, dict):
        return []
    entries = payload.get("list")
    if not isinstance(entries, list):
        return []
    return reduce_buckets(bucket_entries(entries, tz), today, max_days=max_days)
