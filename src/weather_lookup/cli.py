"""CLI: look up current weather and a 5-day forecast, journal the result."""

from __future__ import annotations

import argparse
import sys
import uuid

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import Settings, load_settings
from .exceptions import ConfigurationError, JournalError
from .journal import JournalWriter
from .log_setup import setup_logger
from .weather.models import LocationKey, WeatherSnapshot
from .weather.openweather import OpenWeatherMapProvider
from .weather.service import WeatherLookupService

_ICON_GLYPHS = {"sun": "☀", "cloud": "☁", "rain": "☂"}


class CliInputError(ValueError):
    """Raised when command-line location input is invalid."""


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse weather lookup CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Look up current conditions and a 5-day forecast from OpenWeatherMap."
    )
    parser.add_argument("--city", type=str, default=None, help="City name, e.g. 'London, UK'.")
    parser.add_argument("--lat", type=float, default=None, help="Latitude for coordinate lookup.")
    parser.add_argument("--lon", type=float, default=None, help="Longitude for coordinate lookup.")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the snapshot as JSON instead of tables.",
    )
    return parser.parse_args(argv)


def resolve_location(args: argparse.Namespace, settings: Settings) -> LocationKey:
    """Build the lookup key from CLI flags, falling back to configured defaults."""
    has_coords = args.lat is not None or args.lon is not None
    if args.city is not None and has_coords:
        raise CliInputError("Use either --city or --lat/--lon, not both.")

    try:
        if args.city is not None:
            return LocationKey.by_city(args.city)
        if has_coords:
            return LocationKey(lat=args.lat, lon=args.lon)
        if settings.weather_default_city:
            return LocationKey.by_city(settings.weather_default_city)
        if settings.weather_default_lat is not None and settings.weather_default_lon is not None:
            return LocationKey.by_coords(
                settings.weather_default_lat, settings.weather_default_lon
            )
    except ValidationError as exc:
        messages = "; ".join(str(err.get("msg", "")) for err in exc.errors())
        raise CliInputError(f"Invalid location input: {messages}") from exc

    raise CliInputError(
        "Missing location input: pass --city or --lat/--lon, or set "
        "WEATHER_DEFAULT_CITY or WEATHER_DEFAULT_LAT/LON."
    )


def render_snapshot(console: Console, snapshot: WeatherSnapshot) -> None:
    """Print conditions and forecast tables for one snapshot."""
    heading = escape(f"{snapshot.location}, {snapshot.country}")
    if snapshot.is_placeholder:
        console.print(f"[bold yellow]{heading} (placeholder data)[/bold yellow]")
        if snapshot.degraded_reason:
            console.print(f"Reason: {escape(snapshot.degraded_reason)}")
    else:
        console.print(f"[bold]{heading}[/bold]")

    conditions = Table(title=f"{snapshot.temperature}°C  {snapshot.condition}")
    conditions.add_column("Metric")
    conditions.add_column("Value", overflow="fold")
    conditions.add_row("Description", escape(snapshot.description))
    conditions.add_row("Feels like", f"{snapshot.feels_like}°C")
    conditions.add_row("Humidity", f"{snapshot.humidity}%")
    conditions.add_row("Wind", f"{snapshot.wind_speed} km/h {snapshot.wind_direction}")
    conditions.add_row("Visibility", f"{snapshot.visibility} km")
    uv_index = str(snapshot.uv_index) if snapshot.uv_index is not None else "n/a"
    conditions.add_row("UV index", uv_index)
    conditions.add_row("Pressure", f"{snapshot.pressure} hPa")
    conditions.add_row("Dew point", f"{snapshot.dew_point}°C")
    conditions.add_row("Sunrise", snapshot.sunrise)
    conditions.add_row("Sunset", snapshot.sunset)
    console.print(conditions)

    if not snapshot.forecast:
        console.print("No forecast available.")
        return

    forecast = Table(title="Forecast")
    forecast.add_column("Day")
    forecast.add_column("")
    forecast.add_column("High")
    forecast.add_column("Low")
    forecast.add_column("Condition", overflow="fold")
    for day in snapshot.forecast:
        forecast.add_row(
            day.day,
            _ICON_GLYPHS.get(day.icon, ""),
            f"{day.high}°",
            f"{day.low}°",
            day.condition,
        )
    console.print(forecast)


def main(argv: list[str] | None = None) -> int:
    """Run one weather lookup."""
    args = parse_args(argv)
    logger = setup_logger()
    console = Console()
    session_id = uuid.uuid4().hex[:12]
    journal: JournalWriter | None = None

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        logger.error("Configuration failure: %s", exc)
        return 2
    logger.setLevel(settings.weather_log_level)

    try:
        journal = JournalWriter(
            journal_dir=settings.journal_dir,
            raw_payload_dir=settings.weather_raw_payload_dir,
            session_id=session_id,
        )
        journal.write_event(
            event_type="lookup_startup",
            payload=settings.safe_summary(),
            metadata={"session_id": session_id},
        )
    except JournalError as exc:
        logger.error("Failed to initialize lookup journal: %s", exc)
        return 3

    exit_code = 0
    try:
        location = resolve_location(args, settings)
        journal.write_event(
            "lookup_request_start",
            payload=location.model_dump(mode="json"),
            metadata={"session_id": session_id},
        )

        with OpenWeatherMapProvider(settings=settings, logger=logger) as provider:
            result = WeatherLookupService(provider=provider, logger=logger).lookup_detailed(
                location
            )

        journal.record_lookup(result, include_raw=settings.weather_journal_raw_payloads)

        snapshot = result.snapshot
        if args.json:
            console.print_json(snapshot.model_dump_json())
        else:
            render_snapshot(console, snapshot)
    except CliInputError as exc:
        exit_code = 4
        logger.error("Invalid lookup input: %s", exc)
    except JournalError as exc:
        exit_code = 3
        logger.error("Lookup journal failure: %s", exc)
    except Exception as exc:  # pragma: no cover
        exit_code = 99
        logger.exception("Unexpected weather lookup failure: %s", exc)
        try:
            journal.write_event(
                "lookup_failure_unhandled",
                payload={"error": str(exc), "type": type(exc).__name__},
                metadata={"session_id": session_id},
            )
        except JournalError:
            logger.error("Failed to write lookup_failure_unhandled event.")
    finally:
        if journal is not None:
            try:
                journal.write_event(
                    "lookup_shutdown",
                    payload={"exit_code": exit_code},
                    metadata={"session_id": session_id},
                )
            except JournalError:
                logger.error("Failed to write lookup_shutdown event.")

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
