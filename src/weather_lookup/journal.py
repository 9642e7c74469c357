"""Append-only JSONL journal of lookup outcomes and raw provider payloads."""

from __future__ import annotations

import json
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

from .exceptions import JournalError
from .redaction import sanitize_for_logging
from .weather.models import LookupResult


def _json_default(value: Any) -> Any:
    """Fallback serializer for non-JSON native values."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC).isoformat()
        return value.astimezone(UTC).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JournalWriter:
    """Writes event records to JSONL and raw payload snapshots to disk."""

    def __init__(self, journal_dir: Path, raw_payload_dir: Path, session_id: str) -> None:
        self.journal_dir = journal_dir
        self.raw_payload_dir = raw_payload_dir
        self.session_id = session_id
        self.journal_dir.mkdir(parents=True, exist_ok=True)
        self.raw_payload_dir.mkdir(parents=True, exist_ok=True)
        self.events_path = self.journal_dir / f"{datetime.now(UTC):%Y%m%d}.jsonl"

    def write_event(
        self,
        event_type: str,
        payload: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Append a single event record to the JSONL journal."""
        record: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(),
            "event_type": event_type,
            "session_id": self.session_id,
            "payload": sanitize_for_logging(payload),
            "metadata": sanitize_for_logging(metadata or {}),
        }
        try:
            with self.events_path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(record, default=_json_default))
                fh.write("\n")
        except (OSError, TypeError, ValueError) as exc:
            raise JournalError(f"Failed writing event journal: {exc}") from exc

    def write_raw_snapshot(self, name: str, payload: Any) -> Path:
        """Write full raw payload snapshot and return file path."""
        timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
        safe_name = "".join(ch if ch.isalnum() or ch in {"-", "_"} else "_" for ch in name)
        output_path = self.raw_payload_dir / f"{timestamp}_{self.session_id}_{safe_name}.json"
        try:
            sanitized_payload = sanitize_for_logging(payload)
            with output_path.open("w", encoding="utf-8") as fh:
                json.dump(
                    sanitized_payload,
                    fh,
                    ensure_ascii=False,
                    indent=2,
                    default=_json_default,
                )
                fh.write("\n")
        except (OSError, TypeError, ValueError) as exc:
            raise JournalError(f"Failed writing raw payload snapshot: {exc}") from exc
        return output_path

    def record_lookup(self, result: LookupResult, *, include_raw: bool = False) -> None:
        """Journal the outcome of one lookup, optionally with raw provider payloads."""
        metadata = {"location": result.location.describe()}
        if include_raw:
            raw_paths: dict[str, str | None] = {
                "conditions_raw_path": None,
                "forecast_raw_path": None,
            }
            if result.conditions.raw_payload is not None:
                raw_paths["conditions_raw_path"] = str(
                    self.write_raw_snapshot("owm_weather", result.conditions.raw_payload)
                )
            if result.forecast is not None and result.forecast.raw_payload is not None:
                raw_paths["forecast_raw_path"] = str(
                    self.write_raw_snapshot("owm_forecast", result.forecast.raw_payload)
                )
            self.write_event("lookup_raw_snapshot", payload=raw_paths, metadata=metadata)

        failure = result.conditions.failure
        if failure is not None:
            self.write_event(
                "lookup_degraded",
                payload=failure.model_dump(mode="json"),
                metadata=metadata,
            )
            return
        self.write_event(
            "lookup_success",
            payload={
                **result.snapshot.model_dump(mode="json"),
                "forecast_days": len(result.snapshot.forecast),
            },
            metadata=metadata,
        )
