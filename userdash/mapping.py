"""Shape backend records into flat rows for the dashboard tables."""

from __future__ import annotations

import json
from datetime import date, datetime, timezone, tzinfo
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .errors import ParseFailure
from .models import DailyAggregateRecord, PersonName, UserRecord


def parse_structured_name(value: Any) -> PersonName:
    """Decode a ``{"first": ..., "last": ...}`` name, given as an object or JSON text."""

    payload = value
    if isinstance(value, str):
        try:
            payload = json.loads(value)
        except ValueError as exc:
            raise ParseFailure(f"Name field is not valid JSON: {value!r}") from exc

    if not isinstance(payload, Mapping):
        raise ParseFailure(f"Structured name must be an object, got {type(payload).__name__}")

    missing = {"first", "last"} - payload.keys()
    if missing:
        raise ParseFailure(f"Structured name is missing {', '.join(sorted(missing))}")

    first, last = payload["first"], payload["last"]
    if not isinstance(first, str) or not isinstance(last, str):
        raise ParseFailure("Structured name parts must be strings")
    return PersonName(first=first, last=last)


def parse_timestamp(value: Any) -> datetime:
    """Interpret the assorted date encodings the daily record endpoint produces.

    ISO 8601 strings (with or without offset), plain ``YYYY-MM-DD`` dates and
    epoch seconds are accepted. Values without an offset are taken as UTC.
    """

    if isinstance(value, bool):
        raise ParseFailure("Date must not be a boolean")
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        cleaned = value.strip()
        if cleaned.endswith("Z"):
            cleaned = cleaned[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(cleaned)
        except ValueError as exc:
            raise ParseFailure(f"Unrecognised date value: {value!r}") from exc
    else:
        raise ParseFailure(f"Unrecognised date value: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_datetime(value: datetime, zone: tzinfo, pattern: str) -> str:
    return value.astimezone(zone).strftime(pattern)


def map_user_row(record: UserRecord, sequence_number: int) -> Dict[str, object]:
    row: Dict[str, object] = {
        "sequence_number": sequence_number,
        "id": record.uuid,
    }
    if isinstance(record.name, PersonName):
        row["first_name"] = record.name.first
        row["last_name"] = record.name.last
    else:
        row["name"] = record.name
    row.update(
        {
            "gender": record.gender,
            "age": record.age,
            "location": record.location,
        }
    )
    return row


def map_user_rows(records: Sequence[UserRecord]) -> List[Dict[str, object]]:
    """Number each record by its 1-based position in this batch and flatten it."""

    return [map_user_row(record, index + 1) for index, record in enumerate(records)]


def map_daily_record(
    record: DailyAggregateRecord,
    zone: tzinfo,
    date_format: str,
) -> Dict[str, object]:
    return {
        "id": record.id,
        "formatted_date": format_datetime(record.date, zone, date_format),
        "total_user": record.total_user,
        "male_count": record.male_count,
        "female_count": record.female_count,
        "male_avg_age": record.male_avg_age,
        "female_avg_age": record.female_avg_age,
    }


def map_daily_rows(
    record: Optional[DailyAggregateRecord],
    zone: tzinfo,
    date_format: str,
) -> List[Dict[str, object]]:
    """Wrap the latest snapshot in a list so it renders like any other table."""

    if record is None:
        return []
    return [map_daily_record(record, zone, date_format)]


__all__ = [
    "format_datetime",
    "map_daily_record",
    "map_daily_rows",
    "map_user_row",
    "map_user_rows",
    "parse_structured_name",
    "parse_timestamp",
]
