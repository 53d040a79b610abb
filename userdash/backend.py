"""Adapters for the response shapes served by different backend releases.

Two releases of the users API are in the wild:

``structured``
    ``name`` is a JSON-encoded ``{"first", "last"}`` object (older releases send
    it as a string, newer ones as a nested object) and the total user count is
    the length of ``data``.

``flat``
    ``name`` is a single display string and the total count is reported in
    ``meta.total``.

:func:`adapter_for` picks an adapter from configuration; ``auto`` inspects
each payload and dispatches to the matching adapter.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Union

from .errors import ParseFailure
from .mapping import parse_structured_name, parse_timestamp
from .models import BackendVersion, DailyAggregateRecord, PersonName, UserPage, UserRecord


def _require_mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ParseFailure(f"{what} must be a JSON object")
    return value


def _data_list(payload: Any) -> List[Any]:
    body = _require_mapping(payload, "User list response")
    if "data" not in body:
        raise ParseFailure("User list response is missing 'data'")
    data = body["data"]
    if not isinstance(data, list):
        raise ParseFailure("User list 'data' must be an array")
    return data


def _as_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ParseFailure(f"'{field}' must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ParseFailure(f"'{field}' must be an integer, got {value!r}") from exc
    if isinstance(value, float) and value != number:
        raise ParseFailure(f"'{field}' must be an integer, got {value!r}")
    return number


def _as_optional_int(value: Any, field: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return _as_int(value, field)


def _as_optional_float(value: Any, field: str) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ParseFailure(f"'{field}' must be a number")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ParseFailure(f"'{field}' must be a number, got {value!r}") from exc


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


class ResponseAdapter:
    """Translate raw backend JSON into typed records."""

    version: BackendVersion

    def parse_name(self, raw: Any) -> Union[PersonName, str]:
        raise NotImplementedError

    def count_total(self, payload: Mapping[str, Any], records: List[UserRecord]) -> int:
        raise NotImplementedError

    def parse_user(self, raw: Any) -> UserRecord:
        entry = _require_mapping(raw, "User record")
        try:
            uuid = entry["uuid"]
        except KeyError as exc:
            raise ParseFailure("User record is missing 'uuid'") from exc
        if not isinstance(uuid, str) or not uuid:
            raise ParseFailure("User record 'uuid' must be a non-empty string")
        if "name" not in entry:
            raise ParseFailure(f"User record {uuid} is missing 'name'")

        return UserRecord(
            uuid=uuid,
            name=self.parse_name(entry["name"]),
            gender=_as_text(entry.get("gender")),
            age=_as_optional_int(entry.get("age"), "age"),
            location=_as_text(entry.get("location")),
        )

    def parse_users(self, payload: Any) -> UserPage:
        data = _data_list(payload)
        records = [self.parse_user(item) for item in data]
        return UserPage(
            records=tuple(records),
            total=self.count_total(payload, records),
            version=self.version,
        )

    def parse_daily_record(self, payload: Any) -> Optional[DailyAggregateRecord]:
        body = _require_mapping(payload, "Daily record response")
        if "data" not in body:
            raise ParseFailure("Daily record response is missing 'data'")
        data = body["data"]
        if isinstance(data, list):
            if not data:
                return None
            if len(data) > 1:
                raise ParseFailure("Daily record response must contain a single record")
            data = data[0]
        if data is None:
            return None

        entry = _require_mapping(data, "Daily record")
        if "date" not in entry:
            raise ParseFailure("Daily record is missing 'date'")
        record_id = entry.get("uuid", entry.get("id"))
        total_user = entry.get("total_user")

        return DailyAggregateRecord(
            id=str(record_id) if record_id is not None else None,
            date=parse_timestamp(entry["date"]),
            male_count=_as_int(entry.get("male_count", 0), "male_count"),
            female_count=_as_int(entry.get("female_count", 0), "female_count"),
            male_avg_age=_as_optional_float(entry.get("male_avg_age"), "male_avg_age"),
            female_avg_age=_as_optional_float(entry.get("female_avg_age"), "female_avg_age"),
            total_user=_as_int(total_user, "total_user") if total_user is not None else None,
        )


class StructuredNameAdapter(ResponseAdapter):
    version = BackendVersion.STRUCTURED

    def parse_name(self, raw: Any) -> PersonName:
        return parse_structured_name(raw)

    def count_total(self, payload: Mapping[str, Any], records: List[UserRecord]) -> int:
        return len(records)


class FlatNameAdapter(ResponseAdapter):
    version = BackendVersion.FLAT

    def parse_name(self, raw: Any) -> str:
        if not isinstance(raw, str):
            raise ParseFailure(f"Flat name must be a string, got {type(raw).__name__}")
        return raw

    def count_total(self, payload: Mapping[str, Any], records: List[UserRecord]) -> int:
        meta = payload.get("meta")
        if meta is None:
            return len(records)
        meta = _require_mapping(meta, "User list 'meta'")
        if meta.get("total") is None:
            return len(records)
        total = _as_int(meta["total"], "meta.total")
        if total < 0:
            raise ParseFailure("'meta.total' must not be negative")
        return total


_ADAPTERS: Dict[BackendVersion, ResponseAdapter] = {
    BackendVersion.STRUCTURED: StructuredNameAdapter(),
    BackendVersion.FLAT: FlatNameAdapter(),
}


def _looks_structured(name: Any) -> bool:
    if isinstance(name, Mapping):
        return True
    return isinstance(name, str) and name.lstrip().startswith("{")


def detect_version(payload: Any) -> BackendVersion:
    """Guess which backend release produced a user list payload."""

    data = _data_list(payload)
    for item in data:
        if isinstance(item, Mapping) and "name" in item:
            if _looks_structured(item["name"]):
                return BackendVersion.STRUCTURED
            return BackendVersion.FLAT
    meta = payload.get("meta")
    if isinstance(meta, Mapping) and "total" in meta:
        return BackendVersion.FLAT
    return BackendVersion.STRUCTURED


class AutoDetectAdapter(ResponseAdapter):
    """Dispatch each user list payload to the adapter matching its shape."""

    def parse_users(self, payload: Any) -> UserPage:
        return _ADAPTERS[detect_version(payload)].parse_users(payload)

    def parse_daily_record(self, payload: Any) -> Optional[DailyAggregateRecord]:
        return _ADAPTERS[BackendVersion.STRUCTURED].parse_daily_record(payload)


def adapter_for(version: Union[str, BackendVersion]) -> ResponseAdapter:
    """Return the adapter configured for ``version`` (``auto`` detects per payload)."""

    if isinstance(version, BackendVersion):
        return _ADAPTERS[version]
    cleaned = str(version).strip().lower()
    if cleaned == "auto":
        return AutoDetectAdapter()
    try:
        return _ADAPTERS[BackendVersion(cleaned)]
    except ValueError as exc:
        raise ValueError(f"Unknown backend version '{version}'") from exc


__all__ = [
    "AutoDetectAdapter",
    "FlatNameAdapter",
    "ResponseAdapter",
    "StructuredNameAdapter",
    "adapter_for",
    "detect_version",
]
