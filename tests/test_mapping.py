from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from userdash.backend import StructuredNameAdapter
from userdash.errors import ParseFailure
from userdash.mapping import (
    map_daily_rows,
    map_user_rows,
    parse_structured_name,
    parse_timestamp,
)
from userdash.models import DailyAggregateRecord, PersonName, UserRecord


def test_single_user_maps_to_flat_row() -> None:
    page = StructuredNameAdapter().parse_users(
        {
            "data": [
                {
                    "uuid": "a",
                    "name": {"first": "Jo", "last": "Doe"},
                    "gender": "F",
                    "age": 30,
                    "location": "NY",
                }
            ]
        }
    )

    assert map_user_rows(page.records) == [
        {
            "sequence_number": 1,
            "id": "a",
            "first_name": "Jo",
            "last_name": "Doe",
            "gender": "F",
            "age": 30,
            "location": "NY",
        }
    ]


def test_sequence_numbers_follow_batch_position() -> None:
    records = [
        UserRecord(uuid=f"id-{index}", name=f"User {index}", gender="M", age=20 + index, location="X")
        for index in range(5)
    ]

    rows = map_user_rows(records)

    assert [row["sequence_number"] for row in rows] == [1, 2, 3, 4, 5]
    assert [row["id"] for row in rows] == [record.uuid for record in records]
    assert rows[0]["name"] == "User 0"
    assert "first_name" not in rows[0]


def test_sequence_numbers_restart_for_each_batch() -> None:
    records = [
        UserRecord(uuid="x", name="X", gender="F", age=1, location=""),
        UserRecord(uuid="y", name="Y", gender="F", age=2, location=""),
    ]

    assert map_user_rows(records[1:])[0]["sequence_number"] == 1


def test_structured_name_accepts_json_text() -> None:
    assert parse_structured_name('{"first": "Jo", "last": "Doe"}') == PersonName("Jo", "Doe")


@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        '["Jo", "Doe"]',
        '{"first": "Jo"}',
        {"first": "Jo", "last": 3},
        42,
    ],
)
def test_malformed_structured_name_is_rejected(raw) -> None:
    with pytest.raises(ParseFailure):
        parse_structured_name(raw)


def test_parse_timestamp_variants() -> None:
    expected = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    assert parse_timestamp("2024-03-01T12:00:00Z") == expected
    assert parse_timestamp("2024-03-01T12:00:00") == expected
    assert parse_timestamp("2024-03-01T13:00:00+01:00") == expected
    assert parse_timestamp(expected.timestamp()) == expected
    assert parse_timestamp("2024-03-01") == datetime(2024, 3, 1, tzinfo=timezone.utc)

    with pytest.raises(ParseFailure):
        parse_timestamp("yesterday")
    with pytest.raises(ParseFailure):
        parse_timestamp(None)


def test_daily_record_is_converted_to_configured_timezone() -> None:
    record = DailyAggregateRecord(
        id="rec-1",
        date=datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
        male_count=3,
        female_count=4,
        male_avg_age=40.0,
        female_avg_age=None,
    )

    rows = map_daily_rows(record, ZoneInfo("Asia/Tokyo"), "%Y-%m-%d %H:%M %Z")

    assert rows == [
        {
            "id": "rec-1",
            "formatted_date": "2024-03-01 21:00 JST",
            "total_user": None,
            "male_count": 3,
            "female_count": 4,
            "male_avg_age": 40.0,
            "female_avg_age": None,
        }
    ]


def test_missing_daily_record_renders_no_rows() -> None:
    assert map_daily_rows(None, ZoneInfo("UTC"), "%Y") == []
