from datetime import date, datetime

import pytest

from common.note_rules.dates import (
    day_window,
    format_sort_timestamp,
    is_modified_field,
    looks_like_date_value,
    parse_date_like,
    parse_day_count,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2026-02-12", datetime(2026, 2, 12)),
        ("'2026-02-12'", datetime(2026, 2, 12)),
        ("2026/02/12", datetime(2026, 2, 12)),
        ("2026-02-12 09:15", datetime(2026, 2, 12, 9, 15)),
        ("2026-02-12T09:15:30", datetime(2026, 2, 12, 9, 15, 30)),
        ("20260212", datetime(2026, 2, 12)),
        ("Feb 12, 2026", datetime(2026, 2, 12)),
        ("12 February 2026", datetime(2026, 2, 12)),
        (date(2026, 2, 12), datetime(2026, 2, 12)),
        (datetime(2026, 2, 12, 7, 0), datetime(2026, 2, 12, 7, 0)),
    ],
)
def test_parse_date_like(raw, expected):
    assert parse_date_like(raw) == expected


@pytest.mark.parametrize("raw", ["", None, "someday", "2026-02-30", "My Task"])
def test_parse_date_like_rejects_non_dates(raw):
    assert parse_date_like(raw) is None


def test_epoch_values_are_optional():
    millis = str(int(datetime(2026, 2, 12, 9, 0).timestamp() * 1000))
    assert parse_date_like(millis) == datetime(2026, 2, 12, 9, 0)
    assert parse_date_like(millis, allow_epoch=False) is None


def test_utc_values_convert_to_local_wall_clock():
    parsed = parse_date_like("2026-02-12T14:45:00Z")
    assert parsed is not None
    assert parsed.tzinfo is None


def test_looks_like_date_value():
    assert looks_like_date_value("2026-02-12 is the day")
    assert looks_like_date_value('"2026/02/12"')
    assert looks_like_date_value("Thu T09:30")
    assert not looks_like_date_value("priority 1")
    assert not looks_like_date_value("2026-02/12")


def test_is_modified_field():
    assert is_modified_field("lastModified")
    assert is_modified_field("date_updated")
    assert not is_modified_field("scheduled")


@pytest.mark.parametrize(
    "raw, expected",
    [("7", 7.0), ("7 days", 7.0), ("1.5", 1.5), ("-2", 0.0), ("", None), ("soon", None)],
)
def test_parse_day_count(raw, expected):
    assert parse_day_count(raw) == expected


def test_day_window_runs_from_start_of_today_to_end_of_last_day():
    start, end = day_window(datetime(2026, 2, 12, 10, 30), 7)
    assert start == datetime(2026, 2, 12)
    assert end.date() == date(2026, 2, 19)
    assert (end.hour, end.minute, end.second) == (23, 59, 59)


def test_format_sort_timestamp_is_fixed_width():
    assert format_sort_timestamp(datetime(2026, 2, 9, 7, 5, 3)) == "2026-02-09-07-05-03"
