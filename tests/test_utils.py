from datetime import datetime, timedelta, timezone

import pytest

from survey.core.utils import (
    backup_filename,
    format_timestamp_with_timezone,
    normalize_options,
    parse_selected_options,
    parse_timestamp,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        (["A", "B"], ["A", "B"]),
        ('["A", "B"]', ["A", "B"]),
        ("A, B", ["A", "B"]),
        ("A，B，A", ["A", "B"]),
        ("", []),
        (None, []),
    ],
)
def test_parse_selected_options_formats(raw, expected):
    assert parse_selected_options(raw) == expected


def test_parse_selected_options_rejects_bad_json():
    with pytest.raises(ValueError):
        parse_selected_options('["A",')
    with pytest.raises(ValueError):
        parse_selected_options('[{"a": 1}')


def test_normalize_options_drops_blanks_and_duplicates():
    assert normalize_options([" x ", "", None, "x", "y"]) == ["x", "y"]


def test_parse_timestamp_normalizes_to_naive_utc():
    assert parse_timestamp("2024-01-01T08:00:00Z") == datetime(2024, 1, 1, 8, 0, 0)
    assert parse_timestamp("2024-01-01T16:00:00+08:00") == datetime(2024, 1, 1, 8, 0, 0)
    assert parse_timestamp("2024-01-01 08:00:00") == datetime(2024, 1, 1, 8, 0, 0)
    assert parse_timestamp("") is None


def test_format_timestamp_with_timezone():
    assert format_timestamp_with_timezone(datetime(2024, 1, 1, 8, 0)) == "2024-01-01T08:00:00Z"
    aware = datetime(2024, 1, 1, 16, 0, tzinfo=timezone(timedelta(hours=8)))
    assert format_timestamp_with_timezone(aware) == "2024-01-01T08:00:00Z"
    assert format_timestamp_with_timezone(None) == ""


def test_backup_filename():
    assert backup_filename(datetime(2024, 3, 5, 7, 8, 9)) == "backup_2024-03-05T07-08-09.json"
