"""Tests for the DateRange value object and date parsing."""

from datetime import date, datetime

import pytest

from shared.domain.value_objects import DateRange, parse_date


def test_adjacent_ranges_do_not_overlap():
    first = DateRange(date(2024, 6, 1), date(2024, 6, 5))
    second = DateRange(date(2024, 6, 5), date(2024, 6, 8))

    assert not first.overlaps_with(second)
    assert not second.overlaps_with(first)


def test_partial_and_nested_ranges_overlap():
    stay = DateRange(date(2024, 6, 1), date(2024, 6, 5))

    assert stay.overlaps_with(DateRange(date(2024, 6, 4), date(2024, 6, 8)))
    assert stay.overlaps_with(DateRange(date(2024, 5, 30), date(2024, 6, 2)))
    assert stay.overlaps_with(DateRange(date(2024, 6, 2), date(2024, 6, 3)))
    assert stay.overlaps_with(DateRange(date(2024, 5, 1), date(2024, 7, 1)))


@pytest.mark.parametrize(
    "start, end",
    [
        (date(2024, 6, 5), date(2024, 6, 5)),
        (date(2024, 6, 6), date(2024, 6, 5)),
    ],
)
def test_empty_or_inverted_range_is_rejected(start, end):
    with pytest.raises(ValueError):
        DateRange(start, end)


def test_nights_contains_and_str():
    stay = DateRange(date(2024, 6, 1), date(2024, 6, 5))

    assert len(stay) == 4
    assert stay.contains(date(2024, 6, 1))
    assert not stay.contains(date(2024, 6, 5))
    assert str(stay) == "[2024-06-01, 2024-06-05)"


def test_overlap_requires_date_range():
    with pytest.raises(TypeError):
        DateRange(date(2024, 6, 1), date(2024, 6, 5)).overlaps_with((date(2024, 6, 1), date(2024, 6, 2)))


def test_parse_date_accepts_iso_strings_and_dates():
    assert parse_date("2024-06-01") == date(2024, 6, 1)
    assert parse_date(" 2024-06-01 ") == date(2024, 6, 1)
    assert parse_date(date(2024, 6, 1)) == date(2024, 6, 1)
    assert parse_date(datetime(2024, 6, 1, 15, 30)) == date(2024, 6, 1)


@pytest.mark.parametrize(
    "value",
    ["2024-02-30", "next tuesday", "", None, 20240601, "20240601", "2024-W22-6", "2024-06-01T10:00"],
)
def test_parse_date_rejects_non_dates(value):
    with pytest.raises(ValueError):
        parse_date(value)
