from datetime import date, datetime

import pytest

from utils.import_pipeline.normalizers import (
    is_valid_date,
    is_valid_grade,
    normalize_date,
    normalize_grade,
    split_grade,
)


@pytest.mark.parametrize("raw", ["12-15-13.5", "12/15/13.5", "121513.5"])
def test_grade_encodings_share_one_canonical_form(raw):
    assert normalize_grade(raw) == "12-15-13.5"


def test_concatenated_grade_without_fraction():
    assert normalize_grade("121513") == "12-15-13"


def test_grade_surrounding_whitespace_is_ignored():
    assert normalize_grade("  08-10-09  ") == "08-10-09"


@pytest.mark.parametrize("raw, expected", [(15, "15"), (14.5, "14.5"), (12.0, "12"), ("17", "17"), ("9.25", "9.25")])
def test_plain_numbers_are_single_scores(raw, expected):
    assert normalize_grade(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "12-15", "1-15-13", "12-5-13", "12-15-13-14", "12_15_13", "", "12-15/13"])
def test_invalid_grades_are_rejected(raw):
    with pytest.raises(ValueError):
        normalize_grade(raw)
    assert not is_valid_grade(raw)


@pytest.mark.parametrize("raw", ["12-15-13.5", "12/15/13.5", "121513.5", "15"])
def test_grade_normalization_is_idempotent(raw):
    once = normalize_grade(raw)
    assert normalize_grade(once) == once


def test_booleans_are_not_grades():
    assert not is_valid_grade(True)


@pytest.mark.parametrize("raw", ["15/03/2024", "15-03-2024", "2024-03-15", "2024/03/15"])
def test_date_layouts_share_one_canonical_form(raw):
    assert normalize_date(raw) == "15/03/2024"


def test_date_objects_are_formatted():
    assert normalize_date(date(2010, 1, 5)) == "05/01/2010"
    assert normalize_date(datetime(2010, 1, 5, 8, 30)) == "05/01/2010"


@pytest.mark.parametrize("raw", ["31/02/2024", "2024-13-01", "00/01/2024", "2023-02-29"])
def test_impossible_calendar_dates_are_rejected(raw):
    with pytest.raises(ValueError):
        normalize_date(raw)


@pytest.mark.parametrize("raw", ["15.03.2024", "3/15/2024", "March 15 2024", "20240315"])
def test_unsupported_date_layouts_are_rejected(raw):
    assert not is_valid_date(raw)


@pytest.mark.parametrize("raw", ["15/03-2024", "15-03/2024", "2024/03-15"])
def test_mixed_date_separators_are_accepted(raw):
    assert normalize_date(raw) == "15/03/2024"


def test_leap_day_is_accepted():
    assert normalize_date("29/02/2024") == "29/02/2024"


def test_date_normalization_is_idempotent():
    once = normalize_date("2024-03-15")
    assert normalize_date(once) == once


@pytest.mark.parametrize("raw, expected", [
    ("12-15-13.5", (12.0, 15.0, 13.5)),
    ("12-15", (12.0, 15.0, 13.5)),
    ("15", (15.0, None, 15.0)),
    ("", (None, None, None)),
    (None, (None, None, None)),
])
def test_split_grade(raw, expected):
    assert split_grade(raw) == expected


def test_split_grade_zero_average_falls_back_to_mean():
    assert split_grade("10-14-0") == (10.0, 14.0, 12.0)
