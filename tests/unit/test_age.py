from __future__ import annotations

import pytest

from dicom_search.age import DAYS_PER_YEAR, parse_age, parse_gender


def test_parse_age_years_is_integer() -> None:
    assert parse_age("035Y") == 35
    assert isinstance(parse_age("035Y"), int)


def test_parse_age_converts_months_weeks_days() -> None:
    assert parse_age("024M") == 2.0
    assert parse_age("010W") == pytest.approx(0.1923, abs=1e-4)
    assert parse_age("100D") == pytest.approx(0.2809, abs=1e-4)


def test_parse_age_days_use_356_day_year() -> None:
    assert DAYS_PER_YEAR == 356
    assert parse_age("356D") == 1.0
    assert parse_age("365D") != 1.0


@pytest.mark.parametrize("raw", ["035X", "035y", "035", "", "ABCY", None])
def test_parse_age_unrecognized_values_return_none(raw: object) -> None:
    assert parse_age(raw) is None


def test_parse_gender_takes_first_character() -> None:
    assert parse_gender("M") == "M"
    assert parse_gender("FEMALE") == "F"
    assert parse_gender("") == ""
    assert parse_gender(None) == ""
