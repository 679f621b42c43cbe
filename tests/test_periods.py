from datetime import date, timedelta

import pytest

from errors import InvalidRangeError, ValidationError
from periods import resolve_periods, week_start


def test_week_starts_on_sunday():
    # 2024-01-17 is a Wednesday
    assert week_start(date(2024, 1, 17)) == date(2024, 1, 14)
    assert week_start(date(2024, 1, 14)) == date(2024, 1, 14)
    assert week_start(date(2024, 1, 20)) == date(2024, 1, 14)


def test_weekly_periods():
    current, previous = resolve_periods("weekly", today=date(2024, 1, 17))

    assert (current.start, current.end) == (date(2024, 1, 14), date(2024, 1, 20))
    assert (previous.start, previous.end) == (date(2024, 1, 7), date(2024, 1, 13))


def test_monthly_periods_cover_calendar_months():
    current, previous = resolve_periods("monthly", today=date(2024, 3, 15))

    assert (current.start, current.end) == (date(2024, 3, 1), date(2024, 3, 31))
    assert (previous.start, previous.end) == (date(2024, 2, 1), date(2024, 2, 29))


def test_monthly_in_january_compares_with_previous_december():
    current, previous = resolve_periods("monthly", today=date(2024, 1, 5))

    assert (current.start, current.end) == (date(2024, 1, 1), date(2024, 1, 31))
    assert (previous.start, previous.end) == (date(2023, 12, 1), date(2023, 12, 31))


def test_yearly_periods():
    current, previous = resolve_periods("yearly", today=date(2024, 6, 1))

    assert (current.start, current.end) == (date(2024, 1, 1), date(2024, 12, 31))
    assert (previous.start, previous.end) == (date(2023, 1, 1), date(2023, 12, 31))


@pytest.mark.parametrize("analysis_type", ["weekly", "monthly", "yearly"])
@pytest.mark.parametrize("today", [date(2024, 1, 1), date(2024, 2, 29), date(2023, 12, 31), date(2025, 7, 19)])
def test_previous_period_ends_the_day_before_current(analysis_type, today):
    current, previous = resolve_periods(analysis_type, today=today)

    assert current.start <= today <= current.end
    assert previous.end < current.start
    assert previous.end + timedelta(days=1) == current.start


def test_weekly_periods_have_equal_length():
    current, previous = resolve_periods("weekly", today=date(2025, 7, 19))
    assert current.days == previous.days == 7


def test_custom_period_previous_window_has_same_span():
    current, previous = resolve_periods(
        "custom", start_date=date(2024, 1, 10), end_date=date(2024, 1, 20), today=date(2024, 5, 1)
    )

    assert (current.start, current.end) == (date(2024, 1, 10), date(2024, 1, 20))
    assert (previous.start, previous.end) == (date(2023, 12, 30), date(2024, 1, 9))
    assert current.days == previous.days == 11


def test_custom_period_defaults_to_today():
    today = date(2024, 5, 1)
    current, previous = resolve_periods("custom", today=today)

    assert (current.start, current.end) == (today, today)
    assert (previous.start, previous.end) == (date(2024, 4, 30), date(2024, 4, 30))


def test_custom_period_rejects_start_after_end():
    with pytest.raises(InvalidRangeError) as exc_info:
        resolve_periods("custom", start_date=date(2024, 2, 1), end_date=date(2024, 1, 1))

    assert exc_info.value.details == {"start_date": "2024-02-01", "end_date": "2024-01-01"}


def test_invalid_range_is_a_validation_error():
    assert issubclass(InvalidRangeError, ValidationError)


def test_unknown_analysis_type():
    with pytest.raises(ValidationError):
        resolve_periods("daily", today=date(2024, 1, 1))


def test_explicit_bounds_are_ignored_for_non_custom_types():
    current, _ = resolve_periods(
        "monthly", start_date=date(2020, 1, 1), end_date=date(2020, 1, 2), today=date(2024, 3, 15)
    )
    assert current.start == date(2024, 3, 1)


def test_period_string():
    current, _ = resolve_periods("monthly", today=date(2024, 3, 15))
    assert str(current) == "2024-03-01 to 2024-03-31"
