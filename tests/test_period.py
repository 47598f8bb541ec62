from datetime import date, datetime, timedelta, timezone

import pytest

from smartcore.payroll_engine import PayPeriod, month_period, previous_month_period


@pytest.mark.parametrize(
    "reference, start, end",
    [
        (date(2024, 3, 15), date(2024, 2, 1), date(2024, 2, 29)),
        (date(2023, 3, 1), date(2023, 2, 1), date(2023, 2, 28)),
        (date(2024, 1, 1), date(2023, 12, 1), date(2023, 12, 31)),
        (date(2024, 1, 31), date(2023, 12, 1), date(2023, 12, 31)),
        (date(2024, 5, 31), date(2024, 4, 1), date(2024, 4, 30)),
        (date(2024, 12, 10), date(2024, 11, 1), date(2024, 11, 30)),
    ],
)
def test_previous_month(reference, start, end):
    assert previous_month_period(reference) == PayPeriod(start, end)


def test_aware_datetime_is_taken_in_utc():
    # 1 March 01:30 in UTC+3 is still 28 February in UTC
    ref = datetime(2024, 3, 1, 1, 30, tzinfo=timezone(timedelta(hours=3)))
    assert previous_month_period(ref) == PayPeriod(date(2024, 1, 1), date(2024, 1, 31))


def test_naive_datetime_uses_its_calendar_date():
    assert previous_month_period(datetime(2024, 3, 1, 0, 5)).end == date(2024, 2, 29)


def test_default_reference_is_now():
    p = previous_month_period()
    assert p.start.day == 1
    assert p.end + timedelta(days=1) == date(p.end.year + (p.end.month == 12), p.end.month % 12 + 1, 1)


def test_month_period_and_to_dict():
    p = month_period(2024, 2)
    assert p.to_dict() == {"start": "2024-02-01", "end": "2024-02-29"}
