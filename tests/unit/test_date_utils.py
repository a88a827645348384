"""Unit tests for month value types"""

from datetime import date

import pytest

from care_finance.domain.exceptions import InvalidYearMonthError
from care_finance.utils.date_utils import BillingMonth, YearMonth, month_window, parse_billing_month, previous_months


def test_year_month_parse_and_format():
    month = YearMonth.parse("2024-03")
    assert (month.year, month.month) == (2024, 3)
    assert str(month) == "2024-03"


@pytest.mark.parametrize("raw", ["2024-13", "2024-00", "202403", "2024/03", "", "24-03"])
def test_year_month_rejects_malformed(raw):
    with pytest.raises(InvalidYearMonthError):
        YearMonth.parse(raw)


def test_shift_crosses_year_boundary():
    assert YearMonth(2024, 1).previous() == YearMonth(2023, 12)
    assert YearMonth(2024, 11).shift(3) == YearMonth(2025, 2)
    assert YearMonth(2024, 3).previous(14) == YearMonth(2023, 1)


def test_day_clamps_to_month_end():
    assert YearMonth(2024, 2).day(31) == date(2024, 2, 29)
    assert YearMonth(2023, 2).day(30) == date(2023, 2, 28)
    assert YearMonth(2024, 4).day(15) == date(2024, 4, 15)
    assert YearMonth(2024, 4).last_day == date(2024, 4, 30)


def test_billing_month_conversion():
    billing = YearMonth(2024, 7).to_billing()
    assert str(billing) == "202407"
    assert billing.to_year_month() == YearMonth(2024, 7)
    assert BillingMonth.parse("202407") == billing


def test_parse_billing_month_accepts_both_forms():
    assert parse_billing_month("2024-07") == BillingMonth(2024, 7)
    assert parse_billing_month("202407") == BillingMonth(2024, 7)
    with pytest.raises(InvalidYearMonthError):
        parse_billing_month("202413")


def test_previous_months_most_recent_first():
    assert previous_months(YearMonth(2024, 2)) == [YearMonth(2024, 1), YearMonth(2023, 12), YearMonth(2023, 11)]


def test_month_window_oldest_first():
    assert month_window(YearMonth(2024, 2), 3) == [YearMonth(2023, 12), YearMonth(2024, 1), YearMonth(2024, 2)]
    assert month_window(YearMonth(2024, 2), 0) == []
