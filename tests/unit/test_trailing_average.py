"""Unit tests for the trailing three-month average"""

from care_finance.domain.models import ExpenseFigures, IncomeFigures
from care_finance.domain.trailing_average import trailing_average, trailing_average_figures
from care_finance.utils.date_utils import YearMonth

TARGET = YearMonth(2024, 4)


def test_explicit_zero_counts_as_data_point():
    history = {
        YearMonth(2024, 3): IncomeFigures(insurance_income=100),
        YearMonth(2024, 2): IncomeFigures(insurance_income=0),
        YearMonth(2024, 1): IncomeFigures(insurance_income=50),
    }
    assert trailing_average(history, "insurance_income", TARGET) == 50


def test_missing_months_count_as_zero():
    history = {YearMonth(2024, 2): IncomeFigures(insurance_income=90)}
    assert trailing_average(history, "insurance_income", TARGET) == 30


def test_no_records_returns_zero():
    assert trailing_average({}, "insurance_income", TARGET) == 0


def test_older_months_are_ignored():
    history = {YearMonth(2023, 12): IncomeFigures(insurance_income=900)}
    assert trailing_average(history, "insurance_income", TARGET) == 0


def test_average_rounds_half_up():
    history = {YearMonth(2024, 3): ExpenseFigures(rent=5), YearMonth(2024, 2): ExpenseFigures(rent=2)}
    # 7 / 3 = 2.33
    assert trailing_average(history, "rent", TARGET) == 2


def test_average_of_every_field():
    history = {
        YearMonth(2024, 3): ExpenseFigures(rent=300_000, utilities=30_000),
        YearMonth(2024, 2): ExpenseFigures(rent=300_000, utilities=24_000),
        YearMonth(2024, 1): ExpenseFigures(rent=300_000, utilities=27_000),
    }

    average = trailing_average_figures(ExpenseFigures, history, TARGET)

    assert average.rent == 300_000
    assert average.utilities == 27_000
    assert average.personnel_cost == 0
