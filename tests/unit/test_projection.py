"""Unit tests for the month status dispatcher"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from care_finance.domain.models import BillingRow, ExpenseFigures, FactoringTerms, IncomeFigures, MonthStatus
from care_finance.domain.projection import calculate_expense_by_status, calculate_income_by_status
from care_finance.utils.date_utils import BillingMonth, YearMonth

APRIL = YearMonth(2024, 4)
HISTORY_MONTHS = [YearMonth(2024, 1), YearMonth(2024, 2), YearMonth(2024, 3)]


@pytest.fixture
def income_history(data_source):
    for month in HISTORY_MONTHS:
        data_source.income[month] = IncomeFigures(
            insurance_income=300,
            other_business_income=60,
            representative_loan=120,
            long_term_loan=900,
        )
    return data_source


@pytest.fixture
def expense_history(data_source):
    for month in HISTORY_MONTHS:
        data_source.expense[month] = ExpenseFigures(rent=100_000, long_term_loan_repayment=5_000, payment_interest=800)
    return data_source


@pytest.mark.parametrize("calculate, figures", [(calculate_income_by_status, IncomeFigures), (calculate_expense_by_status, ExpenseFigures)])
def test_actual_without_record_is_all_zero(data_source, calculate, figures):
    result = calculate(data_source, 1, APRIL, MonthStatus.ACTUAL)
    assert result == figures.zeros()
    assert result.total() == 0


def test_actual_returns_stored_record(expense_history, equal_principal_loan):
    stored = ExpenseFigures(rent=123_456, long_term_loan_repayment=1)
    expense_history.expense[APRIL] = stored
    expense_history.loans = [equal_principal_loan]

    assert calculate_expense_by_status(expense_history, 1, APRIL, MonthStatus.ACTUAL) == stored


def test_prediction_income_uses_averages(income_history):
    income_history.billing = [
        BillingRow(BillingMonth(2024, 2), BillingMonth(2024, 2), "Tanaka", insurance_payment=500),
    ]

    income = calculate_income_by_status(income_history, 1, APRIL, MonthStatus.PREDICTION)

    assert income.insurance_income == 300  # billing is ignored in prediction
    assert income.other_business_income == 60
    assert income.representative_loan == 120  # no loan in the bucket, falls back to the average
    assert income.long_term_loan == 0  # always from the loan register


def test_forecast_income_prefers_billing(income_history):
    income_history.billing = [
        BillingRow(BillingMonth(2024, 2), BillingMonth(2024, 2), "Tanaka", insurance_payment=500),
    ]

    income = calculate_income_by_status(income_history, 1, APRIL, MonthStatus.FORECAST)

    assert income.insurance_income == 500
    assert income.user_burden_transfer == 0
    assert income.other_business_income == 60


def test_forecast_income_falls_back_when_billing_is_zero(income_history):
    income = calculate_income_by_status(income_history, 1, APRIL, MonthStatus.FORECAST)
    assert income.insurance_income == 300


def test_forecast_with_factoring_zeroes_insurance_then_falls_back(income_history):
    income_history.factoring = FactoringTerms()
    income_history.billing = [
        BillingRow(BillingMonth(2024, 4), BillingMonth(2024, 4), "Tanaka", insurance_payment=1_000_000),
    ]

    income = calculate_income_by_status(income_history, 1, APRIL, MonthStatus.FORECAST)

    assert income.factoring_income1 == 792_400
    assert income.insurance_income == 300  # factored projection gives 0, so the average applies


@pytest.mark.parametrize("status", [MonthStatus.FORECAST, MonthStatus.PREDICTION])
def test_new_borrowing_in_target_month(income_history, equal_principal_loan, status):
    income_history.loans = [replace(equal_principal_loan, initial_borrowing_date=date(2024, 4, 1))]

    income = calculate_income_by_status(income_history, 1, APRIL, status)

    assert income.long_term_loan == 1_200_000


def test_forecast_expense_uses_loan_engine(expense_history, equal_principal_loan):
    expense_history.loans = [replace(equal_principal_loan, annual_interest_rate=Decimal("1.200"))]

    expense = calculate_expense_by_status(expense_history, 1, APRIL, MonthStatus.FORECAST)

    assert expense.long_term_loan_repayment == 1_200
    assert expense.payment_interest == 1_196  # round(1,196,400 x 0.001)
    assert expense.rent == 100_000


def test_prediction_expense_keeps_loan_principal_only(expense_history, equal_principal_loan):
    expense_history.loans = [replace(equal_principal_loan, annual_interest_rate=Decimal("1.200"))]

    expense = calculate_expense_by_status(expense_history, 1, APRIL, MonthStatus.PREDICTION)

    assert expense.long_term_loan_repayment == 1_200
    assert expense.payment_interest == 800


def test_expense_without_loans_falls_back_to_average(expense_history):
    expense = calculate_expense_by_status(expense_history, 1, APRIL, MonthStatus.FORECAST)

    assert expense.long_term_loan_repayment == 5_000
    assert expense.payment_interest == 800


def test_projection_without_any_data_is_zero(data_source):
    for status in (MonthStatus.FORECAST, MonthStatus.PREDICTION):
        assert calculate_income_by_status(data_source, 1, APRIL, status).total() == 0
        assert calculate_expense_by_status(data_source, 1, APRIL, status).total() == 0
