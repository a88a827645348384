"""Unit tests for the loan amortization engine"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

from care_finance.domain.amortization import (
    build_schedule,
    calculate_loan_repayment,
    estimate_total_months,
    installment_payment,
    level_payment,
)
from care_finance.domain.models import LoanTerms
from care_finance.utils.date_utils import YearMonth


def test_equal_principal_zero_interest(equal_principal_loan: LoanTerms):
    """Third month leaves 1,200,000 - 3 x 1,200 outstanding"""
    repayment = calculate_loan_repayment(equal_principal_loan, YearMonth(2024, 3))

    assert repayment.principal_amount == 1_200
    assert repayment.interest_amount == 0
    assert repayment.repayment_amount == 1_200
    assert repayment.remaining_principal == 1_196_400


def test_equal_principal_interest_declines(equal_principal_loan: LoanTerms):
    loan = replace(equal_principal_loan, annual_interest_rate=Decimal("1.200"))  # 0.1% per month

    first = calculate_loan_repayment(loan, YearMonth(2024, 1))
    second = calculate_loan_repayment(loan, YearMonth(2024, 2))

    assert first.interest_amount == 1_200  # 1,200,000 x 0.001
    assert second.interest_amount == 1_199  # round(1,198,800 x 0.001)
    assert first.principal_amount == second.principal_amount == 1_200


def test_target_before_first_repayment_is_skipped(equal_principal_loan: LoanTerms):
    assert calculate_loan_repayment(equal_principal_loan, YearMonth(2023, 12)) is None


def test_repaid_loan_contributes_zero(equal_principal_loan: LoanTerms):
    loan = replace(equal_principal_loan, initial_borrowing_amount=3_000)

    last = calculate_loan_repayment(loan, YearMonth(2024, 3))
    after = calculate_loan_repayment(loan, YearMonth(2024, 4))

    assert last.principal_amount == 600  # capped at the remaining balance
    assert last.remaining_principal == 0
    assert after.repayment_amount == 0
    assert after.remaining_principal == 0


def test_estimated_term_and_level_payment(equal_installment_loan: LoanTerms):
    assert estimate_total_months(equal_installment_loan) == 10
    assert installment_payment(equal_installment_loan) == level_payment(1_000_000, equal_installment_loan.monthly_rate, 10)


def test_level_payment_zero_rate_is_straight_division():
    assert level_payment(1_000_000, 0.0, 3) == 333_333
    assert level_payment(1_000_000, 0.01, 0) == 0


def test_level_payment_stable_across_months(equal_installment_loan: LoanTerms):
    """Total payment stays constant while the principal/interest split shifts"""
    payment = installment_payment(equal_installment_loan)
    schedule = build_schedule(equal_installment_loan, 9)

    assert all(item.repayment.repayment_amount == payment for item in schedule)
    interests = [item.repayment.interest_amount for item in schedule]
    assert interests == sorted(interests, reverse=True)
    assert interests[0] == 1_250  # 1,000,000 x 0.00125


def test_schedule_due_dates_clamped(equal_installment_loan: LoanTerms):
    schedule = build_schedule(equal_installment_loan, 3)

    assert [item.due_date for item in schedule] == [date(2024, 4, 30), date(2024, 5, 31), date(2024, 6, 30)]


def test_schedule_stops_when_repaid(equal_principal_loan: LoanTerms):
    loan = replace(equal_principal_loan, initial_borrowing_amount=2_400)
    assert len(build_schedule(loan, 12)) == 2


def test_non_positive_principal_has_no_installment(equal_installment_loan: LoanTerms):
    loan = replace(equal_installment_loan, repayment_principal=0)

    assert estimate_total_months(loan) == 0
    assert installment_payment(loan) == 0
    repayment = calculate_loan_repayment(loan, YearMonth(2024, 4))
    assert repayment.principal_amount == 0
    assert repayment.interest_amount == 1_250
