"""Unit tests for active-loan resolution and aggregation"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

from care_finance.domain.loan_resolver import aggregate_loans, filter_active_loans, is_loan_effective, resolve_loan_totals
from care_finance.domain.models import LoanCategory, LoanTerms
from care_finance.utils.date_utils import YearMonth


def test_inactive_or_future_loans_are_not_effective(equal_principal_loan: LoanTerms):
    as_of = date(2024, 3, 31)

    assert is_loan_effective(equal_principal_loan, as_of)
    assert not is_loan_effective(replace(equal_principal_loan, is_active=False), as_of)
    assert not is_loan_effective(replace(equal_principal_loan, effective_from=date(2024, 4, 1)), as_of)
    assert is_loan_effective(replace(equal_principal_loan, effective_from=as_of), as_of)


def test_filter_active_loans(equal_principal_loan: LoanTerms, equal_installment_loan: LoanTerms):
    loans = [equal_principal_loan, replace(equal_installment_loan, is_active=False)]
    assert filter_active_loans(loans, date(2024, 6, 30)) == [equal_principal_loan]


def test_principal_goes_to_category_buckets(equal_principal_loan: LoanTerms):
    short_term = replace(equal_principal_loan, category=LoanCategory.SHORT_TERM, repayment_principal=5_000)

    totals = aggregate_loans([equal_principal_loan, short_term], YearMonth(2024, 2))

    assert totals.repayment_by_category[LoanCategory.LONG_TERM] == 1_200
    assert totals.repayment_by_category[LoanCategory.SHORT_TERM] == 5_000
    assert totals.repayment_by_category[LoanCategory.REPRESENTATIVE] == 0


def test_interest_of_every_loan_is_summed(equal_principal_loan: LoanTerms):
    first = replace(equal_principal_loan, annual_interest_rate=Decimal("1.200"))
    second = replace(first, category=LoanCategory.REPRESENTATIVE)

    totals = aggregate_loans([first, second], YearMonth(2024, 1))

    assert totals.payment_interest == 2_400


def test_new_borrowing_in_origination_month(equal_principal_loan: LoanTerms):
    """Loan originated in December adds its full amount as new borrowing but repays nothing yet"""
    totals = aggregate_loans([equal_principal_loan], YearMonth(2023, 12))

    assert totals.new_borrowing_by_category[LoanCategory.LONG_TERM] == 1_200_000
    assert totals.repayment_by_category[LoanCategory.LONG_TERM] == 0
    assert totals.payment_interest == 0


def test_loan_before_first_repayment_adds_nothing(equal_installment_loan: LoanTerms):
    totals = aggregate_loans([equal_installment_loan], YearMonth(2024, 1))

    assert sum(totals.repayment_by_category.values()) == 0
    assert sum(totals.new_borrowing_by_category.values()) == 0


def test_resolve_uses_loans_effective_at_month_end(data_source, equal_principal_loan: LoanTerms):
    data_source.loans = [
        equal_principal_loan,
        replace(equal_principal_loan, effective_from=date(2024, 3, 31), repayment_principal=300),
        replace(equal_principal_loan, effective_from=date(2024, 4, 1), repayment_principal=700),
        replace(equal_principal_loan, is_active=False, repayment_principal=900),
    ]

    totals = resolve_loan_totals(data_source, 1, YearMonth(2024, 3))

    assert totals.repayment_by_category[LoanCategory.LONG_TERM] == 1_500
