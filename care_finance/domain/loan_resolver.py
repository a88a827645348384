"""Active-loan resolution and organization-level loan aggregation"""

from datetime import date
from typing import Iterable, List

from care_finance.domain.amortization import calculate_loan_repayment
from care_finance.domain.data_source import FinanceDataSource
from care_finance.domain.models import LoanTerms, LoanTotals
from care_finance.utils.date_utils import YearMonth


def is_loan_effective(terms: LoanTerms, as_of: date) -> bool:
    """Enabled and effective on or before the as-of date"""
    if not terms.is_active:
        return False
    return terms.effective_from is None or terms.effective_from <= as_of


def filter_active_loans(loans: Iterable[LoanTerms], as_of: date) -> List[LoanTerms]:
    return [terms for terms in loans if is_loan_effective(terms, as_of)]


def aggregate_loans(loans: Iterable[LoanTerms], target: YearMonth) -> LoanTotals:
    """
    Sum amortization results across loans for the target month.

    - principal goes to the loan's category bucket
    - interest of every loan goes to a single payment_interest total
    - a loan originated in the target month adds its full initial amount to its
      category's new-borrowing bucket
    - loans whose first repayment is after the target month add no repayment
    """
    totals = LoanTotals()

    for terms in loans:
        if YearMonth.from_date(terms.initial_borrowing_date) == target:
            totals.new_borrowing_by_category[terms.category] += terms.initial_borrowing_amount

        repayment = calculate_loan_repayment(terms, target)
        if repayment is None:
            continue

        totals.repayment_by_category[terms.category] += repayment.principal_amount
        totals.payment_interest += repayment.interest_amount

    return totals


def resolve_loan_totals(source: FinanceDataSource, organization_id: int, target: YearMonth) -> LoanTotals:
    """Loan totals for the target month using loans effective at the month's last day"""
    as_of = target.last_day
    loans = filter_active_loans(source.get_active_loans(organization_id, as_of), as_of)
    return aggregate_loans(loans, target)
