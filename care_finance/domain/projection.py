"""Status dispatcher - selects the source of each month's income and expense figures

- actual: the stored record (zeros when none exists)
- forecast: billing/factoring and loan-engine figures, each falling back to the
  trailing average when the derived value is 0; all other items use the average
- prediction: trailing average for everything except loan-engine items
  (new long-term borrowing and loan principal repayment)

Every function is total: missing data yields zeros, never an exception.
"""

from care_finance.domain.billing import calculate_income_from_billing
from care_finance.domain.data_source import FinanceDataSource
from care_finance.domain.loan_resolver import resolve_loan_totals
from care_finance.domain.models import (
    NEW_BORROWING_FIELDS,
    REPAYMENT_FIELDS,
    ExpenseFigures,
    IncomeFigures,
    LoanCategory,
    MonthStatus,
)
from care_finance.domain.trailing_average import TRAILING_WINDOW, trailing_average_figures
from care_finance.utils.date_utils import YearMonth, previous_months

# Income items the billing projector can supply
BILLING_INCOME_FIELDS = frozenset(
    {
        "insurance_income",
        "user_burden_transfer",
        "user_burden_withdrawal",
        "factoring_income1",
        "factoring_income2",
    }
)

# New long-term borrowing always comes from the loan register, even when it is 0
LOAN_OVERRIDE_FIELD = NEW_BORROWING_FIELDS[LoanCategory.LONG_TERM]


def _prefer(derived: int, fallback: int) -> int:
    return derived or fallback


def calculate_income_by_status(
    source: FinanceDataSource,
    organization_id: int,
    target: YearMonth,
    status: MonthStatus,
) -> IncomeFigures:
    """Income line items for one month under the given status"""
    if status == MonthStatus.ACTUAL:
        stored = source.get_income_records(organization_id, [target]).get(target)
        return IncomeFigures.from_source(stored)

    history = source.get_income_records(organization_id, previous_months(target, TRAILING_WINDOW))
    average = trailing_average_figures(IncomeFigures, history, target)

    loans = resolve_loan_totals(source, organization_id, target)
    borrowed = IncomeFigures.zeros()
    for category, field_name in NEW_BORROWING_FIELDS.items():
        setattr(borrowed, field_name, loans.new_borrowing_by_category[category])

    billing = None
    if status == MonthStatus.FORECAST:
        billing = IncomeFigures.from_source(calculate_income_from_billing(source, organization_id, target))

    def choose(name: str, fallback: int) -> int:
        if name == LOAN_OVERRIDE_FIELD:
            return borrowed.get(name)
        if name in NEW_BORROWING_FIELDS.values():
            return _prefer(borrowed.get(name), fallback)
        if billing is not None and name in BILLING_INCOME_FIELDS:
            return _prefer(billing.get(name), fallback)
        return fallback

    return average.for_each_field(choose)


def calculate_expense_by_status(
    source: FinanceDataSource,
    organization_id: int,
    target: YearMonth,
    status: MonthStatus,
) -> ExpenseFigures:
    """Expense line items for one month under the given status"""
    if status == MonthStatus.ACTUAL:
        stored = source.get_expense_records(organization_id, [target]).get(target)
        return ExpenseFigures.from_source(stored)

    history = source.get_expense_records(organization_id, previous_months(target, TRAILING_WINDOW))
    average = trailing_average_figures(ExpenseFigures, history, target)

    loans = resolve_loan_totals(source, organization_id, target)
    repaid = ExpenseFigures.zeros()
    for category, field_name in REPAYMENT_FIELDS.items():
        setattr(repaid, field_name, loans.repayment_by_category[category])
    if status == MonthStatus.FORECAST:
        repaid.payment_interest = loans.payment_interest

    def choose(name: str, fallback: int) -> int:
        if name in REPAYMENT_FIELDS.values() or name == "payment_interest":
            return _prefer(repaid.get(name), fallback)
        return fallback

    return average.for_each_field(choose)
