"""Consolidated monthly report over a window of months"""

from typing import Dict, List, Mapping, Optional, Sequence

from care_finance.domain.data_source import FinanceDataSource
from care_finance.domain.models import ExpenseFigures, IncomeFigures, MonthStatus, ReportMonth
from care_finance.domain.projection import calculate_expense_by_status, calculate_income_by_status
from care_finance.utils.date_utils import YearMonth, month_window


def build_report(
    months: Sequence[YearMonth],
    statuses: Mapping[YearMonth, MonthStatus],
    income: Mapping[YearMonth, IncomeFigures],
    expense: Mapping[YearMonth, ExpenseFigures],
    bank_totals: Optional[Mapping[YearMonth, int]] = None,
    opening_balance: int = 0,
) -> List[ReportMonth]:
    """
    Roll per-month figures into report columns, oldest month first.

    - monthly_balance = income total - expense total
    - cumulative_balance = running sum of monthly balances within the window
    - carry_over = previous carry-over + monthly balance, starting from 0
    - projected_bank_balance = opening balance + carry_over
    """
    bank_totals = bank_totals or {}
    cumulative = 0
    carry_over = 0
    report = []

    for month in sorted(months):
        month_income = income.get(month) or IncomeFigures.zeros()
        month_expense = expense.get(month) or ExpenseFigures.zeros()
        income_total = month_income.total()
        expense_total = month_expense.total()
        monthly_balance = income_total - expense_total
        cumulative += monthly_balance
        carry_over += monthly_balance

        report.append(
            ReportMonth(
                year_month=month,
                status=statuses.get(month, MonthStatus.ACTUAL),
                income=month_income,
                expense=month_expense,
                income_total=income_total,
                expense_total=expense_total,
                monthly_balance=monthly_balance,
                cumulative_balance=cumulative,
                carry_over=carry_over,
                projected_bank_balance=opening_balance + carry_over,
                bank_total_balance=bank_totals.get(month),
            )
        )

    return report


def generate_report(
    source: FinanceDataSource,
    organization_id: int,
    end_month: YearMonth,
    months: int,
) -> List[ReportMonth]:
    """
    Project every month of the window under its stored status and build the report.

    The opening balance for projected_bank_balance is the recorded bank total
    of the month before the window.
    """
    window = month_window(end_month, months)
    if not window:
        return []

    statuses = source.get_month_statuses(organization_id, window)
    income: Dict[YearMonth, IncomeFigures] = {}
    expense: Dict[YearMonth, ExpenseFigures] = {}
    for month in window:
        status = statuses.get(month, MonthStatus.ACTUAL)
        income[month] = calculate_income_by_status(source, organization_id, month, status)
        expense[month] = calculate_expense_by_status(source, organization_id, month, status)

    opening_month = window[0].previous()
    bank_totals = source.get_bank_totals(organization_id, [opening_month, *window])

    return build_report(
        window,
        statuses,
        income,
        expense,
        bank_totals=bank_totals,
        opening_balance=bank_totals.get(opening_month, 0),
    )
