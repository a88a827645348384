"""Billing-derived income projection

Insurance claims are reimbursed two months after billing. With factoring the
claim is sold instead: a discounted advance arrives in the billing month and
the remainder one month later. Clients paying by account withdrawal are
collected one billing cycle late; bank-transfer clients pay in the same month.
"""

from typing import Iterable, Optional

from care_finance.domain.data_source import FinanceDataSource
from care_finance.domain.models import BillingIncome, BillingRow, FactoringTerms
from care_finance.domain.money import basis_points_to_rate, round_yen
from care_finance.utils.date_utils import BillingMonth, YearMonth


def factored_advance(insurance_payment: int, terms: FactoringTerms) -> int:
    """
    Immediate factoring cash-in for a month's insurance claims.

    advance = round(claims * factoring rate) - round(advance * fee rate) - usage fee,
    floored at 0; 0 when there are no claims.
    """
    if insurance_payment <= 0:
        return 0
    factored = round_yen(insurance_payment * basis_points_to_rate(terms.factoring_rate))
    fee = round_yen(factored * basis_points_to_rate(terms.fee_rate))
    return max(0, factored - fee - terms.usage_fee)


def factoring_remainder(insurance_payment: int, terms: FactoringTerms) -> int:
    """Deferred remainder: claims minus the factored amount"""
    if insurance_payment <= 0:
        return 0
    return insurance_payment - round_yen(insurance_payment * basis_points_to_rate(terms.factoring_rate))


def _insurance_total(rows: Iterable[BillingRow], month: BillingMonth) -> int:
    return sum(row.insurance_payment for row in rows if row.billing_month == month)


def project_billing_income(
    rows: Iterable[BillingRow],
    target: YearMonth,
    factoring: Optional[FactoringTerms],
) -> BillingIncome:
    """
    Income for the target month from billing rows.

    Rows are selected by their billing month, so rows of unrelated months are
    ignored:
    - user_burden_transfer: target-month rows with is_transfer set
    - user_burden_withdrawal: previous-month rows without is_transfer
    - with factoring: insurance income 0, advance from target-month claims,
      remainder from previous-month claims
    - without factoring: insurance income = claims billed two months earlier
    """
    rows = list(rows)
    current = target.to_billing()
    previous = target.previous(1).to_billing()
    two_prior = target.previous(2).to_billing()

    transfer = sum(row.user_burden for row in rows if row.billing_month == current and row.is_transfer)
    withdrawal = sum(row.user_burden for row in rows if row.billing_month == previous and not row.is_transfer)

    if factoring is None:
        return BillingIncome(
            insurance_income=_insurance_total(rows, two_prior),
            user_burden_transfer=transfer,
            user_burden_withdrawal=withdrawal,
        )

    return BillingIncome(
        insurance_income=0,
        user_burden_transfer=transfer,
        user_burden_withdrawal=withdrawal,
        factoring_income1=factored_advance(_insurance_total(rows, current), factoring),
        factoring_income2=factoring_remainder(_insurance_total(rows, previous), factoring),
    )


def calculate_income_from_billing(source: FinanceDataSource, organization_id: int, target: YearMonth) -> BillingIncome:
    """Fetch the three billing periods the target month depends on and project income"""
    months = [target.to_billing(), target.previous(1).to_billing(), target.previous(2).to_billing()]
    rows = source.get_billing_rows(organization_id, months)
    factoring = source.get_factoring_setting(organization_id)
    return project_billing_income(rows, target, factoring)
