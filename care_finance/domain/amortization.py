"""Loan amortization engine - replays a loan's repayment schedule month by month"""

import math
from itertools import islice
from typing import Iterator, List, Optional

from care_finance.domain.models import LoanRepayment, LoanTerms, RepaymentMethod, ScheduledPayment
from care_finance.domain.money import round_yen
from care_finance.utils.date_utils import YearMonth


def estimate_total_months(terms: LoanTerms) -> int:
    """
    Estimated number of installments: ceil(initial amount / monthly principal).

    The agreed term is not stored on the loan, so the level payment of an
    equal-installment loan is derived from this estimate. Returns 0 when the
    monthly principal is not positive.
    """
    if terms.repayment_principal <= 0:
        return 0
    return math.ceil(terms.initial_borrowing_amount / terms.repayment_principal)


def level_payment(principal: int, monthly_rate: float, total_months: int) -> int:
    """
    Fixed monthly payment of an annuity loan.

    M = P * i(1 + i)^n / ((1 + i)^n - 1), or P / n when the rate is zero.
    """
    if total_months <= 0:
        return 0
    if monthly_rate == 0:
        return round_yen(principal / total_months)
    factor = (1 + monthly_rate) ** total_months
    return round_yen(principal * monthly_rate * factor / (factor - 1))


def installment_payment(terms: LoanTerms) -> int:
    """Level payment for an equal-installment loan (0 for equal-principal loans)"""
    if terms.repayment_method != RepaymentMethod.EQUAL_INSTALLMENT:
        return 0
    return level_payment(terms.initial_borrowing_amount, terms.monthly_rate, estimate_total_months(terms))


def iter_schedule(terms: LoanTerms) -> Iterator[ScheduledPayment]:
    """
    Yield the repayment schedule from the first repayment date onward.

    Each month:
    - interest = round(balance * monthly rate)
    - equal principal: principal = fixed monthly principal
    - equal installment: principal = level payment - interest, floored at 0
    - principal never exceeds the running balance

    The first installment falls on the first repayment date, later ones on the
    due day of each following month (clamped to month end). The generator stops
    once the balance reaches 0; a loan that never amortizes (zero principal)
    yields interest-only payments indefinitely, so callers bound it.
    """
    monthly_rate = terms.monthly_rate
    payment = installment_payment(terms)
    first_month = YearMonth.from_date(terms.first_repayment_date)
    balance = terms.initial_borrowing_amount
    index = 0

    while balance > 0:
        if index == 0:
            due_date = terms.first_repayment_date
        else:
            due_date = first_month.shift(index).day(terms.repayment_due_day)

        interest = round_yen(balance * monthly_rate)
        if terms.repayment_method == RepaymentMethod.EQUAL_PRINCIPAL:
            principal = terms.repayment_principal
        else:
            principal = max(0, payment - interest)
        principal = max(0, min(principal, balance))
        balance -= principal

        yield ScheduledPayment(
            due_date=due_date,
            repayment=LoanRepayment(
                repayment_amount=principal + interest,
                principal_amount=principal,
                interest_amount=interest,
                remaining_principal=balance,
            ),
        )
        index += 1


def build_schedule(terms: LoanTerms, months: int) -> List[ScheduledPayment]:
    """First `months` installments of the schedule (fewer if the loan is repaid sooner)"""
    return list(islice(iter_schedule(terms), max(0, months)))


def calculate_loan_repayment(terms: LoanTerms, target: YearMonth) -> Optional[LoanRepayment]:
    """
    Repayment for the target month, replaying every earlier installment.

    Returns:
        None when the target month is before the first repayment month (the
        loan contributes nothing and callers skip it); a zero repayment when the
        loan was already repaid; otherwise the target month's split and the
        balance remaining after it.

    Example:
        1,200,000 borrowed, 1,200/month fixed principal, 0% interest, first
        repayment in January -> March: principal 1,200, remaining 1,196,400
    """
    first_month = YearMonth.from_date(terms.first_repayment_date)
    if target < first_month:
        return None

    elapsed = (target.year - first_month.year) * 12 + (target.month - first_month.month)
    scheduled = next(islice(iter_schedule(terms), elapsed, None), None)
    if scheduled is None:
        return LoanRepayment(repayment_amount=0, principal_amount=0, interest_amount=0, remaining_principal=0)
    return scheduled.repayment
