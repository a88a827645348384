"""Trailing three-month average used when no better source exists"""

from typing import Mapping, Type, TypeVar

from care_finance.domain.models import LineItems
from care_finance.domain.money import round_yen
from care_finance.utils.date_utils import YearMonth, previous_months

TRAILING_WINDOW = 3

T = TypeVar("T", bound=LineItems)


def trailing_average(
    history: Mapping[YearMonth, LineItems],
    field_name: str,
    target: YearMonth,
    window: int = TRAILING_WINDOW,
) -> int:
    """
    Mean of a field over the `window` months immediately before target.

    A month without a record contributes 0, and a stored 0 is a data point
    like any other, so the divisor is always `window`:
        M-1=100, M-2=0, M-3=50 -> round(150 / 3) = 50
        only M-2=90 recorded   -> round(90 / 3)  = 30
    Returns 0 when none of the months has a record.
    """
    months = previous_months(target, window)
    if window <= 0 or not any(month in history for month in months):
        return 0

    values = [history[month].get(field_name) if month in history else 0 for month in months]
    return round_yen(sum(values) / window)


def trailing_average_figures(record_type: Type[T], history: Mapping[YearMonth, LineItems], target: YearMonth) -> T:
    """Trailing average of every field of a line-item record"""
    return record_type.build(lambda name: trailing_average(history, name, target))
