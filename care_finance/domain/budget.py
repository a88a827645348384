"""Budget plan - splits each month's sales budget into income channels"""

from typing import Dict, Iterable, List, Sequence, Tuple

from care_finance.domain.models import BudgetEntry, BudgetPlanRow
from care_finance.domain.money import round_yen
from care_finance.utils.date_utils import YearMonth

# Legacy global ratio rows were stored under this month key
RATIO_YEAR_MONTH = "__RATIO__"

TOTAL_SALES_ITEM = "total_sales"
INSURANCE_RATIO_ITEM = "insurance_ratio"
USER_BURDEN_RATIO_ITEM = "user_burden_ratio"
INSURANCE_INCOME_ITEM = "insurance_income"
USER_BURDEN_ITEM = "user_burden"

DEFAULT_INSURANCE_RATIO = 90
DEFAULT_USER_BURDEN_RATIO = 10

# Item names written by the previous system
LEGACY_ITEM_NAMES = {
    "合計売上予算": TOTAL_SALES_ITEM,
    "保険入金割合": INSURANCE_RATIO_ITEM,
    "利用者請求割合": USER_BURDEN_RATIO_ITEM,
}


def _ratios_from(entries: Dict[str, int], fallback: Tuple[int, int]) -> Tuple[int, int]:
    """Ratio pair from ratio items; a single given ratio implies its complement"""
    insurance = entries.get(INSURANCE_RATIO_ITEM)
    user_burden = entries.get(USER_BURDEN_RATIO_ITEM)
    if insurance is None and user_burden is None:
        return fallback
    if insurance is None:
        insurance = 100 - user_burden
    if user_burden is None:
        user_burden = 100 - insurance
    return insurance, user_burden


def build_budget_plan(entries: Iterable[BudgetEntry], months: Sequence[YearMonth]) -> List[BudgetPlanRow]:
    """
    One plan row per month, oldest first.

    Ratio resolution per month: that month's ratio items, else the legacy
    __RATIO__ rows, else 90% insurance / 10% user burden. Explicit
    insurance_income / user_burden items for a month replace the computed split.
    """
    by_month: Dict[str, Dict[str, int]] = {}
    for entry in entries:
        item_name = LEGACY_ITEM_NAMES.get(entry.item_name, entry.item_name)
        by_month.setdefault(entry.year_month, {})[item_name] = entry.amount

    default_ratios = _ratios_from(
        by_month.get(RATIO_YEAR_MONTH, {}),
        (DEFAULT_INSURANCE_RATIO, DEFAULT_USER_BURDEN_RATIO),
    )

    plan = []
    for month in sorted(months):
        items = by_month.get(str(month), {})
        insurance_ratio, user_burden_ratio = _ratios_from(items, default_ratios)
        total_sales = items.get(TOTAL_SALES_ITEM, 0)

        insurance_income = items.get(INSURANCE_INCOME_ITEM)
        if insurance_income is None:
            insurance_income = round_yen(total_sales * insurance_ratio / 100)
        user_burden = items.get(USER_BURDEN_ITEM)
        if user_burden is None:
            user_burden = round_yen(total_sales * user_burden_ratio / 100)

        plan.append(
            BudgetPlanRow(
                year_month=str(month),
                total_sales=total_sales,
                insurance_income=insurance_income,
                user_burden=user_burden,
            )
        )

    return plan
