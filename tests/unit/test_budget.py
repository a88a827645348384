"""Unit tests for the budget plan"""

from care_finance.domain.budget import RATIO_YEAR_MONTH, build_budget_plan
from care_finance.domain.models import BudgetEntry
from care_finance.utils.date_utils import YearMonth

MONTHS = [YearMonth(2024, 4), YearMonth(2024, 5)]


def _sales(month: str, amount: int) -> BudgetEntry:
    return BudgetEntry(year_month=month, category="income", item_name="total_sales", amount=amount)


def test_default_ratio_split():
    plan = build_budget_plan([_sales("2024-04", 1_000_000)], MONTHS)

    assert [row.year_month for row in plan] == ["2024-04", "2024-05"]
    assert plan[0].insurance_income == 900_000
    assert plan[0].user_burden == 100_000
    assert plan[1].total_sales == 0
    assert plan[1].insurance_income == 0


def test_month_ratio_overrides_default():
    entries = [
        _sales("2024-04", 1_000_000),
        BudgetEntry("2024-04", "ratio", "insurance_ratio", 80),
        BudgetEntry("2024-04", "ratio", "user_burden_ratio", 20),
    ]

    plan = build_budget_plan(entries, MONTHS[:1])

    assert (plan[0].insurance_income, plan[0].user_burden) == (800_000, 200_000)


def test_legacy_ratio_rows_apply_to_every_month():
    entries = [
        _sales("2024-04", 1_000_000),
        _sales("2024-05", 2_000_000),
        BudgetEntry(RATIO_YEAR_MONTH, "ratio", "insurance_ratio", 85),
    ]

    plan = build_budget_plan(entries, MONTHS)

    assert (plan[0].insurance_income, plan[0].user_burden) == (850_000, 150_000)
    assert (plan[1].insurance_income, plan[1].user_burden) == (1_700_000, 300_000)


def test_explicit_channel_amount_replaces_split():
    entries = [
        _sales("2024-04", 1_000_000),
        BudgetEntry("2024-04", "income", "insurance_income", 950_000),
    ]

    plan = build_budget_plan(entries, MONTHS[:1])

    assert plan[0].insurance_income == 950_000
    assert plan[0].user_burden == 100_000


def test_previous_system_item_names_are_recognized():
    entries = [
        BudgetEntry("2024-04", "income", "合計売上予算", 1_000_000),
        BudgetEntry(RATIO_YEAR_MONTH, "ratio", "保険入金割合", 70),
        BudgetEntry(RATIO_YEAR_MONTH, "ratio", "利用者請求割合", 30),
    ]

    plan = build_budget_plan(entries, MONTHS[:1])

    assert plan[0].total_sales == 1_000_000
    assert (plan[0].insurance_income, plan[0].user_burden) == (700_000, 300_000)
