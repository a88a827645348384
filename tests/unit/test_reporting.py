"""Unit tests for the consolidated monthly report"""

from care_finance.domain.models import ExpenseFigures, IncomeFigures, MonthStatus
from care_finance.domain.reporting import build_report, generate_report
from care_finance.utils.date_utils import YearMonth

JAN, FEB, MAR = YearMonth(2024, 1), YearMonth(2024, 2), YearMonth(2024, 3)


def test_build_report_balances():
    report = build_report(
        [FEB, JAN],
        {FEB: MonthStatus.FORECAST},
        {JAN: IncomeFigures(insurance_income=500), FEB: IncomeFigures(insurance_income=300)},
        {JAN: ExpenseFigures(rent=200), FEB: ExpenseFigures(rent=400)},
        bank_totals={JAN: 10_000},
        opening_balance=1_000,
    )

    assert [column.year_month for column in report] == [JAN, FEB]
    assert [column.status for column in report] == [MonthStatus.ACTUAL, MonthStatus.FORECAST]
    assert [column.monthly_balance for column in report] == [300, -100]
    assert [column.cumulative_balance for column in report] == [300, 200]
    assert [column.carry_over for column in report] == [300, 200]
    assert [column.projected_bank_balance for column in report] == [1_300, 1_200]
    assert [column.bank_total_balance for column in report] == [10_000, None]


def test_generate_report_projects_each_month(data_source):
    data_source.income[JAN] = IncomeFigures(insurance_income=900)
    data_source.expense[JAN] = ExpenseFigures(rent=300)
    data_source.statuses[FEB] = MonthStatus.PREDICTION
    data_source.bank_totals[YearMonth(2023, 12)] = 5_000

    report = generate_report(data_source, 1, FEB, 2)

    january, february = report
    assert january.income_total == 900
    assert january.carry_over == 600
    assert january.projected_bank_balance == 5_600
    assert february.status == MonthStatus.PREDICTION
    assert february.income.insurance_income == 300  # round(900 / 3)
    assert february.expense.rent == 100
    assert february.carry_over == 800
    assert february.projected_bank_balance == 5_800


def test_generate_report_empty_window(data_source):
    assert generate_report(data_source, 1, MAR, 0) == []
