"""GET /v1/reports/monthly - consolidated monthly cash-flow report"""

import logging
import time
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from care_finance.api.dependencies import get_data_source, get_organization_id, get_request_id
from care_finance.api.v1.schemas import ReportMonthSchema, ReportResponse
from care_finance.config import settings
from care_finance.domain.data_source import FinanceDataSource
from care_finance.domain.reporting import generate_report
from care_finance.infrastructure.observability.metrics import record_projection, report_months_histogram
from care_finance.utils.date_utils import YearMonth

router = APIRouter()


@router.get("/reports/monthly", response_model=ReportResponse)
def get_monthly_report(
    request: Request,
    end_month: Optional[str] = Query(None, description="YYYY-MM, defaults to the current month"),
    months: Optional[int] = Query(None, ge=1, le=60),
    organization_id: int = Depends(get_organization_id),
    source: FinanceDataSource = Depends(get_data_source),
):
    """
    Project every month of the window under its stored status.

    Flow:
    1. Read the month statuses of the window
    2. Project income and expense per month (actual, forecast or prediction)
    3. Roll up totals, monthly balance, cumulative balance and carry-over
    4. Anchor projected_bank_balance on the bank total of the month before the window
    """
    start_time = time.time()
    end = YearMonth.parse(end_month) if end_month else YearMonth.from_date(date.today())
    window_size = months or settings.report_months

    report = generate_report(source, organization_id, end, window_size)

    for column in report:
        record_projection("income", column.status.value)
        record_projection("expense", column.status.value)
    report_months_histogram.observe(len(report))
    logging.info(
        "Report generated",
        extra={
            "request_id": get_request_id(request),
            "organization_id": organization_id,
            "end_month": str(end),
            "months": len(report),
            "duration_ms": (time.time() - start_time) * 1000,
        },
    )

    return ReportResponse(
        end_month=str(end),
        months=[
            ReportMonthSchema(
                year_month=str(column.year_month),
                status=column.status,
                income=column.income.as_dict(),
                expense=column.expense.as_dict(),
                income_total=column.income_total,
                expense_total=column.expense_total,
                monthly_balance=column.monthly_balance,
                cumulative_balance=column.cumulative_balance,
                carry_over=column.carry_over,
                projected_bank_balance=column.projected_bank_balance,
                bank_total_balance=column.bank_total_balance,
            )
            for column in report
        ],
    )
