"""/v1/income-records and /v1/expense-records - stored and projected monthly line items"""

import logging
import time
from typing import Callable, List, Optional, Type

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from care_finance.api.dependencies import get_data_source, get_organization_id, get_request_id, get_user_id
from care_finance.api.v1.schemas import ExpenseRecordRequest, IncomeRecordRequest, RecordResponse
from care_finance.config import settings
from care_finance.domain.data_source import FinanceDataSource
from care_finance.domain.exceptions import RecordNotFoundError
from care_finance.domain.models import ExpenseFigures, IncomeFigures, LineItems, MonthStatus
from care_finance.domain.projection import calculate_expense_by_status, calculate_income_by_status
from care_finance.infrastructure.database.repositories import (
    ExpenseRecordRepository,
    IncomeRecordRepository,
    MonthlyRecordRepository,
)
from care_finance.infrastructure.database.session import get_db
from care_finance.infrastructure.observability.logging import log_projection
from care_finance.infrastructure.observability.metrics import record_projection, record_upsert
from care_finance.utils.date_utils import YearMonth

Projector = Callable[[FinanceDataSource, int, YearMonth, MonthStatus], LineItems]


def project_month(
    kind: str,
    projector: Projector,
    source: FinanceDataSource,
    organization_id: int,
    year_month: YearMonth,
    status: Optional[MonthStatus],
    request_id: str,
) -> RecordResponse:
    """
    Run the status dispatcher for one month and record metrics and logs.

    When no status is given, the month's stored status applies (actual by default).
    """
    start_time = time.time()
    if status is None:
        status = source.get_month_statuses(organization_id, [year_month]).get(year_month, MonthStatus.ACTUAL)

    figures = projector(source, organization_id, year_month, status)
    total = figures.total()

    duration_ms = (time.time() - start_time) * 1000
    record_projection(kind, status.value)
    log_projection(request_id, organization_id, str(year_month), status.value, kind, total, duration_ms)

    return RecordResponse(year_month=str(year_month), status=status, items=figures.as_dict(), total=total)


def build_router(
    kind: str,
    path: str,
    repository_type: Type[MonthlyRecordRepository],
    figures_type: Type[LineItems],
    request_type: Type[BaseModel],
    projector: Projector,
) -> APIRouter:
    """Endpoints shared by income and expense records"""
    router = APIRouter()

    def to_response(row) -> RecordResponse:
        figures = figures_type.from_source(row)
        return RecordResponse(year_month=row.year_month, items=figures.as_dict(), total=figures.total())

    @router.get(f"/{path}", response_model=List[RecordResponse])
    def list_records(
        limit: Optional[int] = Query(None, ge=1, le=120),
        organization_id: int = Depends(get_organization_id),
        db: Session = Depends(get_db),
    ):
        """Stored records, most recent month first"""
        rows = repository_type(db).list(organization_id, limit or settings.history_limit)
        return [to_response(row) for row in rows]

    @router.get(f"/{path}/by-status", response_model=RecordResponse)
    def get_record_by_status(
        request: Request,
        year_month: str = Query(..., description="YYYY-MM"),
        status: Optional[MonthStatus] = Query(None),
        organization_id: int = Depends(get_organization_id),
        source: FinanceDataSource = Depends(get_data_source),
    ):
        """Line items for one month: stored for actual months, projected otherwise"""
        return project_month(
            kind,
            projector,
            source,
            organization_id,
            YearMonth.parse(year_month),
            status,
            get_request_id(request),
        )

    @router.get(f"/{path}/list-by-status", response_model=List[RecordResponse])
    def list_records_by_status(
        request: Request,
        year_months: List[str] = Query(..., description="Repeated YYYY-MM values"),
        status: Optional[MonthStatus] = Query(None),
        organization_id: int = Depends(get_organization_id),
        source: FinanceDataSource = Depends(get_data_source),
    ):
        """One projection per requested month, in request order"""
        months = [YearMonth.parse(value) for value in year_months]
        request_id = get_request_id(request)
        return [
            project_month(kind, projector, source, organization_id, month, status, request_id) for month in months
        ]

    @router.get(f"/{path}/{{year_month}}", response_model=RecordResponse)
    def get_record(
        year_month: str,
        organization_id: int = Depends(get_organization_id),
        db: Session = Depends(get_db),
    ):
        row = repository_type(db).get(organization_id, YearMonth.parse(year_month))
        if row is None:
            raise RecordNotFoundError(f"No {kind} record for {year_month}")
        return to_response(row)

    @router.put(f"/{path}", response_model=RecordResponse)
    def upsert_record(
        request_body: request_type,
        organization_id: int = Depends(get_organization_id),
        user_id: Optional[int] = Depends(get_user_id),
        db: Session = Depends(get_db),
    ):
        """Replace the month's line items (last write wins)"""
        values = request_body.model_dump()
        year_month = YearMonth.parse(values.pop("year_month"))
        row = repository_type(db).upsert(
            organization_id,
            year_month,
            figures_type.from_source(values),
            created_by=user_id,
        )
        db.commit()
        record_upsert(kind)
        logging.info(f"{kind.capitalize()} record saved", extra={"organization_id": organization_id, "year_month": str(year_month)})
        return to_response(row)

    return router


income_router = build_router(
    "income",
    "income-records",
    IncomeRecordRepository,
    IncomeFigures,
    IncomeRecordRequest,
    calculate_income_by_status,
)

expense_router = build_router(
    "expense",
    "expense-records",
    ExpenseRecordRepository,
    ExpenseFigures,
    ExpenseRecordRequest,
    calculate_expense_by_status,
)
