"""/v1/month-status - actual / forecast / prediction tag per month"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from care_finance.api.dependencies import get_organization_id, get_user_id
from care_finance.api.v1.schemas import MonthStatusRequest, MonthStatusResponse
from care_finance.domain.models import MonthStatus
from care_finance.infrastructure.database.repositories import MonthStatusRepository
from care_finance.infrastructure.database.session import get_db
from care_finance.infrastructure.observability.metrics import record_upsert
from care_finance.utils.date_utils import YearMonth

router = APIRouter()


@router.get("/month-status", response_model=List[MonthStatusResponse])
def list_month_statuses(
    year_months: Optional[List[str]] = Query(None, description="Repeated YYYY-MM values"),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    """
    Statuses for the requested months, or every stored status when none are given.

    Requested months with no stored status are reported as actual.
    """
    repo = MonthStatusRepository(db)
    if not year_months:
        return [MonthStatusResponse(year_month=r.year_month, status=r.status) for r in repo.list(organization_id)]

    months = [YearMonth.parse(value) for value in year_months]
    stored = {r.year_month: r.status for r in repo.list(organization_id, months)}
    return [
        MonthStatusResponse(year_month=str(month), status=stored.get(str(month), MonthStatus.ACTUAL))
        for month in months
    ]


@router.get("/month-status/{year_month}", response_model=MonthStatusResponse)
def get_month_status(
    year_month: str,
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    month = YearMonth.parse(year_month)
    record = MonthStatusRepository(db).get(organization_id, month)
    return MonthStatusResponse(year_month=str(month), status=record.status if record else MonthStatus.ACTUAL)


@router.put("/month-status", response_model=MonthStatusResponse)
def upsert_month_status(
    request_body: MonthStatusRequest,
    organization_id: int = Depends(get_organization_id),
    user_id: Optional[int] = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    record = MonthStatusRepository(db).upsert(
        organization_id,
        YearMonth.parse(request_body.year_month),
        request_body.status,
        created_by=user_id,
    )
    db.commit()
    record_upsert("month_status")
    logging.info(
        "Month status saved",
        extra={"organization_id": organization_id, "year_month": record.year_month, "status": record.status},
    )
    return MonthStatusResponse(year_month=record.year_month, status=record.status)
