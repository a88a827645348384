"""/v1/bank-balances - month-end balances of up to five accounts"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from care_finance.api.dependencies import get_organization_id, get_user_id
from care_finance.api.v1.schemas import BankBalanceRequest, BankBalanceResponse
from care_finance.config import settings
from care_finance.domain.exceptions import RecordNotFoundError
from care_finance.infrastructure.database.models import BankBalance
from care_finance.infrastructure.database.repositories import BankBalanceRepository
from care_finance.infrastructure.database.session import get_db
from care_finance.infrastructure.observability.metrics import record_upsert
from care_finance.utils.date_utils import YearMonth

router = APIRouter()


def _to_response(row: BankBalance) -> BankBalanceResponse:
    return BankBalanceResponse.model_validate(row, from_attributes=True)


@router.get("/bank-balances", response_model=List[BankBalanceResponse])
def list_bank_balances(
    limit: Optional[int] = Query(None, ge=1, le=120),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    """Most recent months first"""
    rows = BankBalanceRepository(db).list(organization_id, limit or settings.history_limit)
    return [_to_response(row) for row in rows]


@router.get("/bank-balances/{year_month}", response_model=BankBalanceResponse)
def get_bank_balance(
    year_month: str,
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    row = BankBalanceRepository(db).get(organization_id, YearMonth.parse(year_month))
    if row is None:
        raise RecordNotFoundError(f"No bank balance for {year_month}")
    return _to_response(row)


@router.put("/bank-balances", response_model=BankBalanceResponse)
def upsert_bank_balance(
    request_body: BankBalanceRequest,
    organization_id: int = Depends(get_organization_id),
    user_id: Optional[int] = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    """Replace the month's balances; total_balance is recomputed"""
    row = BankBalanceRepository(db).upsert(
        organization_id,
        YearMonth.parse(request_body.year_month),
        request_body.balances(),
        created_by=user_id,
    )
    db.commit()
    record_upsert("bank_balance")
    logging.info(
        "Bank balance saved",
        extra={"organization_id": organization_id, "year_month": row.year_month, "total_balance": row.total_balance},
    )
    return _to_response(row)
