"""/v1/budgets - budget items and the derived sales plan"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from care_finance.api.dependencies import get_organization_id, get_user_id
from care_finance.api.v1.schemas import BudgetPlanRowSchema, BudgetRequest, BudgetResponse
from care_finance.config import settings
from care_finance.domain.budget import build_budget_plan
from care_finance.domain.models import BudgetEntry
from care_finance.infrastructure.database.repositories import BudgetRepository
from care_finance.infrastructure.database.session import get_db
from care_finance.infrastructure.observability.metrics import record_upsert
from care_finance.utils.date_utils import YearMonth, month_window

router = APIRouter()


@router.get("/budgets", response_model=List[BudgetResponse])
def list_budgets(
    year_month: Optional[str] = Query(None, description="YYYY-MM"),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    month = str(YearMonth.parse(year_month)) if year_month else None
    budgets = BudgetRepository(db).list(organization_id, month)
    return [BudgetResponse.model_validate(budget, from_attributes=True) for budget in budgets]


@router.put("/budgets", response_model=BudgetResponse)
def upsert_budget(
    request_body: BudgetRequest,
    organization_id: int = Depends(get_organization_id),
    user_id: Optional[int] = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    """Create or replace the amount for (month, category, item)"""
    budget = BudgetRepository(db).upsert(
        organization_id,
        BudgetEntry(**request_body.model_dump()),
        created_by=user_id,
    )
    db.commit()
    record_upsert("budget")
    return BudgetResponse.model_validate(budget, from_attributes=True)


@router.get("/budgets/plan", response_model=List[BudgetPlanRowSchema])
def get_budget_plan(
    end_month: Optional[str] = Query(None, description="YYYY-MM, defaults to the current month"),
    months: Optional[int] = Query(None, ge=1, le=60),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    """
    Sales budget split into insurance income and user burden, oldest month first.

    Ratios come from the month's ratio items, then legacy global ratio rows,
    then 90% / 10%.
    """
    end = YearMonth.parse(end_month) if end_month else YearMonth.from_date(date.today())
    window = month_window(end, months or settings.report_months)
    entries = [
        BudgetEntry(year_month=b.year_month, category=b.category, item_name=b.item_name, amount=b.amount)
        for b in BudgetRepository(db).list(organization_id)
    ]
    return [BudgetPlanRowSchema.model_validate(row, from_attributes=True) for row in build_budget_plan(entries, window)]
