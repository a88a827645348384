"""/v1/loans - loan register, audit history and repayment schedules"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from care_finance.api.dependencies import get_data_source, get_organization_id, get_user_id
from care_finance.api.v1.schemas import (
    LoanHistoryItem,
    LoanRequest,
    LoanResponse,
    LoanScheduleItem,
    LoanToggleRequest,
    LoanTotalsResponse,
    LoanUpdateRequest,
)
from care_finance.domain.amortization import build_schedule
from care_finance.domain.data_source import FinanceDataSource
from care_finance.domain.loan_resolver import resolve_loan_totals
from care_finance.domain.models import LoanTerms
from care_finance.infrastructure.database.models import Loan
from care_finance.infrastructure.database.repositories import LoanRepository, to_loan_terms
from care_finance.infrastructure.database.session import get_db
from care_finance.infrastructure.observability.metrics import record_upsert
from care_finance.utils.date_utils import YearMonth

router = APIRouter()

NULLABLE_LOAN_FIELDS = {"branch_name"}


def _to_response(loan: Loan) -> LoanResponse:
    return LoanResponse.model_validate(loan, from_attributes=True)


@router.get("/loans", response_model=List[LoanResponse])
def list_loans(
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    """Every loan of the organization, active or not"""
    return [_to_response(loan) for loan in LoanRepository(db).list(organization_id)]


@router.get("/loans/totals", response_model=LoanTotalsResponse)
def get_loan_totals(
    year_month: str = Query(..., description="YYYY-MM"),
    organization_id: int = Depends(get_organization_id),
    source: FinanceDataSource = Depends(get_data_source),
):
    """Repayment, new borrowing and interest of all loans active at the month's end"""
    month = YearMonth.parse(year_month)
    totals = resolve_loan_totals(source, organization_id, month)
    return LoanTotalsResponse(
        year_month=str(month),
        repayment_by_category=totals.repayment_by_category,
        new_borrowing_by_category=totals.new_borrowing_by_category,
        payment_interest=totals.payment_interest,
    )


@router.post("/loans", response_model=LoanResponse, status_code=201)
def create_loan(
    request_body: LoanRequest,
    organization_id: int = Depends(get_organization_id),
    user_id: Optional[int] = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    """Register a loan; effective_from defaults to the borrowing date"""
    terms = LoanTerms(
        repayment_method=request_body.repayment_method,
        annual_interest_rate=request_body.annual_interest_rate,
        initial_borrowing_date=request_body.initial_borrowing_date,
        repayment_due_day=request_body.repayment_due_date,
        initial_borrowing_amount=request_body.initial_borrowing_amount,
        repayment_principal=request_body.repayment_principal,
        first_repayment_date=request_body.first_repayment_date,
        category=request_body.category,
        is_active=request_body.is_active,
        effective_from=request_body.effective_from,
    )
    loan = LoanRepository(db).create(
        organization_id,
        request_body.financial_institution,
        request_body.branch_name,
        terms,
        created_by=user_id,
    )
    db.commit()
    record_upsert("loan")
    logging.info("Loan created", extra={"organization_id": organization_id, "loan_id": loan.id})
    return _to_response(loan)


@router.get("/loans/{loan_id}", response_model=LoanResponse)
def get_loan(
    loan_id: int,
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    return _to_response(LoanRepository(db).get(organization_id, loan_id))


@router.patch("/loans/{loan_id}", response_model=LoanResponse)
def update_loan(
    loan_id: int,
    request_body: LoanUpdateRequest,
    organization_id: int = Depends(get_organization_id),
    user_id: Optional[int] = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    """Partial update of the loan terms; appends an audit row. An explicit null clears branch_name."""
    changes = {
        name: value
        for name, value in request_body.model_dump(exclude_unset=True).items()
        if value is not None or name in NULLABLE_LOAN_FIELDS
    }
    for name in ("category", "repayment_method"):
        if name in changes:
            changes[name] = changes[name].value

    loan = LoanRepository(db).update(organization_id, loan_id, changes, created_by=user_id)
    db.commit()
    record_upsert("loan")
    logging.info("Loan updated", extra={"organization_id": organization_id, "loan_id": loan_id})
    return _to_response(loan)


@router.post("/loans/{loan_id}/toggle", response_model=LoanResponse)
def toggle_loan(
    loan_id: int,
    request_body: LoanToggleRequest,
    organization_id: int = Depends(get_organization_id),
    user_id: Optional[int] = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    """Enable or disable a loan from effective_from onward"""
    loan = LoanRepository(db).set_active(
        organization_id,
        loan_id,
        request_body.is_active,
        request_body.effective_from,
        created_by=user_id,
    )
    db.commit()
    record_upsert("loan")
    logging.info(
        "Loan activation changed",
        extra={"organization_id": organization_id, "loan_id": loan_id, "is_active": request_body.is_active},
    )
    return _to_response(loan)


@router.delete("/loans/{loan_id}", status_code=204)
def delete_loan(
    loan_id: int,
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    LoanRepository(db).delete(organization_id, loan_id)
    db.commit()
    logging.info("Loan deleted", extra={"organization_id": organization_id, "loan_id": loan_id})


@router.get("/loans/{loan_id}/history", response_model=List[LoanHistoryItem])
def get_loan_history(
    loan_id: int,
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    """Audit trail, newest first; survives deletion of the loan"""
    return [
        LoanHistoryItem(
            id=entry.id,
            action=entry.action,
            effective_from=entry.effective_from,
            previous_values=entry.previous_values,
            new_values=entry.new_values,
            created_by=entry.created_by,
            created_at=entry.created_at.isoformat(),
        )
        for entry in LoanRepository(db).history(organization_id, loan_id)
    ]


@router.get("/loans/{loan_id}/schedule", response_model=List[LoanScheduleItem])
def get_loan_schedule(
    loan_id: int,
    months: int = Query(12, ge=1, le=600),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    """
    Upcoming installments from the first repayment date.

    Returns:
        At most `months` installments; fewer when the loan is repaid sooner
    """
    terms = to_loan_terms(LoanRepository(db).get(organization_id, loan_id))
    return [
        LoanScheduleItem(
            due_date=payment.due_date,
            repayment_amount=payment.repayment.repayment_amount,
            principal_amount=payment.repayment.principal_amount,
            interest_amount=payment.repayment.interest_amount,
            remaining_principal=payment.repayment.remaining_principal,
        )
        for payment in build_schedule(terms, months)
    ]
