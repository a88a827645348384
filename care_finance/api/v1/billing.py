"""/v1/billing - per-client billing rows"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from care_finance.api.dependencies import get_organization_id, get_user_id
from care_finance.api.v1.schemas import (
    BatchDeleteRequest,
    BatchDeleteResponse,
    BillingBatchRequest,
    BillingBatchResponse,
    BillingKey,
    BillingPage,
    BillingRequest,
    BillingResponse,
    BillingUpdateRequest,
)
from care_finance.domain.models import BillingRow
from care_finance.infrastructure.database.models import BillingRecord
from care_finance.infrastructure.database.repositories import BillingRepository
from care_finance.infrastructure.database.session import get_db
from care_finance.infrastructure.observability.metrics import billing_duplicates_counter, record_upsert
from care_finance.utils.date_utils import BillingMonth, parse_billing_month

router = APIRouter()


def _to_response(record: BillingRecord) -> BillingResponse:
    return BillingResponse.model_validate(record, from_attributes=True)


def _to_row(request_body: BillingRequest) -> BillingRow:
    return BillingRow(
        billing_month=BillingMonth.parse(request_body.billing_year_month),
        service_month=BillingMonth.parse(request_body.service_year_month),
        user_name=request_body.user_name,
        total_cost=request_body.total_cost,
        insurance_payment=request_body.insurance_payment,
        public_payment=request_body.public_payment,
        reduction=request_body.reduction,
        user_burden_transfer=request_body.user_burden_transfer,
        user_burden_withdrawal=request_body.user_burden_withdrawal,
        is_transfer=request_body.is_transfer,
    )


@router.get("/billing", response_model=BillingPage)
def search_billing(
    billing_month: Optional[str] = Query(None, description="YYYYMM or YYYY-MM"),
    service_month: Optional[str] = Query(None, description="YYYYMM or YYYY-MM"),
    user_name: Optional[str] = Query(None, description="Substring match"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    """
    Paged billing rows, newest billing month first.

    Without filters this is the plain paged list.
    """
    rows, total = BillingRepository(db).search(
        organization_id,
        billing_month=parse_billing_month(billing_month) if billing_month else None,
        service_month=parse_billing_month(service_month) if service_month else None,
        user_name=user_name,
        page=page,
        page_size=page_size,
    )
    return BillingPage(items=[_to_response(row) for row in rows], total=total, page=page, page_size=page_size)


@router.post("/billing", response_model=BillingResponse, status_code=201)
def create_billing(
    request_body: BillingRequest,
    organization_id: int = Depends(get_organization_id),
    user_id: Optional[int] = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    """Create one row; an existing (billing month, service month, user name) is a 409"""
    record = BillingRepository(db).create(organization_id, _to_row(request_body), created_by=user_id)
    db.commit()
    record_upsert("billing")
    return _to_response(record)


@router.post("/billing/batch", response_model=BillingBatchResponse, status_code=201)
def create_billing_batch(
    request_body: BillingBatchRequest,
    organization_id: int = Depends(get_organization_id),
    user_id: Optional[int] = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    """Bulk import; rows whose natural key already exists are skipped and reported"""
    created, skipped = BillingRepository(db).create_batch(
        organization_id,
        [_to_row(item) for item in request_body.items],
        created_by=user_id,
    )
    logging.info(
        "Billing batch imported",
        extra={"organization_id": organization_id, "created_count": len(created), "skipped_count": len(skipped)},
    )
    db.commit()

    record_upsert("billing", len(created))
    if skipped:
        billing_duplicates_counter.inc(len(skipped))

    return BillingBatchResponse(
        created=[_to_response(record) for record in created],
        skipped=[
            BillingKey(billing_year_month=billing, service_year_month=service, user_name=name)
            for billing, service, name in skipped
        ],
    )


@router.patch("/billing/{billing_id}", response_model=BillingResponse)
def update_billing(
    billing_id: int,
    request_body: BillingUpdateRequest,
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    """Partial update, including toggling is_transfer"""
    changes = request_body.model_dump(exclude_unset=True, exclude_none=True)
    record = BillingRepository(db).update(organization_id, billing_id, changes)
    db.commit()
    record_upsert("billing")
    return _to_response(record)


@router.delete("/billing/{billing_id}", status_code=204)
def delete_billing(
    billing_id: int,
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    BillingRepository(db).delete(organization_id, billing_id)
    db.commit()


@router.post("/billing/batch-delete", response_model=BatchDeleteResponse)
def delete_billing_batch(
    request_body: BatchDeleteRequest,
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    """Delete the listed rows; ids of other organizations are ignored"""
    deleted = BillingRepository(db).delete_batch(organization_id, request_body.ids)
    db.commit()
    logging.info("Billing rows deleted", extra={"organization_id": organization_id, "deleted": deleted})
    return BatchDeleteResponse(deleted=deleted)
