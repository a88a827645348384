"""/v1/factoring - factoring terms of the organization"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from care_finance.api.dependencies import get_organization_id, get_user_id
from care_finance.api.v1.schemas import FactoringRequest, FactoringResponse
from care_finance.domain.exceptions import RecordNotFoundError
from care_finance.domain.models import FactoringTerms
from care_finance.infrastructure.database.repositories import FactoringRepository
from care_finance.infrastructure.database.session import get_db
from care_finance.infrastructure.observability.metrics import record_upsert

router = APIRouter()


@router.get("/factoring", response_model=FactoringResponse)
def get_factoring(
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    """Current setting; 404 means billing income is projected without factoring"""
    setting = FactoringRepository(db).get(organization_id)
    if setting is None:
        raise RecordNotFoundError("Factoring is not configured")
    return FactoringResponse.model_validate(setting, from_attributes=True)


@router.put("/factoring", response_model=FactoringResponse)
def upsert_factoring(
    request_body: FactoringRequest,
    organization_id: int = Depends(get_organization_id),
    user_id: Optional[int] = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    setting = FactoringRepository(db).upsert(
        organization_id,
        FactoringTerms(**request_body.model_dump()),
        created_by=user_id,
    )
    db.commit()
    record_upsert("factoring")
    logging.info("Factoring setting saved", extra={"organization_id": organization_id})
    return FactoringResponse.model_validate(setting, from_attributes=True)
