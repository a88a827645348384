"""POST /v1/organizations - tenant registration"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from care_finance.api.dependencies import get_organization_id
from care_finance.api.v1.schemas import OrganizationRequest, OrganizationResponse
from care_finance.domain.exceptions import RecordNotFoundError
from care_finance.infrastructure.database.repositories import OrganizationRepository
from care_finance.infrastructure.database.session import get_db

router = APIRouter()


@router.post("/organizations", response_model=OrganizationResponse, status_code=201)
def create_organization(request_body: OrganizationRequest, db: Session = Depends(get_db)):
    organization = OrganizationRepository(db).create(request_body.name)
    db.commit()
    logging.info("Organization created", extra={"organization_id": organization.id})
    return OrganizationResponse(organization_id=organization.id, name=organization.name)


@router.get("/organizations/current", response_model=OrganizationResponse)
def get_current_organization(
    organization_id: int = Depends(get_organization_id),
    db: Session = Depends(get_db),
):
    """Organization bound to the request"""
    organization = OrganizationRepository(db).get(organization_id)
    if organization is None:
        raise RecordNotFoundError(f"Organization {organization_id} not found")
    return OrganizationResponse(organization_id=organization.id, name=organization.name)
