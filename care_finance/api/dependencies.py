"""Dependency injection for FastAPI endpoints"""

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from care_finance.config import RunMode, settings
from care_finance.domain.exceptions import MissingOrganizationError
from care_finance.infrastructure.database.repositories import SqlFinanceDataSource
from care_finance.infrastructure.database.session import get_db


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_organization_id(x_organization_id: Optional[int] = Header(default=None)) -> int:
    """
    Resolve the caller's organization.

    Every read and write is scoped to this id. In mockup mode a request
    without the header is bound to the configured mockup organization;
    in live mode it is rejected.
    """
    if x_organization_id is not None:
        return x_organization_id
    if settings.run_mode == RunMode.MOCKUP:
        return settings.mockup_organization_id
    raise MissingOrganizationError("Organization not set")


def get_user_id(x_user_id: Optional[int] = Header(default=None)) -> Optional[int]:
    """Acting user, recorded as created_by on writes"""
    return x_user_id


def get_data_source(db: Session = Depends(get_db)) -> SqlFinanceDataSource:
    """Provide the read model used by projections and reports"""
    return SqlFinanceDataSource(db)
