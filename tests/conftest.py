"""Pytest fixtures for testing"""

from datetime import date
from decimal import Decimal
from typing import Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from care_finance.api.main import create_app
from care_finance.domain.models import (
    BillingRow,
    ExpenseFigures,
    FactoringTerms,
    IncomeFigures,
    LoanCategory,
    LoanTerms,
    MonthStatus,
    RepaymentMethod,
)
from care_finance.infrastructure.database.models import Base
from care_finance.infrastructure.database.repositories import OrganizationRepository
from care_finance.infrastructure.database.session import get_db
from care_finance.utils.date_utils import YearMonth

# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def organization_id(db: Session) -> int:
    organization = OrganizationRepository(db).create("Sakura Home Care")
    db.commit()
    return organization.id


@pytest.fixture
def headers(organization_id: int) -> Dict[str, str]:
    """Request headers binding the test organization"""
    return {"X-Organization-Id": str(organization_id)}


class InMemoryDataSource:
    """FinanceDataSource over plain dicts, for domain tests"""

    def __init__(self):
        self.income: Dict[YearMonth, IncomeFigures] = {}
        self.expense: Dict[YearMonth, ExpenseFigures] = {}
        self.billing: List[BillingRow] = []
        self.factoring: Optional[FactoringTerms] = None
        self.loans: List[LoanTerms] = []
        self.statuses: Dict[YearMonth, MonthStatus] = {}
        self.bank_totals: Dict[YearMonth, int] = {}

    def get_income_records(self, organization_id, months):
        return {m: self.income[m] for m in months if m in self.income}

    def get_expense_records(self, organization_id, months):
        return {m: self.expense[m] for m in months if m in self.expense}

    def get_billing_rows(self, organization_id, billing_months):
        return [row for row in self.billing if row.billing_month in billing_months]

    def get_factoring_setting(self, organization_id):
        return self.factoring

    def get_active_loans(self, organization_id, as_of):
        # Unfiltered on purpose: the resolver applies the effective-date rule itself
        return list(self.loans)

    def get_month_statuses(self, organization_id, months):
        return {m: self.statuses[m] for m in months if m in self.statuses}

    def get_bank_totals(self, organization_id, months):
        return {m: self.bank_totals[m] for m in months if m in self.bank_totals}


@pytest.fixture
def data_source() -> InMemoryDataSource:
    return InMemoryDataSource()


@pytest.fixture
def equal_principal_loan() -> LoanTerms:
    """1,200,000 yen repaid 1,200/month at 0%, first repayment 2024-01-25"""
    return LoanTerms(
        repayment_method=RepaymentMethod.EQUAL_PRINCIPAL,
        annual_interest_rate=Decimal("0"),
        initial_borrowing_date=date(2023, 12, 20),
        repayment_due_day=25,
        initial_borrowing_amount=1_200_000,
        repayment_principal=1_200,
        first_repayment_date=date(2024, 1, 25),
        category=LoanCategory.LONG_TERM,
    )


@pytest.fixture
def equal_installment_loan() -> LoanTerms:
    """1,000,000 yen over an estimated 10 months at 1.5%"""
    return LoanTerms(
        repayment_method=RepaymentMethod.EQUAL_INSTALLMENT,
        annual_interest_rate=Decimal("1.500"),
        initial_borrowing_date=date(2024, 3, 10),
        repayment_due_day=31,
        initial_borrowing_amount=1_000_000,
        repayment_principal=100_000,
        first_repayment_date=date(2024, 4, 30),
    )
