"""SQLAlchemy ORM models for tenant financial records"""

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class Organization(Base):
    """Tenant boundary; every financial row belongs to one organization"""

    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    loans = relationship("Loan", back_populates="organization", cascade="all, delete-orphan")


class BankBalance(Base):
    """Month-end balances of up to five accounts"""

    __tablename__ = "bank_balances"
    __table_args__ = (UniqueConstraint("organization_id", "year_month", name="uq_bank_balance_month"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    year_month = Column(String(7), nullable=False)  # YYYY-MM
    balance1 = Column(BigInteger, nullable=False, default=0)
    balance2 = Column(BigInteger, nullable=False, default=0)
    balance3 = Column(BigInteger, nullable=False, default=0)
    balance4 = Column(BigInteger, nullable=False, default=0)
    balance5 = Column(BigInteger, nullable=False, default=0)
    total_balance = Column(BigInteger, nullable=False, default=0)  # computed at write time
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class IncomeRecord(Base):
    """Actual income line items for one month"""

    __tablename__ = "income_records"
    __table_args__ = (UniqueConstraint("organization_id", "year_month", name="uq_income_month"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    year_month = Column(String(7), nullable=False)
    insurance_income = Column(BigInteger, nullable=False, default=0)
    user_burden_transfer = Column(BigInteger, nullable=False, default=0)
    user_burden_withdrawal = Column(BigInteger, nullable=False, default=0)
    factoring_income1 = Column(BigInteger, nullable=False, default=0)
    factoring_income2 = Column(BigInteger, nullable=False, default=0)
    other_business_income = Column(BigInteger, nullable=False, default=0)
    representative_loan = Column(BigInteger, nullable=False, default=0)
    short_term_loan = Column(BigInteger, nullable=False, default=0)
    long_term_loan = Column(BigInteger, nullable=False, default=0)
    interest_income = Column(BigInteger, nullable=False, default=0)
    other_non_business_income = Column(BigInteger, nullable=False, default=0)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class ExpenseRecord(Base):
    """Actual expense line items for one month"""

    __tablename__ = "expense_records"
    __table_args__ = (UniqueConstraint("organization_id", "year_month", name="uq_expense_month"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    year_month = Column(String(7), nullable=False)
    personnel_cost = Column(BigInteger, nullable=False, default=0)
    legal_welfare = Column(BigInteger, nullable=False, default=0)
    advertising = Column(BigInteger, nullable=False, default=0)
    travel_vehicle = Column(BigInteger, nullable=False, default=0)
    communication = Column(BigInteger, nullable=False, default=0)
    consumables = Column(BigInteger, nullable=False, default=0)
    utilities = Column(BigInteger, nullable=False, default=0)
    rent = Column(BigInteger, nullable=False, default=0)
    lease_loan = Column(BigInteger, nullable=False, default=0)
    payment_fee = Column(BigInteger, nullable=False, default=0)
    payment_commission = Column(BigInteger, nullable=False, default=0)
    payment_interest = Column(BigInteger, nullable=False, default=0)
    miscellaneous = Column(BigInteger, nullable=False, default=0)
    petty_cash = Column(BigInteger, nullable=False, default=0)
    card_payment = Column(BigInteger, nullable=False, default=0)
    representative_loan_repayment = Column(BigInteger, nullable=False, default=0)
    short_term_loan_repayment = Column(BigInteger, nullable=False, default=0)
    long_term_loan_repayment = Column(BigInteger, nullable=False, default=0)
    regular_deposit = Column(BigInteger, nullable=False, default=0)
    tax_payment = Column(BigInteger, nullable=False, default=0)
    other_non_business_expense = Column(BigInteger, nullable=False, default=0)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class BillingRecord(Base):
    """Per-client billing line; (billing month, service month, user name) is the natural key"""

    __tablename__ = "billing_records"
    __table_args__ = (
        UniqueConstraint(
            "organization_id",
            "billing_year_month",
            "service_year_month",
            "user_name",
            name="uq_billing_natural_key",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    billing_year_month = Column(String(6), nullable=False, index=True)  # YYYYMM
    service_year_month = Column(String(6), nullable=False)  # YYYYMM
    user_name = Column(String(255), nullable=False)
    total_cost = Column(BigInteger, nullable=False, default=0)
    insurance_payment = Column(BigInteger, nullable=False, default=0)
    public_payment = Column(BigInteger, nullable=False, default=0)
    reduction = Column(BigInteger, nullable=False, default=0)
    user_burden_transfer = Column(BigInteger, nullable=False, default=0)
    user_burden_withdrawal = Column(BigInteger, nullable=False, default=0)
    is_transfer = Column(Boolean, nullable=False, default=False)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class FactoringSetting(Base):
    """Factoring terms; the most recently created row of an organization applies"""

    __tablename__ = "factoring_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    factoring_rate = Column(Integer, nullable=False, default=8000)  # basis points
    remaining_rate = Column(Integer, nullable=False, default=2000)
    fee_rate = Column(Integer, nullable=False, default=70)
    usage_fee = Column(BigInteger, nullable=False, default=2000)  # yen
    payment_day = Column(Integer, nullable=False, default=15)
    remaining_payment_day = Column(Integer, nullable=False, default=5)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class Budget(Base):
    """Budget amount per month, category and item"""

    __tablename__ = "budgets"
    __table_args__ = (
        UniqueConstraint("organization_id", "year_month", "category", "item_name", name="uq_budget_item"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    year_month = Column(String(16), nullable=False)  # YYYY-MM or "__RATIO__"
    category = Column(String(50), nullable=False)
    item_name = Column(String(255), nullable=False)
    amount = Column(BigInteger, nullable=False, default=0)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class Loan(Base):
    """Borrowing instrument with its static repayment terms"""

    __tablename__ = "loans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    financial_institution = Column(String(255), nullable=False)
    branch_name = Column(String(255), nullable=True)
    category = Column(String(32), nullable=False, default="long_term")
    repayment_method = Column(String(32), nullable=False)  # equal_principal | equal_installment
    annual_interest_rate = Column(Numeric(5, 3), nullable=False, default=0)  # percent
    initial_borrowing_date = Column(Date, nullable=False)
    repayment_due_date = Column(Integer, nullable=False)  # day of month
    initial_borrowing_amount = Column(BigInteger, nullable=False, default=0)
    repayment_principal = Column(BigInteger, nullable=False, default=0)  # fixed monthly principal
    first_repayment_date = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    effective_from = Column(Date, nullable=False)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    organization = relationship("Organization", back_populates="loans")


class LoanHistory(Base):
    """Append-only audit trail of loan mutations"""

    __tablename__ = "loan_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    loan_id = Column(Integer, nullable=False, index=True)  # survives hard deletes of the loan
    organization_id = Column(Integer, nullable=False, index=True)
    action = Column(Text, nullable=False)  # create | update | activate | deactivate
    effective_from = Column(Date, nullable=False)
    previous_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class MonthStatusRecord(Base):
    """Status tag of one month"""

    __tablename__ = "month_statuses"
    __table_args__ = (UniqueConstraint("organization_id", "year_month", name="uq_month_status"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    year_month = Column(String(7), nullable=False)
    status = Column(Text, nullable=False, default="actual")
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
