"""Data access layer for tenant financial records"""

import logging
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Generic, Iterator, List, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from care_finance.domain.exceptions import DuplicateRecordError, PersistenceUnavailableError, RecordNotFoundError
from care_finance.domain.models import (
    BillingRow,
    BudgetEntry,
    ExpenseFigures,
    FactoringTerms,
    IncomeFigures,
    LineItems,
    LoanCategory,
    LoanTerms,
    MonthStatus,
    RepaymentMethod,
)
from care_finance.infrastructure.database.models import (
    BankBalance,
    BillingRecord,
    Budget,
    ExpenseRecord,
    FactoringSetting,
    IncomeRecord,
    Loan,
    LoanHistory,
    MonthStatusRecord,
    Organization,
)
from care_finance.infrastructure.observability.metrics import persistence_failure_counter
from care_finance.utils.date_utils import BillingMonth, YearMonth

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=LineItems)


@contextmanager
def storage_errors() -> Iterator[None]:
    """Translate connection-level database failures into PersistenceUnavailableError"""
    try:
        yield
    except OperationalError as e:
        persistence_failure_counter.inc()
        logger.error("Database unavailable: %s", e)
        raise PersistenceUnavailableError("Database unavailable") from e


class OrganizationRepository:
    """Repository for tenants"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, name: str) -> Organization:
        organization = Organization(name=name)
        self.db.add(organization)
        self.db.flush()  # Get ID without committing
        return organization

    def get(self, organization_id: int) -> Optional[Organization]:
        return self.db.query(Organization).filter(Organization.id == organization_id).first()


class BankBalanceRepository:
    """Repository for month-end bank balances"""

    def __init__(self, db: Session):
        self.db = db

    def list(self, organization_id: int, limit: int = 12) -> List[BankBalance]:
        """Most recent months first"""
        return (
            self.db.query(BankBalance)
            .filter(BankBalance.organization_id == organization_id)
            .order_by(BankBalance.year_month.desc())
            .limit(limit)
            .all()
        )

    def get(self, organization_id: int, year_month: YearMonth) -> Optional[BankBalance]:
        return (
            self.db.query(BankBalance)
            .filter(BankBalance.organization_id == organization_id, BankBalance.year_month == str(year_month))
            .first()
        )

    def totals(self, organization_id: int, months: Sequence[YearMonth]) -> Dict[YearMonth, int]:
        rows = (
            self.db.query(BankBalance)
            .filter(
                BankBalance.organization_id == organization_id,
                BankBalance.year_month.in_([str(m) for m in months]),
            )
            .all()
        )
        return {YearMonth.parse(row.year_month): row.total_balance for row in rows}

    def upsert(
        self,
        organization_id: int,
        year_month: YearMonth,
        balances: Sequence[int],
        created_by: Optional[int] = None,
    ) -> BankBalance:
        """Replace the month's balances; total_balance is the sum of the five sub-balances"""
        values = list(balances)[:5] + [0] * (5 - len(balances))
        row = self.get(organization_id, year_month)
        if row is None:
            row = BankBalance(organization_id=organization_id, year_month=str(year_month))
            self.db.add(row)

        row.balance1, row.balance2, row.balance3, row.balance4, row.balance5 = values
        row.total_balance = sum(values)
        row.created_by = created_by
        self.db.flush()
        return row


class MonthlyRecordRepository(Generic[F]):
    """Shared upsert/read logic for income and expense records"""

    model: Type[Any]
    figures: Type[F]

    def __init__(self, db: Session):
        self.db = db

    def list(self, organization_id: int, limit: int = 12) -> List[Any]:
        """Most recent months first"""
        return (
            self.db.query(self.model)
            .filter(self.model.organization_id == organization_id)
            .order_by(self.model.year_month.desc())
            .limit(limit)
            .all()
        )

    def get(self, organization_id: int, year_month: YearMonth) -> Optional[Any]:
        return (
            self.db.query(self.model)
            .filter(self.model.organization_id == organization_id, self.model.year_month == str(year_month))
            .first()
        )

    def get_many(self, organization_id: int, months: Sequence[YearMonth]) -> Dict[YearMonth, F]:
        rows = (
            self.db.query(self.model)
            .filter(
                self.model.organization_id == organization_id,
                self.model.year_month.in_([str(m) for m in months]),
            )
            .all()
        )
        return {YearMonth.parse(row.year_month): self.figures.from_source(row) for row in rows}

    def upsert(self, organization_id: int, year_month: YearMonth, figures: F, created_by: Optional[int] = None) -> Any:
        """Replace the month's row (last write wins)"""
        row = self.get(organization_id, year_month)
        if row is None:
            row = self.model(organization_id=organization_id, year_month=str(year_month))
            self.db.add(row)

        for name in self.figures.field_names():
            setattr(row, name, figures.get(name))
        row.created_by = created_by
        self.db.flush()
        return row


class IncomeRecordRepository(MonthlyRecordRepository[IncomeFigures]):
    model = IncomeRecord
    figures = IncomeFigures


class ExpenseRecordRepository(MonthlyRecordRepository[ExpenseFigures]):
    model = ExpenseRecord
    figures = ExpenseFigures


class BillingRepository:
    """Repository for per-client billing rows"""

    def __init__(self, db: Session):
        self.db = db

    def _scoped(self, organization_id: int):
        return self.db.query(BillingRecord).filter(BillingRecord.organization_id == organization_id)

    def search(
        self,
        organization_id: int,
        billing_month: Optional[BillingMonth] = None,
        service_month: Optional[BillingMonth] = None,
        user_name: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Tuple[List[BillingRecord], int]:
        """Paged rows, newest billing month first, with the total match count"""
        query = self._scoped(organization_id)
        if billing_month is not None:
            query = query.filter(BillingRecord.billing_year_month == str(billing_month))
        if service_month is not None:
            query = query.filter(BillingRecord.service_year_month == str(service_month))
        if user_name:
            query = query.filter(BillingRecord.user_name.contains(user_name, autoescape=True))

        total = query.count()
        rows = (
            query.order_by(BillingRecord.billing_year_month.desc(), BillingRecord.id.desc())
            .offset((max(page, 1) - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return rows, total

    def get(self, organization_id: int, billing_id: int) -> BillingRecord:
        row = self._scoped(organization_id).filter(BillingRecord.id == billing_id).first()
        if row is None:
            raise RecordNotFoundError(f"Billing row {billing_id} not found")
        return row

    def for_months(self, organization_id: int, billing_months: Sequence[BillingMonth]) -> List[BillingRecord]:
        return (
            self._scoped(organization_id)
            .filter(BillingRecord.billing_year_month.in_([str(m) for m in billing_months]))
            .all()
        )

    def existing_keys(self, organization_id: int) -> set:
        rows = self.db.query(
            BillingRecord.billing_year_month,
            BillingRecord.service_year_month,
            BillingRecord.user_name,
        ).filter(BillingRecord.organization_id == organization_id)
        return {tuple(row) for row in rows}

    @staticmethod
    def natural_key(row: BillingRow) -> Tuple[str, str, str]:
        return str(row.billing_month), str(row.service_month), row.user_name

    def _new_record(self, organization_id: int, row: BillingRow, created_by: Optional[int]) -> BillingRecord:
        return BillingRecord(
            organization_id=organization_id,
            billing_year_month=str(row.billing_month),
            service_year_month=str(row.service_month),
            user_name=row.user_name,
            total_cost=row.total_cost,
            insurance_payment=row.insurance_payment,
            public_payment=row.public_payment,
            reduction=row.reduction,
            user_burden_transfer=row.user_burden_transfer,
            user_burden_withdrawal=row.user_burden_withdrawal,
            is_transfer=row.is_transfer,
            created_by=created_by,
        )

    def create(self, organization_id: int, row: BillingRow, created_by: Optional[int] = None) -> BillingRecord:
        """Insert one row; the natural key must be unused"""
        if self.natural_key(row) in self.existing_keys(organization_id):
            raise DuplicateRecordError(f"Billing row already exists: {self.natural_key(row)}")
        record = self._new_record(organization_id, row, created_by)
        self.db.add(record)
        self.db.flush()
        return record

    def create_batch(
        self,
        organization_id: int,
        rows: Sequence[BillingRow],
        created_by: Optional[int] = None,
    ) -> Tuple[List[BillingRecord], List[Tuple[str, str, str]]]:
        """Insert rows whose natural key is new; returns (created, skipped keys)"""
        seen = self.existing_keys(organization_id)
        created, skipped = [], []
        for row in rows:
            key = self.natural_key(row)
            if key in seen:
                skipped.append(key)
                continue
            seen.add(key)
            record = self._new_record(organization_id, row, created_by)
            self.db.add(record)
            created.append(record)
        self.db.flush()
        return created, skipped

    def update(self, organization_id: int, billing_id: int, changes: Dict[str, Any]) -> BillingRecord:
        record = self.get(organization_id, billing_id)
        for name, value in changes.items():
            setattr(record, name, value)
        try:
            self.db.flush()
        except IntegrityError as e:
            raise DuplicateRecordError(f"Billing row already exists for user {record.user_name}") from e
        return record

    def delete(self, organization_id: int, billing_id: int) -> None:
        self.db.delete(self.get(organization_id, billing_id))
        self.db.flush()

    def delete_batch(self, organization_id: int, billing_ids: Sequence[int]) -> int:
        if not billing_ids:
            return 0
        deleted = (
            self._scoped(organization_id)
            .filter(BillingRecord.id.in_(list(billing_ids)))
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return deleted


class FactoringRepository:
    """Repository for factoring settings"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, organization_id: int) -> Optional[FactoringSetting]:
        """Most recently created setting wins when duplicates exist"""
        return (
            self.db.query(FactoringSetting)
            .filter(FactoringSetting.organization_id == organization_id)
            .order_by(FactoringSetting.created_at.desc(), FactoringSetting.id.desc())
            .first()
        )

    def upsert(self, organization_id: int, terms: FactoringTerms, created_by: Optional[int] = None) -> FactoringSetting:
        setting = self.get(organization_id)
        if setting is None:
            setting = FactoringSetting(organization_id=organization_id)
            self.db.add(setting)

        setting.factoring_rate = terms.factoring_rate
        setting.remaining_rate = terms.remaining_rate
        setting.fee_rate = terms.fee_rate
        setting.usage_fee = terms.usage_fee
        setting.payment_day = terms.payment_day
        setting.remaining_payment_day = terms.remaining_payment_day
        setting.created_by = created_by
        self.db.flush()
        return setting


class BudgetRepository:
    """Repository for budget items"""

    def __init__(self, db: Session):
        self.db = db

    def list(self, organization_id: int, year_month: Optional[str] = None) -> List[Budget]:
        query = self.db.query(Budget).filter(Budget.organization_id == organization_id)
        if year_month:
            query = query.filter(Budget.year_month == year_month)
        return query.order_by(Budget.year_month.asc(), Budget.id.asc()).all()

    def upsert(self, organization_id: int, entry: BudgetEntry, created_by: Optional[int] = None) -> Budget:
        budget = (
            self.db.query(Budget)
            .filter(
                Budget.organization_id == organization_id,
                Budget.year_month == entry.year_month,
                Budget.category == entry.category,
                Budget.item_name == entry.item_name,
            )
            .first()
        )
        if budget is None:
            budget = Budget(
                organization_id=organization_id,
                year_month=entry.year_month,
                category=entry.category,
                item_name=entry.item_name,
            )
            self.db.add(budget)

        budget.amount = entry.amount
        budget.created_by = created_by
        self.db.flush()
        return budget


def _loan_snapshot(loan: Loan) -> Dict[str, Any]:
    """JSON-safe copy of a loan's mutable state"""
    snapshot = {}
    for name in (
        "financial_institution",
        "branch_name",
        "category",
        "repayment_method",
        "annual_interest_rate",
        "initial_borrowing_date",
        "repayment_due_date",
        "initial_borrowing_amount",
        "repayment_principal",
        "first_repayment_date",
        "is_active",
        "effective_from",
    ):
        value = getattr(loan, name)
        if isinstance(value, date):
            value = value.isoformat()
        elif isinstance(value, Decimal):
            value = str(value)
        snapshot[name] = value
    return snapshot


class LoanRepository:
    """Repository for loans; every mutation appends a LoanHistory row"""

    def __init__(self, db: Session):
        self.db = db

    def _scoped(self, organization_id: int):
        return self.db.query(Loan).filter(Loan.organization_id == organization_id)

    def list(self, organization_id: int) -> List[Loan]:
        return self._scoped(organization_id).order_by(Loan.financial_institution.asc(), Loan.branch_name.asc()).all()

    def get(self, organization_id: int, loan_id: int) -> Loan:
        loan = self._scoped(organization_id).filter(Loan.id == loan_id).first()
        if loan is None:
            raise RecordNotFoundError(f"Loan {loan_id} not found")
        return loan

    def active(self, organization_id: int, as_of: date) -> List[Loan]:
        """Enabled loans whose current state applies on or before as_of"""
        return (
            self._scoped(organization_id)
            .filter(Loan.is_active.is_(True), Loan.effective_from <= as_of)
            .order_by(Loan.financial_institution.asc(), Loan.branch_name.asc())
            .all()
        )

    def _record_history(
        self,
        loan: Loan,
        action: str,
        previous: Optional[Dict[str, Any]],
        created_by: Optional[int],
    ) -> None:
        self.db.add(
            LoanHistory(
                loan_id=loan.id,
                organization_id=loan.organization_id,
                action=action,
                effective_from=loan.effective_from,
                previous_values=previous,
                new_values=_loan_snapshot(loan),
                created_by=created_by,
            )
        )

    def create(
        self,
        organization_id: int,
        financial_institution: str,
        branch_name: Optional[str],
        terms: LoanTerms,
        created_by: Optional[int] = None,
    ) -> Loan:
        loan = Loan(
            organization_id=organization_id,
            financial_institution=financial_institution,
            branch_name=branch_name,
            category=terms.category.value,
            repayment_method=terms.repayment_method.value,
            annual_interest_rate=terms.annual_interest_rate,
            initial_borrowing_date=terms.initial_borrowing_date,
            repayment_due_date=terms.repayment_due_day,
            initial_borrowing_amount=terms.initial_borrowing_amount,
            repayment_principal=terms.repayment_principal,
            first_repayment_date=terms.first_repayment_date,
            is_active=terms.is_active,
            effective_from=terms.effective_from or terms.initial_borrowing_date,
            created_by=created_by,
        )
        self.db.add(loan)
        self.db.flush()
        self._record_history(loan, "create", None, created_by)
        self.db.flush()
        return loan

    def update(
        self,
        organization_id: int,
        loan_id: int,
        changes: Dict[str, Any],
        created_by: Optional[int] = None,
    ) -> Loan:
        loan = self.get(organization_id, loan_id)
        previous = _loan_snapshot(loan)
        for name, value in changes.items():
            setattr(loan, name, value)
        self.db.flush()
        self._record_history(loan, "update", previous, created_by)
        self.db.flush()
        return loan

    def set_active(
        self,
        organization_id: int,
        loan_id: int,
        is_active: bool,
        effective_from: date,
        created_by: Optional[int] = None,
    ) -> Loan:
        loan = self.get(organization_id, loan_id)
        previous = _loan_snapshot(loan)
        loan.is_active = is_active
        loan.effective_from = effective_from
        self.db.flush()
        self._record_history(loan, "activate" if is_active else "deactivate", previous, created_by)
        self.db.flush()
        return loan

    def delete(self, organization_id: int, loan_id: int) -> None:
        self.db.delete(self.get(organization_id, loan_id))
        self.db.flush()

    def history(self, organization_id: int, loan_id: int) -> List[LoanHistory]:
        return (
            self.db.query(LoanHistory)
            .filter(LoanHistory.organization_id == organization_id, LoanHistory.loan_id == loan_id)
            .order_by(LoanHistory.created_at.desc(), LoanHistory.id.desc())
            .all()
        )


class MonthStatusRepository:
    """Repository for per-month status tags"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, organization_id: int, year_month: YearMonth) -> Optional[MonthStatusRecord]:
        return (
            self.db.query(MonthStatusRecord)
            .filter(
                MonthStatusRecord.organization_id == organization_id,
                MonthStatusRecord.year_month == str(year_month),
            )
            .first()
        )

    def list(self, organization_id: int, months: Optional[Sequence[YearMonth]] = None) -> List[MonthStatusRecord]:
        query = self.db.query(MonthStatusRecord).filter(MonthStatusRecord.organization_id == organization_id)
        if months:
            query = query.filter(MonthStatusRecord.year_month.in_([str(m) for m in months]))
        return query.order_by(MonthStatusRecord.year_month.desc()).all()

    def upsert(
        self,
        organization_id: int,
        year_month: YearMonth,
        status: MonthStatus,
        created_by: Optional[int] = None,
    ) -> MonthStatusRecord:
        record = self.get(organization_id, year_month)
        if record is None:
            record = MonthStatusRecord(organization_id=organization_id, year_month=str(year_month))
            self.db.add(record)
        record.status = status.value
        record.created_by = created_by
        self.db.flush()
        return record


def to_loan_terms(loan: Loan) -> LoanTerms:
    return LoanTerms(
        repayment_method=RepaymentMethod(loan.repayment_method),
        annual_interest_rate=Decimal(str(loan.annual_interest_rate or 0)),
        initial_borrowing_date=loan.initial_borrowing_date,
        repayment_due_day=loan.repayment_due_date,
        initial_borrowing_amount=loan.initial_borrowing_amount or 0,
        repayment_principal=loan.repayment_principal or 0,
        first_repayment_date=loan.first_repayment_date,
        category=LoanCategory(loan.category or LoanCategory.LONG_TERM.value),
        is_active=loan.is_active,
        effective_from=loan.effective_from,
        loan_id=loan.id,
    )


def to_billing_row(record: BillingRecord) -> BillingRow:
    return BillingRow(
        billing_month=BillingMonth.parse(record.billing_year_month),
        service_month=BillingMonth.parse(record.service_year_month),
        user_name=record.user_name,
        total_cost=record.total_cost or 0,
        insurance_payment=record.insurance_payment or 0,
        public_payment=record.public_payment or 0,
        reduction=record.reduction or 0,
        user_burden_transfer=record.user_burden_transfer or 0,
        user_burden_withdrawal=record.user_burden_withdrawal or 0,
        is_transfer=bool(record.is_transfer),
    )


def to_factoring_terms(setting: FactoringSetting) -> FactoringTerms:
    return FactoringTerms(
        factoring_rate=setting.factoring_rate,
        remaining_rate=setting.remaining_rate,
        fee_rate=setting.fee_rate,
        usage_fee=setting.usage_fee,
        payment_day=setting.payment_day,
        remaining_payment_day=setting.remaining_payment_day,
    )


class SqlFinanceDataSource:
    """FinanceDataSource backed by the SQLAlchemy repositories"""

    def __init__(self, db: Session):
        self.income = IncomeRecordRepository(db)
        self.expense = ExpenseRecordRepository(db)
        self.billing = BillingRepository(db)
        self.factoring = FactoringRepository(db)
        self.loans = LoanRepository(db)
        self.statuses = MonthStatusRepository(db)
        self.balances = BankBalanceRepository(db)

    def get_income_records(self, organization_id: int, months: Sequence[YearMonth]) -> Dict[YearMonth, IncomeFigures]:
        with storage_errors():
            return self.income.get_many(organization_id, months)

    def get_expense_records(self, organization_id: int, months: Sequence[YearMonth]) -> Dict[YearMonth, ExpenseFigures]:
        with storage_errors():
            return self.expense.get_many(organization_id, months)

    def get_billing_rows(self, organization_id: int, billing_months: Sequence[BillingMonth]) -> List[BillingRow]:
        with storage_errors():
            return [to_billing_row(record) for record in self.billing.for_months(organization_id, billing_months)]

    def get_factoring_setting(self, organization_id: int) -> Optional[FactoringTerms]:
        with storage_errors():
            setting = self.factoring.get(organization_id)
        return to_factoring_terms(setting) if setting is not None else None

    def get_active_loans(self, organization_id: int, as_of: date) -> List[LoanTerms]:
        with storage_errors():
            return [to_loan_terms(loan) for loan in self.loans.active(organization_id, as_of)]

    def get_month_statuses(self, organization_id: int, months: Sequence[YearMonth]) -> Dict[YearMonth, MonthStatus]:
        with storage_errors():
            records = self.statuses.list(organization_id, months)
        return {YearMonth.parse(record.year_month): MonthStatus(record.status) for record in records}

    def get_bank_totals(self, organization_id: int, months: Sequence[YearMonth]) -> Dict[YearMonth, int]:
        with storage_errors():
            return self.balances.totals(organization_id, months)
