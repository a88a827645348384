"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import asdict, dataclass, field, fields
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, TypeVar, Union

from care_finance.utils.date_utils import BillingMonth, YearMonth


class MonthStatus(str, Enum):
    """Per-month tag selecting the projection path"""

    ACTUAL = "actual"
    FORECAST = "forecast"
    PREDICTION = "prediction"


class RepaymentMethod(str, Enum):
    EQUAL_PRINCIPAL = "equal_principal"  # fixed principal, declining interest
    EQUAL_INSTALLMENT = "equal_installment"  # fixed payment, shifting split


class LoanCategory(str, Enum):
    REPRESENTATIVE = "representative"
    SHORT_TERM = "short_term"
    LONG_TERM = "long_term"


T = TypeVar("T", bound="LineItems")


@dataclass
class LineItems:
    """
    Base for monthly line-item records.

    Subclasses declare one int field per line item; the dataclass field list is
    the enumerated set of items, so no code addresses items by free-form keys.
    """

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def zeros(cls: type[T]) -> T:
        return cls()

    @classmethod
    def build(cls: type[T], value_for: Callable[[str], int]) -> T:
        """Construct a record by computing every field from its name"""
        return cls(**{name: int(value_for(name)) for name in cls.field_names()})

    @classmethod
    def from_source(cls: type[T], source: Union[Mapping[str, Any], Any, None]) -> T:
        """Copy fields from an ORM row, another record or a mapping; missing values become 0"""
        if source is None:
            return cls.zeros()
        if isinstance(source, Mapping):
            return cls.build(lambda name: source.get(name) or 0)
        return cls.build(lambda name: getattr(source, name, 0) or 0)

    def for_each_field(self: T, transform: Callable[[str, int], int]) -> T:
        """New record with `transform(name, value)` applied to every field"""
        return type(self).build(lambda name: transform(name, getattr(self, name)))

    def get(self, name: str) -> int:
        return getattr(self, name)

    def total(self) -> int:
        return sum(getattr(self, name) for name in self.field_names())

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class IncomeFigures(LineItems):
    """Income line items for one month (yen)"""

    insurance_income: int = 0
    user_burden_transfer: int = 0
    user_burden_withdrawal: int = 0
    factoring_income1: int = 0  # immediate factored advance
    factoring_income2: int = 0  # deferred factoring remainder
    other_business_income: int = 0
    representative_loan: int = 0
    short_term_loan: int = 0
    long_term_loan: int = 0
    interest_income: int = 0
    other_non_business_income: int = 0


@dataclass
class ExpenseFigures(LineItems):
    """Expense line items for one month (yen)"""

    personnel_cost: int = 0
    legal_welfare: int = 0
    advertising: int = 0
    travel_vehicle: int = 0
    communication: int = 0
    consumables: int = 0
    utilities: int = 0
    rent: int = 0
    lease_loan: int = 0
    payment_fee: int = 0
    payment_commission: int = 0
    payment_interest: int = 0
    miscellaneous: int = 0
    petty_cash: int = 0
    card_payment: int = 0
    representative_loan_repayment: int = 0
    short_term_loan_repayment: int = 0
    long_term_loan_repayment: int = 0
    regular_deposit: int = 0
    tax_payment: int = 0
    other_non_business_expense: int = 0


# Line items fed by the loan engine, per loan category
NEW_BORROWING_FIELDS: Dict[LoanCategory, str] = {
    LoanCategory.REPRESENTATIVE: "representative_loan",
    LoanCategory.SHORT_TERM: "short_term_loan",
    LoanCategory.LONG_TERM: "long_term_loan",
}

REPAYMENT_FIELDS: Dict[LoanCategory, str] = {
    LoanCategory.REPRESENTATIVE: "representative_loan_repayment",
    LoanCategory.SHORT_TERM: "short_term_loan_repayment",
    LoanCategory.LONG_TERM: "long_term_loan_repayment",
}


@dataclass
class LoanTerms:
    """Static terms of one borrowing instrument"""

    repayment_method: RepaymentMethod
    annual_interest_rate: Decimal  # percent, Decimal("1.500") == 1.5%
    initial_borrowing_date: date
    repayment_due_day: int  # day of month, 1-31
    initial_borrowing_amount: int
    repayment_principal: int  # fixed monthly principal installment
    first_repayment_date: date
    category: LoanCategory = LoanCategory.LONG_TERM
    is_active: bool = True
    effective_from: Optional[date] = None
    loan_id: Optional[int] = None

    @property
    def monthly_rate(self) -> float:
        return float(self.annual_interest_rate) / 12 / 100


@dataclass
class LoanRepayment:
    """Amortization result for one loan in one month"""

    repayment_amount: int
    principal_amount: int
    interest_amount: int
    remaining_principal: int


@dataclass
class LoanTotals:
    """Organization-level loan figures for one month"""

    repayment_by_category: Dict[LoanCategory, int] = field(
        default_factory=lambda: {category: 0 for category in LoanCategory}
    )
    new_borrowing_by_category: Dict[LoanCategory, int] = field(
        default_factory=lambda: {category: 0 for category in LoanCategory}
    )
    payment_interest: int = 0


@dataclass
class BillingRow:
    """Per-client billing line for one billing period"""

    billing_month: BillingMonth
    service_month: BillingMonth
    user_name: str
    total_cost: int = 0
    insurance_payment: int = 0
    public_payment: int = 0
    reduction: int = 0
    user_burden_transfer: int = 0
    user_burden_withdrawal: int = 0
    is_transfer: bool = False  # True: bank transfer, False: account withdrawal

    @property
    def user_burden(self) -> int:
        return self.user_burden_transfer + self.user_burden_withdrawal


@dataclass
class FactoringTerms:
    """Factoring configuration; rates in basis points (10000 == 100%)"""

    factoring_rate: int = 8000
    remaining_rate: int = 2000
    fee_rate: int = 70
    usage_fee: int = 2000
    payment_day: int = 15
    remaining_payment_day: int = 5


@dataclass
class BillingIncome:
    """Income figures derived from billing rows and factoring terms"""

    insurance_income: int = 0
    user_burden_transfer: int = 0
    user_burden_withdrawal: int = 0
    factoring_income1: int = 0
    factoring_income2: int = 0


@dataclass
class ReportMonth:
    """One column of the consolidated report"""

    year_month: YearMonth
    status: MonthStatus
    income: IncomeFigures
    expense: ExpenseFigures
    income_total: int
    expense_total: int
    monthly_balance: int
    cumulative_balance: int
    carry_over: int
    projected_bank_balance: int = 0
    bank_total_balance: Optional[int] = None


@dataclass
class BudgetPlanRow:
    """Sales budget for one month split into income channels"""

    year_month: str
    total_sales: int
    insurance_income: int
    user_burden: int


@dataclass
class ScheduledPayment:
    """Single due date in a loan's repayment schedule"""

    due_date: date
    repayment: LoanRepayment


@dataclass
class BudgetEntry:
    """Free-form budget amount keyed by month, category and item"""

    year_month: str  # YYYY-MM, or the legacy "__RATIO__" sentinel
    category: str
    item_name: str
    amount: int
