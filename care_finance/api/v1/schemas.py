"""Pydantic schemas for API request/response validation"""

from datetime import date
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Optional, Type

from pydantic import AfterValidator, BaseModel, BeforeValidator, Field, create_model

from care_finance.domain.budget import RATIO_YEAR_MONTH
from care_finance.domain.models import ExpenseFigures, IncomeFigures, LineItems, LoanCategory, MonthStatus, RepaymentMethod
from care_finance.domain.money import normalize_numeric_input
from care_finance.utils.date_utils import YearMonth, parse_billing_month

# Free-form money input ("¥1,234", "１２３", 12.5, None) normalized to whole yen
Amount = Annotated[int, BeforeValidator(normalize_numeric_input)]

YearMonthStr = Annotated[str, AfterValidator(lambda value: str(YearMonth.parse(value)))]

# Accepts YYYYMM or YYYY-MM, stored as YYYYMM
BillingMonthStr = Annotated[str, AfterValidator(lambda value: str(parse_billing_month(value)))]


def _budget_month(value: str) -> str:
    if value == RATIO_YEAR_MONTH:
        return value
    return str(YearMonth.parse(value))


# YYYY-MM, or the legacy global ratio key
BudgetMonthStr = Annotated[str, AfterValidator(_budget_month)]


class OrganizationRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class OrganizationResponse(BaseModel):
    organization_id: int
    name: str


class BankBalanceRequest(BaseModel):
    """Request body for PUT /v1/bank-balances"""

    year_month: YearMonthStr
    balance1: Amount = 0
    balance2: Amount = 0
    balance3: Amount = 0
    balance4: Amount = 0
    balance5: Amount = 0

    def balances(self) -> List[int]:
        return [self.balance1, self.balance2, self.balance3, self.balance4, self.balance5]


class BankBalanceResponse(BaseModel):
    year_month: str
    balance1: int
    balance2: int
    balance3: int
    balance4: int
    balance5: int
    total_balance: int


def _record_request(name: str, figures: Type[LineItems]) -> Type[BaseModel]:
    """Upsert body with one normalized Amount per line item"""
    line_items: Dict[str, Any] = {field_name: (Amount, 0) for field_name in figures.field_names()}
    return create_model(name, year_month=(YearMonthStr, ...), **line_items)


IncomeRecordRequest = _record_request("IncomeRecordRequest", IncomeFigures)
ExpenseRecordRequest = _record_request("ExpenseRecordRequest", ExpenseFigures)


class RecordResponse(BaseModel):
    """Income or expense line items for one month"""

    year_month: str
    status: Optional[MonthStatus] = None  # set on projected responses
    items: Dict[str, int]
    total: int


class BillingRequest(BaseModel):
    """Request body for POST /v1/billing"""

    billing_year_month: BillingMonthStr
    service_year_month: BillingMonthStr
    user_name: str = Field(..., min_length=1, max_length=255)
    total_cost: Amount = 0
    insurance_payment: Amount = 0
    public_payment: Amount = 0
    reduction: Amount = 0
    user_burden_transfer: Amount = 0
    user_burden_withdrawal: Amount = 0
    is_transfer: bool = False


class BillingUpdateRequest(BaseModel):
    """Partial update; omitted fields are left unchanged"""

    billing_year_month: Optional[BillingMonthStr] = None
    service_year_month: Optional[BillingMonthStr] = None
    user_name: Optional[str] = Field(None, min_length=1, max_length=255)
    total_cost: Optional[Amount] = None
    insurance_payment: Optional[Amount] = None
    public_payment: Optional[Amount] = None
    reduction: Optional[Amount] = None
    user_burden_transfer: Optional[Amount] = None
    user_burden_withdrawal: Optional[Amount] = None
    is_transfer: Optional[bool] = None


class BillingResponse(BaseModel):
    id: int
    billing_year_month: str
    service_year_month: str
    user_name: str
    total_cost: int
    insurance_payment: int
    public_payment: int
    reduction: int
    user_burden_transfer: int
    user_burden_withdrawal: int
    is_transfer: bool


class BillingPage(BaseModel):
    items: List[BillingResponse]
    total: int
    page: int
    page_size: int


class BillingBatchRequest(BaseModel):
    items: List[BillingRequest] = Field(..., min_length=1)


class BillingKey(BaseModel):
    billing_year_month: str
    service_year_month: str
    user_name: str


class BillingBatchResponse(BaseModel):
    created: List[BillingResponse]
    skipped: List[BillingKey]


class BatchDeleteRequest(BaseModel):
    ids: List[int]


class BatchDeleteResponse(BaseModel):
    deleted: int


class FactoringRequest(BaseModel):
    """Factoring terms; rates in basis points"""

    factoring_rate: int = Field(8000, ge=0, le=10000)
    remaining_rate: int = Field(2000, ge=0, le=10000)
    fee_rate: int = Field(70, ge=0, le=10000)
    usage_fee: Amount = 2000
    payment_day: int = Field(15, ge=1, le=31)
    remaining_payment_day: int = Field(5, ge=1, le=31)


class FactoringResponse(BaseModel):
    factoring_rate: int
    remaining_rate: int
    fee_rate: int
    usage_fee: int
    payment_day: int
    remaining_payment_day: int


class BudgetRequest(BaseModel):
    year_month: BudgetMonthStr
    category: str = Field(..., min_length=1, max_length=50)
    item_name: str = Field(..., min_length=1, max_length=255)
    amount: Amount = 0


class BudgetResponse(BaseModel):
    id: int
    year_month: str
    category: str
    item_name: str
    amount: int


class BudgetPlanRowSchema(BaseModel):
    year_month: str
    total_sales: int
    insurance_income: int
    user_burden: int


class LoanRequest(BaseModel):
    """Request body for POST /v1/loans"""

    financial_institution: str = Field(..., min_length=1, max_length=255)
    branch_name: Optional[str] = Field(None, max_length=255)
    category: LoanCategory = LoanCategory.LONG_TERM
    repayment_method: RepaymentMethod
    annual_interest_rate: Decimal = Field(..., ge=0, max_digits=5, decimal_places=3)  # percent
    initial_borrowing_date: date
    repayment_due_date: int = Field(..., ge=1, le=31, description="Day of month")
    initial_borrowing_amount: Amount
    repayment_principal: Amount
    first_repayment_date: date
    is_active: bool = True
    effective_from: Optional[date] = None


class LoanUpdateRequest(BaseModel):
    """Partial update; omitted fields are left unchanged"""

    financial_institution: Optional[str] = Field(None, min_length=1, max_length=255)
    branch_name: Optional[str] = Field(None, max_length=255)
    category: Optional[LoanCategory] = None
    repayment_method: Optional[RepaymentMethod] = None
    annual_interest_rate: Optional[Decimal] = Field(None, ge=0, max_digits=5, decimal_places=3)
    initial_borrowing_date: Optional[date] = None
    repayment_due_date: Optional[int] = Field(None, ge=1, le=31)
    initial_borrowing_amount: Optional[Amount] = None
    repayment_principal: Optional[Amount] = None
    first_repayment_date: Optional[date] = None
    effective_from: Optional[date] = None


class LoanToggleRequest(BaseModel):
    is_active: bool
    effective_from: date


class LoanResponse(BaseModel):
    id: int
    financial_institution: str
    branch_name: Optional[str]
    category: LoanCategory
    repayment_method: RepaymentMethod
    annual_interest_rate: Decimal
    initial_borrowing_date: date
    repayment_due_date: int
    initial_borrowing_amount: int
    repayment_principal: int
    first_repayment_date: date
    is_active: bool
    effective_from: date


class LoanHistoryItem(BaseModel):
    id: int
    action: str
    effective_from: date
    previous_values: Optional[Dict[str, Any]]
    new_values: Optional[Dict[str, Any]]
    created_by: Optional[int]
    created_at: str


class LoanScheduleItem(BaseModel):
    """Single due date in a repayment schedule"""

    due_date: date
    repayment_amount: int
    principal_amount: int
    interest_amount: int
    remaining_principal: int


class LoanTotalsResponse(BaseModel):
    year_month: str
    repayment_by_category: Dict[LoanCategory, int]
    new_borrowing_by_category: Dict[LoanCategory, int]
    payment_interest: int


class MonthStatusRequest(BaseModel):
    year_month: YearMonthStr
    status: MonthStatus


class MonthStatusResponse(BaseModel):
    year_month: str
    status: MonthStatus


class ReportMonthSchema(BaseModel):
    """One column of the consolidated monthly report"""

    year_month: str
    status: MonthStatus
    income: Dict[str, int]
    expense: Dict[str, int]
    income_total: int
    expense_total: int
    monthly_balance: int
    cumulative_balance: int
    carry_over: int
    projected_bank_balance: int = 0
    bank_total_balance: Optional[int] = None


class ReportResponse(BaseModel):
    """Response for GET /v1/reports/monthly"""

    end_month: str
    months: List[ReportMonthSchema]
