"""Read accessors the projection engine needs from the persistence layer"""

from datetime import date
from typing import Dict, List, Optional, Protocol, Sequence

from care_finance.domain.models import (
    BillingRow,
    ExpenseFigures,
    FactoringTerms,
    IncomeFigures,
    LoanTerms,
    MonthStatus,
)
from care_finance.utils.date_utils import BillingMonth, YearMonth


class FinanceDataSource(Protocol):
    """
    Typed, read-only view of one tenant's stored data.

    Implementations return empty containers / None for missing data and raise
    PersistenceUnavailableError when storage cannot be reached.
    """

    def get_income_records(self, organization_id: int, months: Sequence[YearMonth]) -> Dict[YearMonth, IncomeFigures]:
        ...

    def get_expense_records(self, organization_id: int, months: Sequence[YearMonth]) -> Dict[YearMonth, ExpenseFigures]:
        ...

    def get_billing_rows(self, organization_id: int, billing_months: Sequence[BillingMonth]) -> List[BillingRow]:
        ...

    def get_factoring_setting(self, organization_id: int) -> Optional[FactoringTerms]:
        ...

    def get_active_loans(self, organization_id: int, as_of: date) -> List[LoanTerms]:
        ...

    def get_month_statuses(self, organization_id: int, months: Sequence[YearMonth]) -> Dict[YearMonth, MonthStatus]:
        ...

    def get_bank_totals(self, organization_id: int, months: Sequence[YearMonth]) -> Dict[YearMonth, int]:
        ...
