"""Month value types and calendar arithmetic

Two month representations cross the service boundary and are never
interchangeable:

- ``YearMonth``: ``YYYY-MM``, used by monthly records, balances, budgets and statuses
- ``BillingMonth``: ``YYYYMM``, used by billing rows

Conversion between them is explicit (``YearMonth.to_billing`` / ``BillingMonth.to_year_month``).
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date
from typing import List

from care_finance.domain.exceptions import InvalidYearMonthError

_YEAR_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")
_BILLING_MONTH_PATTERN = re.compile(r"^(\d{4})(\d{2})$")


def _check_month(month: int, text: str) -> None:
    if not 1 <= month <= 12:
        raise InvalidYearMonthError(f"Month out of range: {text!r}")


@dataclass(frozen=True, order=True)
class YearMonth:
    """Calendar month in YYYY-MM form"""

    year: int
    month: int

    @classmethod
    def parse(cls, text: str) -> "YearMonth":
        match = _YEAR_MONTH_PATTERN.match(str(text).strip())
        if not match:
            raise InvalidYearMonthError(f"Expected YYYY-MM, got {text!r}")
        year, month = int(match.group(1)), int(match.group(2))
        _check_month(month, text)
        return cls(year, month)

    @classmethod
    def from_date(cls, d: date) -> "YearMonth":
        return cls(d.year, d.month)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def shift(self, months: int) -> "YearMonth":
        """Move forward (positive) or backward (negative) by whole months"""
        index = self.year * 12 + (self.month - 1) + months
        return YearMonth(index // 12, index % 12 + 1)

    def previous(self, months: int = 1) -> "YearMonth":
        return self.shift(-months)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def day(self, day_of_month: int) -> date:
        """Date for a day-of-month, clamped to the month's last day"""
        last = calendar.monthrange(self.year, self.month)[1]
        return date(self.year, self.month, max(1, min(day_of_month, last)))

    def to_billing(self) -> "BillingMonth":
        return BillingMonth(self.year, self.month)


@dataclass(frozen=True, order=True)
class BillingMonth:
    """Billing period in six-digit YYYYMM form"""

    year: int
    month: int

    @classmethod
    def parse(cls, text: str) -> "BillingMonth":
        match = _BILLING_MONTH_PATTERN.match(str(text).strip())
        if not match:
            raise InvalidYearMonthError(f"Expected YYYYMM, got {text!r}")
        year, month = int(match.group(1)), int(match.group(2))
        _check_month(month, text)
        return cls(year, month)

    def __str__(self) -> str:
        return f"{self.year:04d}{self.month:02d}"

    def to_year_month(self) -> YearMonth:
        return YearMonth(self.year, self.month)


def parse_billing_month(text: str) -> BillingMonth:
    """Accept either YYYYMM or YYYY-MM user input and return a BillingMonth"""
    text = str(text).strip()
    if "-" in text:
        return YearMonth.parse(text).to_billing()
    return BillingMonth.parse(text)


def previous_months(target: YearMonth, count: int = 3) -> List[YearMonth]:
    """The `count` months immediately before target, most recent first"""
    return [target.previous(i) for i in range(1, count + 1)]


def month_window(end: YearMonth, count: int) -> List[YearMonth]:
    """`count` consecutive months ending at `end` (inclusive), oldest first"""
    return [end.previous(i) for i in range(count - 1, -1, -1)]
