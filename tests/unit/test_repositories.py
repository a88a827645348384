"""Unit tests for storage failure handling in the SQL data source"""

import pytest
from prometheus_client import REGISTRY
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from care_finance.domain.exceptions import PersistenceUnavailableError
from care_finance.infrastructure.database.repositories import IncomeRecordRepository, SqlFinanceDataSource
from care_finance.utils.date_utils import YearMonth

FAILURES = "care_finance_persistence_failures_total"


def _connection_refused(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("connection refused"))


def test_unreachable_database_raises_persistence_unavailable(db: Session, monkeypatch: pytest.MonkeyPatch):
    """Connection-level failures surface as PersistenceUnavailableError and are counted"""
    monkeypatch.setattr(IncomeRecordRepository, "get_many", _connection_refused)
    before = REGISTRY.get_sample_value(FAILURES) or 0

    with pytest.raises(PersistenceUnavailableError) as exc_info:
        SqlFinanceDataSource(db).get_income_records(1, [YearMonth(2024, 1)])

    assert isinstance(exc_info.value.__cause__, OperationalError)
    assert REGISTRY.get_sample_value(FAILURES) == before + 1


def test_reads_succeed_when_database_is_reachable(db: Session):
    assert SqlFinanceDataSource(db).get_income_records(1, [YearMonth(2024, 1)]) == {}
