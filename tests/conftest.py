"""
Pytest configuration and shared fixtures.
"""

import time
from typing import Any, Dict, List

import pytest

from companycheck.cache import SearchCache
from companycheck.client import SourceQueryError, SourceRows
from companycheck.config import ConfigurationError
from companycheck.logger import get_logger, reset_logger
from companycheck.search import CompanySearch
from companycheck.storage import JsonFileStorage


@pytest.fixture(autouse=True)
def quiet_logger(tmp_path):
    """Route the global logger to a temp dir without console output."""
    reset_logger()
    logger = get_logger(log_dir=tmp_path / "logs", enable_console=False)
    yield logger
    reset_logger()


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeClient:
    """
    Stands in for RecordSourceClient.

    rows: table -> list of rows
    failures: table -> SourceQueryError raised for that table
    delays: table -> seconds to block before answering
    """

    def __init__(self, rows=None, failures=None, delays=None, configured=True):
        self.rows: Dict[str, List[Dict[str, Any]]] = rows or {}
        self.failures: Dict[str, Exception] = failures or {}
        self.delays: Dict[str, float] = delays or {}
        self.configured = configured
        self.calls: List[tuple] = []

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError("Supabase credentials not configured. Missing environment variables: SUPABASE_URL")

    def query(self, table, column, value, limit=100, count=False):
        self.calls.append((table, column, value, limit))
        if table in self.delays:
            time.sleep(self.delays[table])
        if table in self.failures:
            raise self.failures[table]
        return SourceRows(rows=list(self.rows.get(table, [])))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def json_storage(tmp_path) -> JsonFileStorage:
    return JsonFileStorage(tmp_path / "cache.json")


@pytest.fixture
def cache(json_storage, clock) -> SearchCache:
    return SearchCache(storage=json_storage, clock=clock)


@pytest.fixture
def sample_rows() -> Dict[str, List[Dict[str, Any]]]:
    """Rows as the record source returns them for the query 'sobha'."""
    return {
        "delisted_company_1": [
            {"id": 11, "company_name": "Sobha LLC", "reason": "Salary arrears", "status": "Suspended"},
        ],
        "delisted_company_2": [
            {"id": 21, "company_name": "Sobha Trading Co", "reason": "Closed"},
        ],
        "eib_approved": [
            {"id": 31, "company_name": "Sobha Construction LLC", "category": "A", "emirate": "Dubai"},
        ],
        "payroll_approved": [
            {"id": 51, "company_name": "SOBHA", "employer_code": "P-100"},
        ],
        "good_listed": [
            {"id": 71, "employer_name": "Sobha Realty", "group_name": "Sobha Group", "industry": "Real Estate"},
            {"id": 72, "employer_name": "Xyz Sob Ha", "industry": "Retail"},
        ],
    }


@pytest.fixture
def make_search(cache):
    def _make(client, **kwargs) -> CompanySearch:
        kwargs.setdefault("cache", cache)
        return CompanySearch(client, **kwargs)
    return _make


@pytest.fixture
def failing_source_error():
    return SourceQueryError("enbd_approved", "request failed (503)", "HTTPError_503")
