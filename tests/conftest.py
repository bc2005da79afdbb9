"""Pytest configuration and shared fixtures."""

import pytest
from typing import Any, Dict, List, Optional

from app.models.funds import FundBasic
from src.data_sources.data_source_manager import FundDataResolver
from src.data_sources.fund_api import FundAPIError, NullFundClient


class FakeFundClient:
    """
    Stand-in for FundAPIClient.

    Each endpoint answers with the configured value; None means unreachable
    and an Exception instance is raised as-is.
    """

    def __init__(
        self,
        detail: Any = None,
        intraday: Any = None,
        trend: Any = None,
        funds: Optional[List[FundBasic]] = None,
    ):
        self.detail = detail
        self.intraday = intraday
        self.trend = trend
        self.funds = funds
        self.calls: List[tuple] = []

    def _answer(self, value):
        if value is None:
            raise FundAPIError("connection refused")
        if isinstance(value, Exception):
            raise value
        return value

    def get_fund_detail(self, code: str) -> Dict:
        self.calls.append(("detail", code))
        return self._answer(self.detail)

    def get_intraday(self, code: str) -> Dict:
        self.calls.append(("intraday", code))
        return self._answer(self.intraday)

    def get_trend(self, code: str, period: str) -> Dict:
        self.calls.append(("trend", code, period))
        return self._answer(self.trend)

    def list_funds(self, keyword: str, page_size: int = 50) -> List[FundBasic]:
        self.calls.append(("list", keyword, page_size))
        return self._answer(self.funds)


@pytest.fixture
def db_path(tmp_path) -> str:
    """Fresh SQLite file per test."""
    return str(tmp_path / "smartfund_test.db")


@pytest.fixture
def mock_resolver() -> FundDataResolver:
    """Resolver with no live backend at all."""
    return FundDataResolver(NullFundClient())


@pytest.fixture
def detail_payload() -> Dict[str, Any]:
    return {
        "code": "005827",
        "name": "易方达蓝筹精选混合",
        "currentPrice": "2.1500",
        "estimatePrice": "2.1800",
        "estimateRate": "1.40",
    }


@pytest.fixture
def intraday_payload() -> Dict[str, Any]:
    """Five live minutes, 09:30-09:34."""
    return {
        "name": "易方达蓝筹精选",
        "previousClose": 2.0,
        "data": [
            {"time": "09:30", "value": 2.00, "rate": 0.0},
            {"time": "09:31", "value": 2.01, "rate": 0.5},
            {"time": "09:32", "value": 2.02, "rate": 1.0},
            {"time": "09:33", "value": 2.05, "rate": 2.5},
            {"time": "09:34", "value": 1.96, "rate": -2.0},
        ],
    }
