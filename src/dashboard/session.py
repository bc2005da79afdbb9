"""
Dashboard session state

One simulated clock and one selected range, shared by every fetch of the
session. Watch-list funds are refreshed concurrently; each fetch carries a
per-fund request token and a late answer to a superseded request is dropped
instead of overwriting newer figures.
"""
import asyncio
import itertools
import logging
from typing import Dict, List, Optional

from config import settings
from app.models.funds import ChartResult, FundDetails, TimeRange
from src.analysis.chart_axis import reconcile
from src.data_sources.data_source_manager import FundDataResolver
from src.storage.db import get_saved_fund_codes, save_fund_codes

logger = logging.getLogger(__name__)


class DashboardSession:
    def __init__(
        self,
        resolver: FundDataResolver,
        simulated_time: str = settings.SIMULATED_DEFAULT_TIME,
        time_range: TimeRange = '1D',
        db_path: Optional[str] = None,
    ):
        self.resolver = resolver
        self.simulated_time = simulated_time
        self.time_range = time_range
        self.db_path = db_path

        self.codes: List[str] = get_saved_fund_codes(db_path)
        self.funds: Dict[str, FundDetails] = {}
        self.charts: Dict[str, ChartResult] = {}

        self._counter = itertools.count(1)
        self._latest: Dict[str, int] = {}

    # --- request tokens ---

    def _issue_token(self, key: str) -> int:
        token = next(self._counter)
        self._latest[key] = token
        return token

    def _is_current(self, key: str, token: int) -> bool:
        return self._latest.get(key) == token

    # --- clock & range ---

    def set_time(self, simulated_time: str):
        self.simulated_time = simulated_time

    def set_range(self, time_range: TimeRange):
        self.time_range = time_range

    # --- watch-list ---

    async def _fetch_details(self, code: str) -> Optional[FundDetails]:
        key = f"details:{code}"
        token = self._issue_token(key)
        details = await self.resolver.resolve_details(code, self.simulated_time)

        if not self._is_current(key, token):
            logger.debug(f"[Session] Dropping stale details for {code} (token {token})")
            return None
        self.funds[code] = details
        return details

    async def refresh_funds(self) -> List[FundDetails]:
        """Refresh every watch-list fund at the current simulated time."""
        if not self.codes:
            return []
        await asyncio.gather(*(self._fetch_details(code) for code in self.codes))
        return [self.funds[code] for code in self.codes if code in self.funds]

    async def load_chart(self, code: str) -> Optional[ChartResult]:
        """Resolve and reconcile the chart of one fund for the selected range."""
        key = f"chart:{code}"
        token = self._issue_token(key)
        time_range = self.time_range
        simulated_time = self.simulated_time

        details = self.funds.get(code)
        if details is None:
            details = await self.resolver.resolve_details(code, simulated_time)
        series = await self.resolver.resolve_chart(code, time_range, simulated_time)

        if not self._is_current(key, token):
            logger.debug(f"[Session] Dropping stale chart for {code} (token {token})")
            return None

        chart = reconcile(series, details.previous_close, time_range, simulated_time, code=code)
        self.charts[code] = chart
        return chart

    def add_fund(self, code: str) -> bool:
        if code in self.codes:
            return False
        self.codes = save_fund_codes(self.codes + [code], self.db_path)
        return True

    def replace_funds(self, codes: List[str]) -> List[str]:
        self.codes = save_fund_codes(codes, self.db_path)
        self.funds = {c: d for c, d in self.funds.items() if c in self.codes}
        self.charts = {c: r for c, r in self.charts.items() if c in self.codes}
        return self.codes

    def remove_fund(self, code: str) -> bool:
        if code not in self.codes:
            return False
        self.codes = save_fund_codes([c for c in self.codes if c != code], self.db_path)
        self.funds.pop(code, None)
        self.charts.pop(code, None)
        return True
