"""
Tests for DashboardSession: shared clock, request tokens and watch-list edits.
"""

import asyncio
import pytest

from src.dashboard.session import DashboardSession
from src.data_sources.data_source_manager import FundDataResolver
from src.data_sources.fund_api import NullFundClient
from src.data_sources.mock_trend import simulated_previous_close


class DelayedResolver(FundDataResolver):
    """Simulated resolver whose answers arrive late for selected clocks / ranges."""

    def __init__(self, detail_delays=None, chart_delays=None):
        super().__init__(NullFundClient())
        self.detail_delays = detail_delays or {}
        self.chart_delays = chart_delays or {}

    async def resolve_details(self, code, simulated_time):
        await asyncio.sleep(self.detail_delays.get(simulated_time, 0))
        return await super().resolve_details(code, simulated_time)

    async def resolve_chart(self, code, time_range, simulated_time):
        await asyncio.sleep(self.chart_delays.get(time_range, 0))
        return await super().resolve_chart(code, time_range, simulated_time)


class TestRefreshFunds:

    def test_refresh_keeps_watchlist_order(self, mock_resolver, db_path):
        session = DashboardSession(mock_resolver, simulated_time="10:30", db_path=db_path)
        funds = asyncio.run(session.refresh_funds())

        assert [f.code for f in funds] == ['005827', '161725', '001618']
        assert all(f.update_time == "10:30" for f in funds)

    def test_empty_watchlist(self, mock_resolver, db_path):
        session = DashboardSession(mock_resolver, db_path=db_path)
        session.codes = []
        assert asyncio.run(session.refresh_funds()) == []

    def test_stale_answer_dropped(self, db_path):
        resolver = DelayedResolver(detail_delays={"10:00": 0.1})
        session = DashboardSession(resolver, simulated_time="10:00", db_path=db_path)

        async def scenario():
            slow = asyncio.create_task(session.refresh_funds())
            await asyncio.sleep(0.02)
            session.set_time("11:00")
            fresh = await session.refresh_funds()
            await slow
            return fresh

        fresh = asyncio.run(scenario())

        assert [f.update_time for f in fresh] == ["11:00"] * 3
        assert all(f.update_time == "11:00" for f in session.funds.values())


class TestLoadChart:

    def test_intraday_chart_on_full_axis(self, mock_resolver, db_path):
        session = DashboardSession(mock_resolver, simulated_time="15:00", db_path=db_path)
        chart = asyncio.run(session.load_chart("005827"))

        assert chart.is_empty is False
        assert len(chart.points) == 242
        assert chart.baseline == pytest.approx(simulated_previous_close("005827"))
        assert session.charts["005827"] is chart

    def test_chart_uses_refreshed_baseline(self, mock_resolver, db_path):
        session = DashboardSession(mock_resolver, simulated_time="10:00", db_path=db_path)

        async def scenario():
            await session.refresh_funds()
            return await session.load_chart("161725")

        chart = asyncio.run(scenario())
        assert chart.baseline == session.funds["161725"].previous_close

    def test_multi_day_range(self, mock_resolver, db_path):
        session = DashboardSession(mock_resolver, simulated_time="14:00", time_range="1M", db_path=db_path)
        chart = asyncio.run(session.load_chart("001618"))

        assert len(chart.points) == 30
        assert chart.points[0].display_value == 0.0
        assert chart.anchor == chart.points[0].value

    def test_superseded_chart_dropped(self, db_path):
        resolver = DelayedResolver(chart_delays={"1W": 0.1})
        session = DashboardSession(resolver, simulated_time="15:00", time_range="1W", db_path=db_path)

        async def scenario():
            slow = asyncio.create_task(session.load_chart("005827"))
            await asyncio.sleep(0.02)
            session.set_range("3M")
            fresh = await session.load_chart("005827")
            return await slow, fresh

        stale, fresh = asyncio.run(scenario())

        assert stale is None
        assert fresh.time_range == "3M"
        assert session.charts["005827"].time_range == "3M"


class TestWatchlistEdits:

    def test_add_persists(self, mock_resolver, db_path):
        session = DashboardSession(mock_resolver, db_path=db_path)
        assert session.add_fund("110011") is True
        assert session.add_fund("110011") is False

        reloaded = DashboardSession(mock_resolver, db_path=db_path)
        assert reloaded.codes == ['005827', '161725', '001618', '110011']

    def test_remove_persists_and_clears_state(self, mock_resolver, db_path):
        session = DashboardSession(mock_resolver, simulated_time="10:00", db_path=db_path)
        asyncio.run(session.refresh_funds())

        assert session.remove_fund("161725") is True
        assert "161725" not in session.funds
        assert session.remove_fund("161725") is False

        reloaded = DashboardSession(mock_resolver, db_path=db_path)
        assert reloaded.codes == ['005827', '001618']

    def test_replace_drops_state_of_removed_funds(self, mock_resolver, db_path):
        session = DashboardSession(mock_resolver, simulated_time="10:00", db_path=db_path)
        asyncio.run(session.refresh_funds())

        assert session.replace_funds(["001618", "110011", "001618"]) == ["001618", "110011"]
        assert set(session.funds) == {"001618"}
        assert DashboardSession(mock_resolver, db_path=db_path).codes == ["001618", "110011"]
