"""
Data Source Manager - live-first routing with simulated fallback

Every request first tries the live fund API and degrades to the
deterministic simulation, at the smallest scope that failed:
- details: detail lookup and intraday lookup are independent; only when
  both are unreachable is the whole header simulated
- 1D chart: intraday endpoint, else simulated intraday curve
- 1W/1M/3M chart: trend endpoint, else simulated daily history

The intraday "no data today" sentinel is passed through as an empty series.
Nothing here raises to the caller: failures are logged and absorbed.
"""
import asyncio
import logging
from typing import Callable, List, Optional, Sequence, Union

from config import settings
from app.models.funds import FundBasic, FundDetails, HistoricalSample, TimeRange, TrendSample
from src.data_sources.fund_api import (
    FundAPIClient,
    FundAPIError,
    NullFundClient,
    _safe_float,
    is_no_data_payload,
    parse_intraday_points,
    parse_trend_points,
)
from src.data_sources.mock_trend import (
    find_local_fund,
    generate_historical_series,
    generate_intraday_series,
    search_local_funds,
    simulated_previous_close,
    simulated_valuation,
)
from src.data_sources.trading_session import DEFAULT_SESSION, TradingSession, display_time, minutes_elapsed

logger = logging.getLogger(__name__)

UNKNOWN_FUND_NAME = '未知基金'
UNKNOWN_FUND_TYPE = '未知'
DEFAULT_FUND_TYPE = '混合型'

TAG_SURGE = '大涨'
TAG_PLUNGE = '大跌'
TAG_FLAT = '震荡'

# 时间范围 -> (trend 接口周期, 模拟天数)
RANGE_PERIODS = {
    '1W': ('week', 7),
    '1M': ('month', 30),
    '3M': ('quarter', 90),
}

ChartSeries = List[Union[TrendSample, HistoricalSample]]


def build_tags(fund_type: str, growth_rate: float) -> List[str]:
    """Fund type plus at most one movement tag."""
    tags = [fund_type]
    if growth_rate > 1.5:
        tags.append(TAG_SURGE)
    elif growth_rate < -1.5:
        tags.append(TAG_PLUNGE)
    elif abs(growth_rate) < 0.2:
        tags.append(TAG_FLAT)
    return tags


def _growth(current: float, previous_close: float) -> float:
    if not previous_close:
        return 0.0
    return (current - previous_close) / previous_close * 100


class FundDataResolver:
    """
    Resolves fund headers, chart series and searches.

    The live client is injected; pass NullFundClient() for a simulation-only
    resolver. Blocking client calls run in the default executor.
    """

    def __init__(self, client=None, session: TradingSession = DEFAULT_SESSION):
        self.client = client if client is not None else NullFundClient()
        self.session = session

    async def _call(self, func: Callable, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    # ------------------------------------------------------------------
    # Details
    # ------------------------------------------------------------------

    async def resolve_details(self, code: str, simulated_time: str) -> FundDetails:
        try:
            return await self._resolve_details_live(code, simulated_time)
        except FundAPIError as e:
            logger.warning(f"[Resolver] Live details unavailable for {code}, using simulation: {e}")
        except Exception as e:
            logger.exception(f"[Resolver] Unexpected error resolving details for {code}: {e}")
        return await self._resolve_details_simulated(code, simulated_time)

    async def _resolve_details_live(self, code: str, simulated_time: str) -> FundDetails:
        """
        Merge the detail and intraday lookups.

        Raises FundAPIError only when neither lookup produced a usable answer.
        """
        basic = FundBasic(code=code, name=UNKNOWN_FUND_NAME, type=UNKNOWN_FUND_TYPE)
        previous_close = 1.0
        current_valuation = 1.0
        growth_rate = 0.0

        detail_error: Optional[FundAPIError] = None
        try:
            detail = await self._call(self.client.get_fund_detail, code)
            basic = FundBasic(
                code=detail.get('code') or code,
                name=detail.get('name') or UNKNOWN_FUND_NAME,
                type=DEFAULT_FUND_TYPE,  # 详情接口暂无类型
            )
            previous_close = _safe_float(detail.get('currentPrice')) or 1.0
            current_valuation = _safe_float(detail.get('estimatePrice')) or previous_close
            growth_rate = _safe_float(detail.get('estimateRate'))
        except FundAPIError as e:
            detail_error = e
            logger.info(f"[Resolver] Detail lookup failed for {code}: {e}")

        try:
            intraday = await self._call(self.client.get_intraday, code)
            points = [] if is_no_data_payload(intraday) else parse_intraday_points(intraday)
        except FundAPIError as e:
            if detail_error is not None:
                raise FundAPIError(f"detail: {detail_error}; intraday: {e}")
            logger.info(f"[Resolver] Intraday lookup failed for {code}, keeping detail figures: {e}")
        else:
            if intraday.get('name'):
                basic = basic.model_copy(update={'name': intraday['name']})

            if points:
                target = minutes_elapsed(simulated_time, self.session)
                visible = parse_intraday_points(intraday, limit=target + 1)
                latest = visible[-1] if visible else points[0]

                current_valuation = latest.value
                previous_close = _safe_float(intraday.get('previousClose')) or latest.value
                if latest.rate is not None:
                    growth_rate = latest.rate
                else:
                    growth_rate = _growth(current_valuation, previous_close)

        return FundDetails(
            **basic.model_dump(),
            previous_close=previous_close,
            current_valuation=current_valuation,
            growth_rate=growth_rate,
            update_time=simulated_time,
            tags=build_tags(basic.type, growth_rate),
            source='live',
        )

    async def _lookup_basic(self, code: str) -> FundBasic:
        """Identity for simulated details: list endpoint, then the local catalogue."""
        basic = FundBasic(code=code, name=f'基金{code}', type=DEFAULT_FUND_TYPE)
        try:
            matches = await self._call(self.client.list_funds, code, 1)
            if matches:
                found = matches[0]
                basic = FundBasic(
                    code=found.code or code,
                    name=found.name or f'基金{code}',
                    type=found.type or DEFAULT_FUND_TYPE,
                )
        except FundAPIError as e:
            logger.debug(f"[Resolver] List lookup failed for {code}: {e}")
        except Exception as e:
            logger.warning(f"[Resolver] Unexpected error looking up {code}: {e}")

        local = find_local_fund(code)
        if local is not None:
            basic = local
        return basic

    async def _resolve_details_simulated(self, code: str, simulated_time: str) -> FundDetails:
        basic = await self._lookup_basic(code)

        previous_close = simulated_previous_close(code)
        current_valuation = simulated_valuation(code, simulated_time, self.session)
        growth_rate = _growth(current_valuation, previous_close)

        return FundDetails(
            **basic.model_dump(),
            previous_close=previous_close,
            current_valuation=current_valuation,
            growth_rate=growth_rate,
            update_time=simulated_time,
            tags=build_tags(basic.type, growth_rate),
            source='mock',
        )

    # ------------------------------------------------------------------
    # Charts
    # ------------------------------------------------------------------

    async def resolve_chart(self, code: str, time_range: TimeRange, simulated_time: str) -> ChartSeries:
        try:
            if time_range == '1D':
                return await self._resolve_intraday_chart(code, simulated_time)
            return await self._resolve_trend_chart(code, time_range, simulated_time)
        except FundAPIError as e:
            logger.warning(f"[Resolver] Live chart unavailable for {code} ({time_range}), using simulation: {e}")
        except Exception as e:
            logger.exception(f"[Resolver] Unexpected error resolving chart for {code} ({time_range}): {e}")
        return self.simulated_chart(code, time_range, simulated_time)

    async def _resolve_intraday_chart(self, code: str, simulated_time: str) -> ChartSeries:
        payload = await self._call(self.client.get_intraday, code)

        if is_no_data_payload(payload):
            logger.info(f"[Resolver] No intraday data today for {code}")
            return []

        points = parse_intraday_points(payload)
        if not points:
            logger.info(f"[Resolver] Empty intraday payload for {code}, using simulation")
            return self.simulated_chart(code, '1D', simulated_time)

        target = minutes_elapsed(simulated_time, self.session)
        chart = parse_intraday_points(payload, limit=target + 1)
        if not chart:
            baseline = _safe_float(payload.get('previousClose')) or 1.0
            chart = [TrendSample(time=display_time(0, self.session), value=baseline, average=baseline)]
        return chart

    async def _resolve_trend_chart(self, code: str, time_range: TimeRange, simulated_time: str) -> ChartSeries:
        period, _ = RANGE_PERIODS.get(time_range, ('month', 30))
        payload = await self._call(self.client.get_trend, code, period)

        points = parse_trend_points(payload)
        if not points:
            logger.info(f"[Resolver] Empty trend payload for {code} ({period}), using simulation")
            return self.simulated_chart(code, time_range, simulated_time)
        return points

    def simulated_chart(self, code: str, time_range: TimeRange, simulated_time: str) -> ChartSeries:
        """Deterministic chart series, consistent with the simulated header figures."""
        previous_close = simulated_previous_close(code)

        if time_range == '1D':
            full_trend = generate_intraday_series(code, previous_close, self.session)
            current_index = min(minutes_elapsed(simulated_time, self.session), len(full_trend) - 1)

            # index 0 is the baseline itself
            data = [
                TrendSample(time=display_time(i, self.session), value=full_trend[i], average=previous_close)
                for i in range(1, current_index + 1)
            ]
            if not data:
                data.append(TrendSample(time=display_time(0, self.session), value=previous_close, average=previous_close))
            return data

        _, days = RANGE_PERIODS.get(time_range, ('month', 30))
        current_valuation = simulated_valuation(code, simulated_time, self.session)
        return generate_historical_series(code, days, current_valuation)

    # ------------------------------------------------------------------
    # Search & watch-list
    # ------------------------------------------------------------------

    async def search_funds(self, query: str, page_size: int = settings.SEARCH_PAGE_SIZE) -> List[FundBasic]:
        if not query or not query.strip():
            return []

        try:
            return await self._call(self.client.list_funds, query, page_size)
        except FundAPIError as e:
            logger.warning(f"[Resolver] Fund search failed, using local catalogue: {e}")
        except Exception as e:
            logger.exception(f"[Resolver] Unexpected error searching '{query}': {e}")
        return search_local_funds(query)

    async def resolve_watchlist(self, codes: Sequence[str], simulated_time: str) -> List[FundDetails]:
        """Resolve all watch-list funds concurrently; order follows codes."""
        tasks = [self.resolve_details(code, simulated_time) for code in codes]
        return list(await asyncio.gather(*tasks))


def create_resolver(provider: str = None) -> FundDataResolver:
    """Resolver wired from settings: 'live' uses the fund API, 'mock' simulates only."""
    provider = (provider or settings.DATA_SOURCE_PROVIDER).lower()
    if provider == 'mock':
        logger.info("[Resolver] Live fund API disabled, serving simulated data")
        return FundDataResolver(NullFundClient())
    return FundDataResolver(FundAPIClient())
