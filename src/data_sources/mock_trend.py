"""
模拟行情生成
Deterministic pseudo-random NAV trends keyed by fund code.

The same code always yields the same intraday curve and the same daily
history: the only entropy is a linear congruential generator seeded from the
digits of the code. Used whenever the live fund API cannot answer.
"""
import re
from datetime import date, timedelta
from typing import List, Optional

from app.models.funds import FundBasic, HistoricalSample
from src.data_sources.trading_session import DEFAULT_SESSION, TradingSession, minutes_elapsed

INTRADAY_FALLBACK_SEED = 12345
DEFAULT_FALLBACK_SEED = 1

INTRADAY_VOLATILITY = 0.003  # 每分钟约 ±0.15%
DAILY_VOLATILITY = 0.04  # 每日约 ±2%
HISTORICAL_SEED_MULTIPLIER = 7

# 本地基金库（接口不可用时的兜底）
MARKET_FUNDS: List[FundBasic] = [
    FundBasic(code='000001', name='华夏成长混合', type='混合型'),
    FundBasic(code='110011', name='易方达中小盘', type='混合型'),
    FundBasic(code='005827', name='易方达蓝筹精选', type='混合型'),
    FundBasic(code='001618', name='天弘沪深300ETF', type='指数型'),
    FundBasic(code='003095', name='中欧医疗健康', type='混合型'),
    FundBasic(code='161725', name='招商中证白酒', type='指数型'),
    FundBasic(code='001594', name='天弘中证500', type='指数型'),
    FundBasic(code='000198', name='天弘余额宝', type='货币型'),
    FundBasic(code='005918', name='广发双擎升级', type='混合型'),
    FundBasic(code='008086', name='华夏中证5G', type='指数型'),
    FundBasic(code='012414', name='招商新能源', type='混合型'),
    FundBasic(code='004854', name='广发中证传媒', type='指数型'),
]


class LCG:
    """Linear congruential generator, state' = (state * 9301 + 49297) mod 233280."""
    MULTIPLIER = 9301
    INCREMENT = 49297
    MODULUS = 233280

    def __init__(self, seed: int):
        self.state = seed

    def next(self) -> float:
        """Advance and return a value in [0, 1)."""
        self.state = (self.state * self.MULTIPLIER + self.INCREMENT) % self.MODULUS
        return self.state / self.MODULUS


def seed_from_code(code: str, fallback: int = DEFAULT_FALLBACK_SEED) -> int:
    """
    Integer seed from the digits of a fund code.

    Non-digits are stripped; an empty remainder or a zero value uses the fallback.
    """
    digits = re.sub(r"\D", "", code or "")
    if not digits:
        return fallback
    return int(digits) or fallback


def simulated_previous_close(code: str) -> float:
    """Deterministic baseline NAV in [1.0, 5.9]."""
    seed = seed_from_code(code, DEFAULT_FALLBACK_SEED)
    return 1.0 + (seed % 50) / 10


def generate_intraday_series(
    code: str,
    previous_close: float,
    session: TradingSession = DEFAULT_SESSION,
) -> List[float]:
    """
    Minute-by-minute NAV curve for one session.

    Args:
        code: Fund code (seed source)
        previous_close: Baseline, returned at index 0

    Returns:
        session.total_minutes + 1 values
    """
    rng = LCG(seed_from_code(code, INTRADAY_FALLBACK_SEED))
    values = [previous_close]

    current = previous_close
    for _ in range(session.total_minutes):
        change = (rng.next() - 0.5) * INTRADAY_VOLATILITY
        current = current * (1 + change)
        values.append(current)
    return values


def simulated_valuation(code: str, time_str: Optional[str], session: TradingSession = DEFAULT_SESSION) -> float:
    """Simulated NAV of a fund at a wall-clock time, on its deterministic curve."""
    full_trend = generate_intraday_series(code, simulated_previous_close(code), session)
    index = min(minutes_elapsed(time_str, session), len(full_trend) - 1)
    return full_trend[index]


def generate_historical_series(
    code: str,
    days: int,
    current_value: float,
    today: Optional[date] = None,
) -> List[HistoricalSample]:
    """
    Daily NAV history ending at current_value, oldest first.

    Generation walks backwards from today: each earlier day divides out a
    random day-over-day change. The seed is scaled so the history does not
    replay the intraday sequence of the same code.
    """
    rng = LCG(seed_from_code(code, DEFAULT_FALLBACK_SEED) * HISTORICAL_SEED_MULTIPLIER)
    today = today or date.today()

    samples = []
    value = current_value
    for i in range(days):
        day = today - timedelta(days=i)
        samples.append(HistoricalSample(time=day.strftime("%m-%d"), value=value))

        change = (rng.next() - 0.5) * DAILY_VOLATILITY
        value = value / (1 + change)

    return list(reversed(samples))


def find_local_fund(code: str) -> Optional[FundBasic]:
    for fund in MARKET_FUNDS:
        if fund.code == code:
            return fund
    return None


def search_local_funds(query: str) -> List[FundBasic]:
    """Match code or name containing the query."""
    query = (query or "").strip()
    if not query:
        return []
    return [f for f in MARKET_FUNDS if query in f.code or query in f.name]
