"""
Tests for the deterministic trend generator.
"""

import pytest
from datetime import date

from src.data_sources.mock_trend import (
    LCG,
    find_local_fund,
    generate_historical_series,
    generate_intraday_series,
    search_local_funds,
    seed_from_code,
    simulated_previous_close,
    simulated_valuation,
)


class TestLCG:

    def test_exact_recurrence(self):
        rng = LCG(1)
        first = rng.next()
        assert rng.state == 58598  # (1 * 9301 + 49297) % 233280
        assert first == 58598 / 233280

        second = rng.next()
        assert rng.state == (58598 * 9301 + 49297) % 233280
        assert second == rng.state / 233280

    def test_output_range(self):
        rng = LCG(5827)
        for _ in range(1000):
            assert 0.0 <= rng.next() < 1.0


class TestSeedFromCode:

    def test_digits_only(self):
        assert seed_from_code("005827") == 5827
        assert seed_from_code("F-110011") == 110011

    def test_fallback(self):
        assert seed_from_code("", fallback=12345) == 12345
        assert seed_from_code("abc", fallback=12345) == 12345
        assert seed_from_code("000000", fallback=7) == 7


class TestIntradaySeries:

    def test_deterministic(self):
        first = generate_intraday_series("005827", 3.7)
        second = generate_intraday_series("005827", 3.7)
        assert first == second

    def test_shape_and_baseline(self):
        series = generate_intraday_series("161725", 3.5)
        assert len(series) == 241
        assert series[0] == 3.5

    def test_codes_diverge(self):
        assert generate_intraday_series("005827", 2.0) != generate_intraday_series("161725", 2.0)

    def test_per_minute_volatility_bound(self):
        series = generate_intraday_series("001618", 1.18)
        for prev, cur in zip(series, series[1:]):
            assert abs(cur / prev - 1) <= 0.0015 + 1e-12


class TestSimulatedBaseline:

    def test_previous_close_from_seed(self):
        assert simulated_previous_close("005827") == pytest.approx(3.7)  # 5827 % 50 = 27
        assert simulated_previous_close("161725") == pytest.approx(3.5)  # 161725 % 50 = 25
        assert simulated_previous_close("abc") == pytest.approx(1.1)  # fallback seed 1

    def test_valuation_follows_clock(self):
        code = "005827"
        series = generate_intraday_series(code, simulated_previous_close(code))
        assert simulated_valuation(code, "09:00") == series[0]
        assert simulated_valuation(code, "10:00") == series[30]
        assert simulated_valuation(code, "15:00") == series[240]
        assert simulated_valuation(code, "") == series[240]


class TestHistoricalSeries:

    def test_ends_at_current_value(self):
        series = generate_historical_series("005827", 30, 3.81, today=date(2024, 3, 1))
        assert len(series) == 30
        assert series[-1].value == 3.81
        assert series[-1].time == "03-01"
        assert series[0].time == "02-01"  # leap year

    def test_deterministic(self):
        a = generate_historical_series("005827", 90, 2.0, today=date(2024, 6, 30))
        b = generate_historical_series("005827", 90, 2.0, today=date(2024, 6, 30))
        assert a == b

    def test_forward_replay_reproduces_current_value(self):
        code, days, current = "005827", 30, 3.81
        series = generate_historical_series(code, days, current, today=date(2024, 3, 1))

        rng = LCG(seed_from_code(code) * 7)
        changes = [(rng.next() - 0.5) * 0.04 for _ in range(days - 1)]

        value = series[0].value
        for change in reversed(changes):
            value *= (1 + change)
        assert value == pytest.approx(current, rel=1e-12)

    def test_daily_change_bound(self):
        series = generate_historical_series("161725", 90, 1.5, today=date(2024, 6, 30))
        for prev, cur in zip(series, series[1:]):
            assert abs(cur.value / prev.value - 1) <= 0.02 + 1e-12


class TestLocalCatalogue:

    def test_find(self):
        assert find_local_fund("005827").name == "易方达蓝筹精选"
        assert find_local_fund("999999") is None

    def test_search_by_name_or_code(self):
        assert [f.code for f in search_local_funds("白酒")] == ["161725"]
        assert {f.code for f in search_local_funds("0016")} == {"001618"}
        assert search_local_funds("  ") == []
