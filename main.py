import argparse
import asyncio
import logging
import sys
import os
from typing import List

# Ensure project root is in path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from config import settings
from app.models.funds import FundBasic
from src.dashboard.search import SearchDebouncer
from src.dashboard.session import DashboardSession
from src.data_sources.data_source_manager import create_resolver


def _format_pct(value):
    if value is None:
        return "   --   "
    return f"{'+' if value >= 0 else ''}{value:.2f}%"


async def run(code: str, simulated_time: str, time_range: str, provider: str):
    session = DashboardSession(create_resolver(provider), simulated_time=simulated_time, time_range=time_range)

    details = await session.resolver.resolve_details(code, simulated_time)
    session.funds[code] = details
    chart = await session.load_chart(code)

    print(f"{details.name} ({details.code}) [{details.type}] source={details.source}")
    print(f"  昨日净值: {details.previous_close:.4f}")
    print(f"  当前估值: {details.current_valuation:.4f}  {_format_pct(details.growth_rate)}")
    print(f"  标签: {', '.join(details.tags)}  更新时间: {details.update_time}")
    print()

    if chart.is_empty:
        print("Unknown - 当日暂无数据")
        return

    drawn = [p for p in chart.points if p.display_value is not None]
    print(f"{time_range} chart: {len(drawn)}/{len(chart.points)} slots drawn, "
          f"y-axis [{_format_pct(chart.y_min)}, {_format_pct(chart.y_max)}]")
    step = max(1, len(drawn) // 10)
    for point in drawn[::step]:
        print(f"  {point.time}  {point.value:.4f}  {_format_pct(point.display_value)}")


async def run_watchlist(simulated_time: str, provider: str, add: List[str], remove: List[str]):
    session = DashboardSession(create_resolver(provider), simulated_time=simulated_time)
    for code in add:
        session.add_fund(code)
    for code in remove:
        session.remove_fund(code)

    funds = await session.refresh_funds()
    print(f"自选基金 @ {simulated_time} ({len(funds)})")
    for fund in funds:
        print(f"  {fund.code}  {fund.name:<16} {fund.current_valuation:.4f}  "
              f"{_format_pct(fund.growth_rate)}  {' '.join(fund.tags[1:])}  [{fund.source}]")


def _print_results(query: str, results: List[FundBasic]):
    print(f"'{query}': {len(results)} result(s)")
    for fund in results[:10]:
        print(f"  {fund.code}  {fund.name}  {fund.type}")


async def run_search(provider: str):
    """Read queries from stdin; lines typed within the debounce window collapse into one search."""
    resolver = create_resolver(provider)
    debouncer = SearchDebouncer(resolver.search_funds, on_results=_print_results)
    loop = asyncio.get_running_loop()

    print("Search funds by code or name (empty line clears, Ctrl-D quits)")
    try:
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            debouncer.submit(line.strip())
        await debouncer.wait()
    finally:
        debouncer.cancel()


def main():
    parser = argparse.ArgumentParser(description="SmartFund simulated fund valuation viewer")
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("--code", help="Fund code (6 digits): show details and chart")
    mode.add_argument("--watchlist", action="store_true", help="Show the saved watch-list")
    mode.add_argument("--search", action="store_true", help="Interactive debounced fund search")
    parser.add_argument("--time", default=settings.SIMULATED_DEFAULT_TIME, help="Simulated time HH:MM")
    parser.add_argument("--range", dest="time_range", choices=["1D", "1W", "1M", "3M"], default="1D", help="Chart range")
    parser.add_argument("--add", nargs="*", default=[], help="Codes to add to the watch-list (with --watchlist)")
    parser.add_argument("--remove", nargs="*", default=[], help="Codes to remove from the watch-list (with --watchlist)")
    parser.add_argument("--mock", action="store_true", help="Skip the live fund API and simulate everything")

    args = parser.parse_args()
    logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)

    provider = "mock" if args.mock else settings.DATA_SOURCE_PROVIDER
    if args.watchlist:
        asyncio.run(run_watchlist(args.time, provider, args.add, args.remove))
    elif args.search:
        asyncio.run(run_search(provider))
    else:
        asyncio.run(run(args.code, args.time, args.time_range, provider))


if __name__ == "__main__":
    main()
