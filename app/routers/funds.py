"""
Fund endpoints: watch-list, search, details and charts.
"""
import re
from typing import List
from fastapi import APIRouter, HTTPException, Depends, Query

from config import settings
from app.core.dependencies import get_db_path, get_resolver
from app.models.funds import ChartResult, FundBasic, FundDetails, TimeRange, WatchlistUpdate
from src.dashboard.session import DashboardSession
from src.data_sources.data_source_manager import FundDataResolver

router = APIRouter(prefix="/api/funds", tags=["Funds"])

FUND_CODE_PATTERN = re.compile(r"^\d{6}$")
TIME_PATTERN = re.compile(r"^\d{1,2}:\d{2}$")


def _validate_code(code: str) -> str:
    if not FUND_CODE_PATTERN.match(code):
        raise HTTPException(status_code=400, detail="基金代码格式错误,应为6位数字")
    return code


def _validate_time(time_str: str) -> str:
    if not TIME_PATTERN.match(time_str):
        raise HTTPException(status_code=400, detail="时间格式错误,应为 HH:MM")
    return time_str


def _session(
    resolver: FundDataResolver = Depends(get_resolver),
    db_path: str = Depends(get_db_path),
) -> DashboardSession:
    """Per-request dashboard session over the stored watch-list."""
    return DashboardSession(resolver, db_path=db_path)


@router.get("", response_model=List[FundDetails])
async def get_watchlist_endpoint(
    time: str = settings.SIMULATED_DEFAULT_TIME,
    session: DashboardSession = Depends(_session),
):
    """Details of every watch-list fund at the simulated time."""
    session.set_time(_validate_time(time))
    return await session.refresh_funds()


@router.put("")
async def replace_watchlist(update: WatchlistUpdate, session: DashboardSession = Depends(_session)):
    """Replace the watch-list (order is kept, duplicates dropped)."""
    for code in update.codes:
        _validate_code(code)
    return {"status": "success", "codes": session.replace_funds(update.codes)}


@router.get("/search", response_model=List[FundBasic])
async def search_funds_endpoint(
    query: str = "",
    page_size: int = Query(default=settings.SEARCH_PAGE_SIZE, alias="pageSize", ge=1, le=1000),
    resolver: FundDataResolver = Depends(get_resolver),
):
    """Search funds by code or name."""
    return await resolver.search_funds(query, page_size)


@router.post("/{code}")
async def add_fund_endpoint(code: str, session: DashboardSession = Depends(_session)):
    """Append a fund to the watch-list."""
    _validate_code(code)
    if not session.add_fund(code):
        return {"status": "exists", "codes": session.codes}
    return {"status": "success", "codes": session.codes}


@router.delete("/{code}")
async def delete_fund_endpoint(code: str, session: DashboardSession = Depends(_session)):
    """Remove a fund from the watch-list."""
    _validate_code(code)
    if not session.remove_fund(code):
        raise HTTPException(status_code=404, detail="Fund not in watch-list")
    return {"status": "success", "codes": session.codes}


@router.get("/{code}/details", response_model=FundDetails)
async def get_fund_details_endpoint(
    code: str,
    time: str = settings.SIMULATED_DEFAULT_TIME,
    resolver: FundDataResolver = Depends(get_resolver),
):
    """Header figures for one fund at the simulated time."""
    _validate_code(code)
    _validate_time(time)
    return await resolver.resolve_details(code, time)


@router.get("/{code}/chart", response_model=ChartResult)
async def get_fund_chart_endpoint(
    code: str,
    time_range: TimeRange = Query(default="1D", alias="range"),
    time: str = settings.SIMULATED_DEFAULT_TIME,
    session: DashboardSession = Depends(_session),
):
    """
    Chart for one fund.

    is_empty=true means the fund has no trading data today; the client should
    show the no-data state rather than an empty chart.
    """
    _validate_code(code)
    session.set_time(_validate_time(time))
    session.set_range(time_range)
    return await session.load_chart(code)
