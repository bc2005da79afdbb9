"""
Fund-related Pydantic models.
"""
from typing import Optional, List, Literal
from pydantic import BaseModel

TimeRange = Literal["1D", "1W", "1M", "3M"]
DataSource = Literal["live", "mock"]


class FundBasic(BaseModel):
    """Fund identity: code, name and type."""
    code: str
    name: str
    type: str


class FundDetails(FundBasic):
    """Header figures for one fund as of the simulated time."""
    previous_close: float  # 昨日净值 (baseline)
    current_valuation: float  # 当前估值
    growth_rate: float  # 涨跌幅 %
    update_time: str
    tags: List[str] = []
    source: DataSource = "live"


class TrendSample(BaseModel):
    """One intraday point; rate is a live percent change when the source supplies one."""
    time: str  # HH:MM
    value: float
    rate: Optional[float] = None
    average: Optional[float] = None


class HistoricalSample(BaseModel):
    """One daily point of a multi-day series."""
    time: str  # MM-DD
    value: float


class ChartPoint(BaseModel):
    """A display slot. None value/display_value means no line is drawn there."""
    time: str
    value: Optional[float] = None
    display_value: Optional[float] = None
    rate: Optional[float] = None
    average: Optional[float] = None


class ChartResult(BaseModel):
    """Reconciled chart. is_empty marks the '当日暂无数据' state."""
    code: Optional[str] = None
    time_range: TimeRange = "1D"
    is_empty: bool = False
    points: List[ChartPoint] = []
    y_min: Optional[float] = None
    y_max: Optional[float] = None
    baseline: Optional[float] = None
    anchor: Optional[float] = None


class WatchlistUpdate(BaseModel):
    """Replace the watch-list with an ordered list of codes."""
    codes: List[str]
