"""
图表坐标轴整理
Turns a raw value series into the percentage-change series the chart draws.

- 1D is anchored to the previous close and laid out on the full session
  axis; slots after the last observed minute are left empty (None), so the
  line stops instead of running flat into the future.
- 1W/1M/3M are anchored to the first point of the window.
"""
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from app.models.funds import ChartPoint, ChartResult, HistoricalSample, TimeRange, TrendSample
from src.data_sources.trading_session import (
    DEFAULT_SESSION, TradingSession, minutes_elapsed, normalize_time_label, session_time_labels
)

DOMAIN_PADDING_RATIO = 0.1

RawSeries = Sequence[Union[TrendSample, HistoricalSample]]


def to_percent(value: float, anchor: float) -> float:
    """Percent change of value against anchor."""
    if not anchor:
        return 0.0
    return (value - anchor) / anchor * 100


def compute_y_domain(display_values: Iterable[float]) -> Tuple[float, float]:
    """
    Y-axis bounds around the display values and the 0% reference line.

    Both bounds get the same padding: 10% of the larger-magnitude extreme.
    """
    all_values = [v for v in display_values if v is not None] + [0.0]
    min_val = min(all_values)
    max_val = max(all_values)
    padding = max(abs(max_val), abs(min_val)) * DOMAIN_PADDING_RATIO
    return min_val - padding, max_val + padding


def series_baseline(raw_series: RawSeries, fallback: float) -> float:
    """
    Previous close an intraday series was built around.

    Live points carry the payload's previousClose and simulated points the
    simulated one, both as `average`; a chart must be anchored to that rather
    than to the header's baseline when the two came from different sources.
    """
    for sample in raw_series:
        average = getattr(sample, 'average', None)
        if average:
            return average
    return fallback


def _transform(raw_series: RawSeries, anchor: float) -> List[ChartPoint]:
    points = []
    for sample in raw_series:
        rate = getattr(sample, 'rate', None)
        # 有实时涨跌幅时直接使用
        display_value = rate if rate is not None else to_percent(sample.value, anchor)
        points.append(ChartPoint(
            time=sample.time,
            value=sample.value,
            display_value=display_value,
            rate=rate,
            average=getattr(sample, 'average', None),
        ))
    return points


def _visible(raw_series: RawSeries, simulated_time: Optional[str], session: TradingSession) -> RawSeries:
    """Drop intraday samples labelled after the session clock."""
    if not simulated_time:
        return raw_series

    target = minutes_elapsed(simulated_time, session)
    visible = []
    for sample in raw_series:
        try:
            offset = minutes_elapsed(sample.time, session)
        except ValueError:
            offset = 0
        if offset <= target:
            visible.append(sample)
    return visible


def _axis_label(time_str: str) -> str:
    try:
        return normalize_time_label(time_str)
    except ValueError:
        return time_str


def _fill_session_axis(points: List[ChartPoint], baseline: float, session: TradingSession) -> List[ChartPoint]:
    labels = session_time_labels(session)
    by_time = {}
    for p in points:
        label = _axis_label(p.time)
        by_time[label] = p.model_copy(update={'time': label})

    # 最后一个落在坐标轴上的点
    on_axis = [label for label in labels if label in by_time]
    last_time = on_axis[-1] if on_axis else None
    reached_last = last_time is None

    full = []
    for label in labels:
        if label == last_time:
            reached_last = True

        existing = by_time.get(label)
        if existing is not None:
            full.append(existing)
        elif not reached_last:
            # 中间缺口：按昨收（0%）补齐
            full.append(ChartPoint(time=label, value=baseline, display_value=0.0, rate=0.0, average=baseline))
        else:
            full.append(ChartPoint(time=label))
    return full


def reconcile(
    raw_series: RawSeries,
    baseline: float,
    time_range: TimeRange,
    simulated_time: Optional[str] = None,
    code: Optional[str] = None,
    session: TradingSession = DEFAULT_SESSION,
) -> ChartResult:
    """
    Shape a raw series for display.

    Args:
        raw_series: Samples already trimmed to simulated_time by the resolver
        baseline: Previous close (1D anchor and fill value) when the series
            does not carry its own in `average`
        time_range: '1D', '1W', '1M' or '3M'
        simulated_time: Session clock the series was resolved for
        code: Fund code, echoed in the result

    Returns:
        ChartResult; is_empty=True when raw_series is empty
    """
    is_intraday = time_range == '1D'
    if is_intraday:
        raw_series = _visible(raw_series, simulated_time, session)

    if not raw_series:
        return ChartResult(code=code, time_range=time_range, is_empty=True, baseline=baseline)

    if is_intraday:
        baseline = series_baseline(raw_series, baseline)
    anchor = baseline if is_intraday else raw_series[0].value

    transformed = _transform(raw_series, anchor)
    y_min, y_max = compute_y_domain(p.display_value for p in transformed)

    points = _fill_session_axis(transformed, baseline, session) if is_intraday else transformed

    return ChartResult(
        code=code,
        time_range=time_range,
        is_empty=False,
        points=points,
        y_min=y_min,
        y_max=y_max,
        baseline=baseline,
        anchor=anchor,
    )
