"""
Fund API client - live data collaborator

Talks to the fund collector backend:
- GET {base}/fund/detail?code=        -> {code, name, currentPrice, estimatePrice, estimateRate}
- GET {base}/fund/intraday?code=      -> {name?, previousClose, data: [{time, value, rate?}]}
- GET {base}/fund/trend?code=&period= -> {trendData: [{time|date, value|netWorth}]}
- GET {base}/fund/list?keyword=&pageSize= -> {data: [{code, name, type}]}

Transport problems and non-2xx answers raise FundAPIError; a 2xx answer
whose body cannot be used raises MalformedPayloadError. The intraday
"no trading data today" sentinel is NOT an error: see is_no_data_payload().
"""
import time
import logging
from typing import Any, Dict, List, Optional

import pandas as pd
import requests

from config import settings
from app.core.proxy_config import get_requests_session_with_proxy
from app.models.funds import FundBasic, HistoricalSample, TrendSample

logger = logging.getLogger(__name__)

NO_DATA_TIME = "unknown"

TREND_PERIODS = ("week", "month", "quarter")


class FundAPIError(Exception):
    """Fund API unreachable or answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedPayloadError(FundAPIError):
    """Success status, but the body is not the expected JSON shape."""


def _safe_float(val, default=0.0):
    """安全转换为浮点数"""
    try:
        if val is None or (isinstance(val, float) and pd.isna(val)):
            return default
        return float(val)
    except (TypeError, ValueError):
        return default


def _optional_float(val) -> Optional[float]:
    result = _safe_float(val, default=None)
    if result is None or pd.isna(result):
        return None
    return result


def is_no_data_payload(payload: Any) -> bool:
    """True for the intraday sentinel {data: [{time: "unknown"}]}."""
    if not isinstance(payload, dict):
        return False
    data = payload.get("data")
    return (
        isinstance(data, list)
        and len(data) == 1
        and isinstance(data[0], dict)
        and data[0].get("time") == NO_DATA_TIME
    )


def _records(payload: Dict, *keys: str) -> List[Dict]:
    """First present list under one of keys; validates element shape."""
    for key in keys:
        records = payload.get(key)
        if records is None:
            continue
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            raise MalformedPayloadError(f"'{key}' is not a list of objects")
        return records
    return []


def parse_intraday_points(payload: Dict, limit: Optional[int] = None) -> List[TrendSample]:
    """
    Normalize the intraday payload into TrendSample points, in payload order.

    limit keeps only the first `limit` raw records (one per session minute)
    before anything is dropped. Points without a numeric value are dropped.
    Each point carries the payload's previousClose as its average line.
    """
    records = _records(payload, "data")
    if limit is not None:
        records = records[:max(0, limit)]
    if not records:
        return []

    df = pd.DataFrame(records)
    if "time" not in df.columns or "value" not in df.columns:
        raise MalformedPayloadError("intraday points need 'time' and 'value'")

    df["value"] = pd.to_numeric(df["value"], errors="coerce")
    df["rate"] = pd.to_numeric(df["rate"], errors="coerce") if "rate" in df.columns else float("nan")
    df = df.dropna(subset=["time", "value"])

    average = _optional_float(payload.get("previousClose"))
    return [
        TrendSample(
            time=str(row["time"]),
            value=float(row["value"]),
            rate=_optional_float(row["rate"]),
            average=average,
        )
        for _, row in df.iterrows()
    ]


def parse_trend_points(payload: Dict) -> List[HistoricalSample]:
    """Normalize {trendData: [{time|date, value|netWorth}]} into HistoricalSample points."""
    records = _records(payload, "trendData", "data")
    if not records:
        return []

    df = pd.DataFrame(records)
    time_col = df["time"] if "time" in df.columns else pd.Series([None] * len(df), index=df.index)
    if "date" in df.columns:
        time_col = time_col.fillna(df["date"])

    value_col = pd.to_numeric(df["value"], errors="coerce") if "value" in df.columns else pd.Series([float("nan")] * len(df), index=df.index)
    if "netWorth" in df.columns:
        value_col = value_col.fillna(pd.to_numeric(df["netWorth"], errors="coerce"))

    out = pd.DataFrame({"time": time_col, "value": value_col}).dropna(subset=["time", "value"])
    return [HistoricalSample(time=str(row["time"]), value=float(row["value"])) for _, row in out.iterrows()]


class FundAPIClient:
    """Blocking client for the fund collector backend (run it in an executor from async code)."""

    def __init__(
        self,
        base_url: str = settings.FUND_API_BASE_URL,
        timeout_s: float = settings.HTTP_TIMEOUT_SECONDS,
        retries: int = settings.HTTP_RETRY_COUNT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.retries = max(0, int(retries))
        self._session = session or get_requests_session_with_proxy()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict:
        url = f"{self.base_url}/{path.lstrip('/')}"
        last_err: Optional[FundAPIError] = None
        logger.debug(f"[FundAPI] GET path={path} params={params}")

        for i in range(self.retries + 1):
            try:
                r = self._session.get(url, params=params, timeout=self.timeout_s)
            except requests.RequestException as e:
                last_err = FundAPIError(f"{path}: {e}")
            else:
                if r.status_code == 200:
                    try:
                        data = r.json()
                    except ValueError as e:
                        raise MalformedPayloadError(f"{path}: invalid JSON ({e})", status_code=r.status_code)
                    if not isinstance(data, dict):
                        raise MalformedPayloadError(f"{path}: expected a JSON object", status_code=r.status_code)
                    return data

                last_err = FundAPIError(f"{path}: HTTP {r.status_code}: {r.text[:200]}", status_code=r.status_code)
                if r.status_code < 500:
                    break  # 4xx 不重试

            if i < self.retries:
                time.sleep(0.5 * (2 ** i))

        logger.warning(f"[FundAPI] GET FAILED path={path} error={last_err}")
        raise last_err

    def get_fund_detail(self, code: str) -> Dict:
        return self._get("fund/detail", {"code": code})

    def get_intraday(self, code: str) -> Dict:
        return self._get("fund/intraday", {"code": code})

    def get_trend(self, code: str, period: str) -> Dict:
        if period not in TREND_PERIODS:
            raise ValueError(f"Unsupported trend period: {period}")
        return self._get("fund/trend", {"code": code, "period": period})

    def list_funds(self, keyword: str, page_size: int = settings.SEARCH_PAGE_SIZE) -> List[FundBasic]:
        payload = self._get("fund/list", {"keyword": keyword, "pageSize": page_size})
        results = []
        for item in _records(payload, "data"):
            code = str(item.get("code") or "").strip()
            if not code:
                continue
            results.append(FundBasic(code=code, name=item.get("name") or "", type=item.get("type") or ""))
        return results


class NullFundClient:
    """Live capability that is never available; every call fails like an unreachable backend."""

    def _unavailable(self, *args, **kwargs):
        raise FundAPIError("live fund API disabled")

    get_fund_detail = _unavailable
    get_intraday = _unavailable
    get_trend = _unavailable
    list_funds = _unavailable
