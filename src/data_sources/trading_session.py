"""
A股交易时段工具
Maps wall-clock "HH:MM" strings onto the elapsed-minute axis of a trading
session (09:30-11:30, 13:00-15:00) and back.

Minute 0 is the morning open, minute 120 is the morning close (the lunch
break is frozen there) and minute 240 is the afternoon close.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class TradingSession:
    """Two contiguous sub-windows, expressed in minutes from midnight."""
    morning_start: int = 9 * 60 + 30     # 570
    morning_end: int = 11 * 60 + 30      # 690
    afternoon_start: int = 13 * 60       # 780
    afternoon_end: int = 15 * 60         # 900

    @property
    def morning_span(self) -> int:
        return self.morning_end - self.morning_start

    @property
    def afternoon_span(self) -> int:
        return self.afternoon_end - self.afternoon_start

    @property
    def total_minutes(self) -> int:
        return self.morning_span + self.afternoon_span


DEFAULT_SESSION = TradingSession()


def _parse_wall_minutes(time_str: str) -> int:
    hour, minute = time_str.strip().split(":")[:2]
    return int(hour) * 60 + int(minute)


def _format_wall_minutes(total_mins: int) -> str:
    return f"{total_mins // 60:02d}:{total_mins % 60:02d}"


def normalize_time_label(time_str: str) -> str:
    """Zero-padded "HH:MM" for a wall-clock label such as "9:35". Raises ValueError if unparsable."""
    return _format_wall_minutes(_parse_wall_minutes(time_str))


def minutes_elapsed(time_str: Optional[str], session: TradingSession = DEFAULT_SESSION) -> int:
    """
    Convert a wall-clock time into an offset on the session axis.

    Args:
        time_str: 24-hour "HH:MM". Empty or None means the session is over.
        session: Session bounds

    Returns:
        Offset in [0, session.total_minutes]
    """
    if not time_str:
        return session.total_minutes

    wall = _parse_wall_minutes(time_str)

    if wall < session.morning_start:
        return 0
    if wall > session.afternoon_end:
        return session.total_minutes

    if wall <= session.morning_end:
        return wall - session.morning_start

    # 午休：停在上午收盘
    if wall < session.afternoon_start:
        return session.morning_span

    return session.morning_span + (wall - session.afternoon_start)


def display_time(offset: int, session: TradingSession = DEFAULT_SESSION) -> str:
    """Inverse of minutes_elapsed: session offset -> "HH:MM" label."""
    if offset <= session.morning_span:
        total_mins = session.morning_start + offset
    else:
        total_mins = session.afternoon_start + (offset - session.morning_span)
    return _format_wall_minutes(total_mins)


def session_time_labels(session: TradingSession = DEFAULT_SESSION) -> List[str]:
    """Every minute label of the session, morning close and afternoon open included."""
    labels = [_format_wall_minutes(m) for m in range(session.morning_start, session.morning_end + 1)]
    labels += [_format_wall_minutes(m) for m in range(session.afternoon_start, session.afternoon_end + 1)]
    return labels


def is_trading_time(now: Optional[datetime] = None, session: TradingSession = DEFAULT_SESSION) -> bool:
    """Check whether a moment falls on a weekday inside one of the sub-windows."""
    now = now or datetime.now()
    if now.weekday() >= 5:  # Saturday=5, Sunday=6
        return False

    current = now.hour * 60 + now.minute
    return (session.morning_start <= current <= session.morning_end) or \
        (session.afternoon_start <= current <= session.afternoon_end)
