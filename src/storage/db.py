import sqlite3
import json
import logging
from typing import List, Optional

from config import settings

logger = logging.getLogger(__name__)

# 自选基金快照的存储键
STORAGE_KEY = 'smartfund_favorites'
DEFAULT_MY_FUNDS = ['005827', '161725', '001618']


def get_db_connection(db_path: Optional[str] = None):
    conn = sqlite3.connect(db_path or settings.DB_PATH, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Optional[str] = None):
    conn = get_db_connection(db_path)
    c = conn.cursor()

    # Key/value snapshots (one JSON document per key)
    c.execute('''
        CREATE TABLE IF NOT EXISTS app_state (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    conn.commit()
    conn.close()


def get_state(key: str, db_path: Optional[str] = None) -> Optional[str]:
    conn = get_db_connection(db_path)
    try:
        row = conn.execute('SELECT value FROM app_state WHERE key = ?', (key,)).fetchone()
        return row['value'] if row else None
    finally:
        conn.close()


def set_state(key: str, value: str, db_path: Optional[str] = None):
    conn = get_db_connection(db_path)
    try:
        conn.execute('''
            INSERT INTO app_state (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP
        ''', (key, value))
        conn.commit()
    finally:
        conn.close()


def _dedupe(codes: List[str]) -> List[str]:
    seen = set()
    ordered = []
    for code in codes:
        code = str(code).strip()
        if code and code not in seen:
            seen.add(code)
            ordered.append(code)
    return ordered


def get_saved_fund_codes(db_path: Optional[str] = None) -> List[str]:
    """Watch-list codes in insertion order; the built-in list when missing or corrupt."""
    try:
        init_db(db_path)
        stored = get_state(STORAGE_KEY, db_path)
        if stored is None:
            return list(DEFAULT_MY_FUNDS)

        codes = json.loads(stored)
        if not isinstance(codes, list):
            raise ValueError(f"expected a list, got {type(codes).__name__}")
        return _dedupe(codes)
    except (sqlite3.Error, ValueError) as e:
        logger.warning(f"[Storage] Watch-list snapshot unreadable, using defaults: {e}")
        return list(DEFAULT_MY_FUNDS)


def save_fund_codes(codes: List[str], db_path: Optional[str] = None) -> List[str]:
    """Persist the watch-list as a single snapshot. Returns what was saved."""
    ordered = _dedupe(codes)
    init_db(db_path)
    set_state(STORAGE_KEY, json.dumps(ordered, ensure_ascii=False), db_path)
    return ordered
