"""
FastAPI dependency providers.
"""
from typing import Optional

from config import settings
from src.data_sources.data_source_manager import FundDataResolver, create_resolver

_resolver: Optional[FundDataResolver] = None


def get_resolver() -> FundDataResolver:
    """Process-wide resolver, built from settings on first use."""
    global _resolver
    if _resolver is None:
        _resolver = create_resolver()
    return _resolver


def get_db_path() -> str:
    return settings.DB_PATH
