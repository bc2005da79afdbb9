"""
应用配置
Settings are module-level constants read from the environment, after a local
.env file (if any) has been loaded. Environment variables always win.
"""
import os
from typing import List

from dotenv import load_dotenv

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
ENV_FILE = os.path.join(BASE_DIR, ".env")

# Load .env file first
load_dotenv(ENV_FILE)


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.environ.get(name, default).split(",") if item.strip()]


# Live fund API (fund collector backend). "mock" skips it entirely.
FUND_API_BASE_URL = os.environ.get("FUND_API_BASE_URL", "http://localhost:8080/api").rstrip("/")
DATA_SOURCE_PROVIDER = os.environ.get("DATA_SOURCE_PROVIDER", "live").lower()

# HTTP client
HTTP_TIMEOUT_SECONDS = float(os.environ.get("HTTP_TIMEOUT_SECONDS", "5"))
HTTP_RETRY_COUNT = int(os.environ.get("HTTP_RETRY_COUNT", "1"))

# Storage
DB_PATH = os.environ.get("DB_FILE_PATH", os.path.join(BASE_DIR, "smartfund.db"))

# Dashboard
SIMULATED_DEFAULT_TIME = os.environ.get("SIMULATED_DEFAULT_TIME", "15:00")
SEARCH_DEBOUNCE_SECONDS = float(os.environ.get("SEARCH_DEBOUNCE_SECONDS", "0.3"))
SEARCH_PAGE_SIZE = int(os.environ.get("SEARCH_PAGE_SIZE", "50"))

# API server
CORS_ORIGINS = _env_list("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173")
API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
