import os
import sys
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Ensure project root is in path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from config import settings
from app.routers import funds
from src.data_sources.trading_session import is_trading_time
from src.storage.db import init_db

logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)


# --- Startup/Shutdown ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    init_db()
    logger.info(f"SmartFund API starting (data source: {settings.DATA_SOURCE_PROVIDER}, fund API: {settings.FUND_API_BASE_URL})")
    yield


app = FastAPI(title="SmartFund API", lifespan=lifespan)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(funds.router)


@app.get("/api/status")
async def get_service_status():
    return {
        "status": "running",
        "data_source": settings.DATA_SOURCE_PROVIDER,
        "is_trading": is_trading_time(),
        "current_time": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
    }


@app.get("/health")
async def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
