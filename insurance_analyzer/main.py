"""
Insurance Analyzer API: application entry point.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.middleware import SlowAPIMiddleware

from insurance_analyzer.api.router import api_router
from insurance_analyzer.config import settings
from insurance_analyzer.core.errors import register_exception_handlers
from insurance_analyzer.core.rate_limit import limiter
from insurance_analyzer.db.session import init_db

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION} started ({settings.ENVIRONMENT})")
    yield
    logger.info("Shutting down")


app = FastAPI(
    title=settings.APP_NAME,
    description="Upload insurance policy PDFs and get AI-generated analysis reports",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# ── Rate limiting ──
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

# ── CORS ──
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router)


@app.get("/health")
@app.get("/api/health")
async def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


if __name__ == "__main__":
    uvicorn.run("insurance_analyzer.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
