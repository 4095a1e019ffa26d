"""
FastAPI application for the keyword match service.
"""

import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import get_config
from core.logger import get_logger, setup_logging
from modules.database.storage import MatchStorage
from modules.keywords.manager import KeywordValidationError
from api.routes import keywords
from api.routes.keywords import get_storage
from api.middleware.error_handler import (
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    keyword_validation_handler,
    api_error_handler,
    APIError
)
from api.middleware.rate_limit import limiter, rate_limit_handler

logger = get_logger(__name__)
config = get_config()

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown."""
    setup_logging(log_level=config.log_level, log_file=config.log_file)
    logger.info("Starting keyword match API", environment=config.environment)
    yield
    logger.info("Shutting down keyword match API")


app = FastAPI(
    title="VK Keyword Match API",
    description="Keyword management and keyword match recalculation for VK comments and posts",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

cors_origins = os.getenv("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Exception handlers
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(KeywordValidationError, keyword_validation_handler)
app.add_exception_handler(APIError, api_error_handler)

app.include_router(keywords.router, prefix="/api/v1/keywords", tags=["keywords"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "VK Keyword Match API",
        "version": VERSION,
        "docs": "/docs"
    }


@app.get("/health")
def health(storage: MatchStorage = Depends(get_storage)):
    """Health check with database connectivity."""
    health_status = {
        "status": "healthy",
        "version": VERSION,
        "services": {
            "config": {
                "status": "healthy",
                "environment": config.environment,
                "match_batch_size": config.match_batch_size
            }
        }
    }

    try:
        storage.ping()
        health_status["services"]["database"] = {"status": "healthy"}
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        health_status["status"] = "degraded"
        health_status["services"]["database"] = {"status": "unhealthy", "error": str(e)[:200]}

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JSONResponse(content=health_status, status_code=status_code)
