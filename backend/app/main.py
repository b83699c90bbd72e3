"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from app.api import (
    admin_router,
    health_router,
    leaderboard_router,
    prizes_router,
    quizzes_router,
    scoring_router,
    users_router,
    wallet_router,
)
from app.config import settings
from app.core.errors import AppError
from app.db.session import init_db
from app.schemas.common import ErrorResponse
from app.services.rate_limiter import require_admin_rate_limit

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s  %(name)-25s  %(levelname)-8s  %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Think2Win backend starting…")
    if settings.AUTO_CREATE_TABLES:
        init_db()
    yield
    logger.info("✅ Think2Win backend shut down")


app = FastAPI(
    title="Think2Win API",
    description="Prediction quizzes, evaluation, points allocation and prize redemption",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Middleware ─────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# ── Errors ────────────────────────────────────────────────────────────────────


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.error_code, exc.message)
    body = ErrorResponse(error_code=exc.error_code, message=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


# ── Routers ───────────────────────────────────────────────────────────────────

admin_limits = [Depends(require_admin_rate_limit)]

app.include_router(health_router, tags=["Health"])
app.include_router(users_router, prefix="/api/users", tags=["Users"])
app.include_router(quizzes_router, prefix="/api/quizzes", tags=["Quizzes"])
app.include_router(leaderboard_router, prefix="/api/leaderboard", tags=["Leaderboard"])
app.include_router(prizes_router, prefix="/api", tags=["Prizes"])
app.include_router(wallet_router, prefix="/api/wallet", tags=["Wallet"])
app.include_router(
    scoring_router, prefix="/api/admin", tags=["Admin: Scoring"], dependencies=admin_limits
)
app.include_router(admin_router, prefix="/api/admin", tags=["Admin"], dependencies=admin_limits)


@app.get("/")
async def root():
    return {
        "name": "Think2Win API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
