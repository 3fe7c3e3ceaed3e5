"""API Marketplace: FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import stripe
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace.api.v1.analytics import router as analytics_router
from marketplace.api.v1.api_tester import router as api_tester_router
from marketplace.api.v1.endpoints import router as endpoints_router
from marketplace.api.v1.notifications import router as notifications_router
from marketplace.api.v1.payment_methods import router as payment_methods_router
from marketplace.api.v1.services import router as services_router
from marketplace.api.v1.subscriptions import router as subscriptions_router
from marketplace.api.v1.users import router as users_router
from marketplace.api.v1.versions import router as versions_router
from marketplace.config import settings
from marketplace.errors import ErrorKind, MarketplaceError
from marketplace.schemas.common import ErrorResponse

# Configure root logger so all marketplace.* loggers output to stderr.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    yield
    # Shutdown: dispose engine connections
    from marketplace.database import engine

    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Publish, document, and subscribe to third-party APIs.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    if exc.kind is ErrorKind.INTERNAL:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(code=exc.kind.value, message=exc.message).model_dump(),
    )


@app.exception_handler(stripe.StripeError)
async def stripe_error_handler(request: Request, exc: stripe.StripeError) -> JSONResponse:
    logger.error("Stripe error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=502,
        content=ErrorResponse(
            code=ErrorKind.UPSTREAM.value,
            message=exc.user_message or "Payment provider error.",
        ).model_dump(),
    )


# Routers
app.include_router(services_router)
app.include_router(versions_router)
app.include_router(endpoints_router)
app.include_router(subscriptions_router)
app.include_router(payment_methods_router)
app.include_router(users_router)
app.include_router(analytics_router)
app.include_router(api_tester_router)
app.include_router(notifications_router)


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
