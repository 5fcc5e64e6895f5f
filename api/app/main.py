# main.py

"""FastAPI application for storefront cart pricing and order placement."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import get_settings

from .db import get_session_factory, init_models
from .errors import PricingError
from .middlewares import HttpErrorCounterMiddleware, LoggingMiddleware, RequestIdMiddleware
from .obs import configure_logging
from .routes_cart import router as cart_router
from .routes_coupons import router as coupons_router
from .routes_metrics import pricing_failures_total
from .routes_metrics import router as metrics_router
from .routes_orders import router as orders_router
from .utils.responses import err, pricing_err

logger = logging.getLogger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    factory = get_session_factory()
    await init_models(factory.kw["bind"])
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(getattr(logging, settings.log_level.upper(), logging.INFO))

    app = FastAPI(title="Storefront Pricing", lifespan=lifespan)
    app.add_middleware(HttpErrorCounterMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(LoggingMiddleware)

    @app.exception_handler(PricingError)
    async def pricing_error_handler(request: Request, exc: PricingError):
        pricing_failures_total.labels(code=exc.code).inc()
        logger.warning(
            exc.message,
            extra={
                "status": exc.status_code,
                "code": exc.code,
                "route": request.url.path,
                "user": request.headers.get("X-User"),
            },
        )
        return JSONResponse(pricing_err(exc), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": [str(p) for p in e.get("loc", ())], "msg": e.get("msg"), "type": e.get("type")}
            for e in exc.errors()
        ]
        return JSONResponse(
            err("VALIDATION", "Invalid request", details={"errors": errors}),
            status_code=422,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(
            exc.detail,
            extra={
                "status": exc.status_code,
                "route": request.url.path,
                "user": request.headers.get("X-User"),
            },
        )
        return JSONResponse(err(exc.status_code, exc.detail), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def general_error_handler(request: Request, exc: Exception):
        logger.exception(
            "unhandled_error",
            extra={
                "status": 500,
                "route": request.url.path,
                "user": request.headers.get("X-User"),
            },
        )
        return JSONResponse(err(500, "Internal Server Error"), status_code=500)

    app.include_router(cart_router)
    app.include_router(coupons_router)
    app.include_router(orders_router)
    app.include_router(metrics_router)
    return app


app = create_app()
