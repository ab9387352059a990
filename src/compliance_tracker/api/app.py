"""
Compliance Tracker — FastAPI Server

REST API nad statičnim JSON podacima o e-fakturiranju po državama:
filtriranje, paginacija, izvoz i CRUD za korisničke formate,
zakonodavstvo i linkove. Sve rute su pod /api/v1.
"""

import logging
import time
import traceback
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from compliance_tracker.api.ratelimit import SlidingWindowLimiter
from compliance_tracker.api.responses import envelope, error_response
from compliance_tracker.api.routes import (
    countries_router, custom_content_router, custom_links_router, export_router,
)
from compliance_tracker.core.config import VERSION, TrackerConfig
from compliance_tracker.core.errors import ApiError, DataLoadError
from compliance_tracker.countries.repository import CountryRepository
from compliance_tracker.services.custom_content import (
    CustomFormatService, CustomLegislationService, CustomLinkService,
)
from compliance_tracker.storage.json_store import JsonCollection

logger = logging.getLogger("compliance_tracker.api")

API_PREFIX = "/api/v1"

# ═══════════════════════════════════════════
# STATE
# ═══════════════════════════════════════════


class AppState:
    def __init__(self, config: TrackerConfig):
        self.config = config
        self.countries: Optional[CountryRepository] = None
        self.formats: Optional[CustomFormatService] = None
        self.legislation: Optional[CustomLegislationService] = None
        self.links: Optional[CustomLinkService] = None
        self.limiter = SlidingWindowLimiter(config.rate_limit_max, config.rate_limit_window_sec)
        self.start_time = datetime.now(timezone.utc)

    def load(self):
        """Učitaj sve kolekcije. Neispravna datoteka diže DataLoadError (start se prekida)."""
        cfg = self.config
        self.countries = CountryRepository(cfg.countries_file, cfg.compliance_file)
        resolve = self.countries.resolve_name
        self.formats = CustomFormatService(
            JsonCollection(cfg.custom_formats_file, "custom formats"), resolve)
        self.legislation = CustomLegislationService(
            JsonCollection(cfg.custom_legislation_file, "custom legislation"), resolve)
        self.links = CustomLinkService(
            JsonCollection(cfg.custom_links_file, "custom links"), resolve)

    @property
    def uptime(self) -> float:
        return (datetime.now(timezone.utc) - self.start_time).total_seconds()


# ═══════════════════════════════════════════
# APP CREATION
# ═══════════════════════════════════════════


def create_app(config: Optional[TrackerConfig] = None) -> FastAPI:
    config = config or TrackerConfig.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Compliance Tracker starting (%s)...", config.environment)
        state = AppState(config)
        state.load()
        app.state.tracker = state
        logger.info("Data dir: %s, rate limit: %d req / %ds",
                    config.data_dir, config.rate_limit_max, config.rate_limit_window_sec)
        yield
        logger.info("Compliance Tracker stopped")

    app = FastAPI(
        title="E-Invoicing Compliance Tracker API",
        version=VERSION,
        description="E-invoicing compliance requirements across countries",
        lifespan=lifespan,
    )

    # ── Middleware (zadnji dodan = vanjski) ──

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        if request.url.path.startswith("/api/"):
            limiter = request.app.state.tracker.limiter
            client = request.client.host if request.client else "unknown"
            if not limiter.hit(client):
                return error_response(
                    request, 429, "RATE_LIMIT_EXCEEDED",
                    "Too many requests from this IP, please try again later.",
                    {"retryAfter": int(limiter.reset_in(client))},
                )
        return await call_next(request)

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = rid
        start = time.time()
        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        duration_ms = (time.time() - start) * 1000
        log = logger.warning if response.status_code >= 400 else logger.info
        log("%s %s - %d - %.0fms", request.method, request.url.path,
            response.status_code, duration_ms)
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.cors_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    # ── Exception handlers ──

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error("API error: %s", exc)
        return error_response(request, exc.status_code, exc.code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = []
        for err in exc.errors():
            loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
            errors.append({
                "field": ".".join(loc),
                "message": err.get("msg", ""),
                "value": jsonable_encoder(err.get("input")),
            })
        return error_response(request, 400, "VALIDATION_ERROR",
                              "Request validation failed", {"errors": errors})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(request, 404, "ROUTE_NOT_FOUND",
                                  f"Route {request.method} {request.url.path} not found")
        return error_response(request, exc.status_code, "HTTP_ERROR", str(exc.detail))

    @app.exception_handler(DataLoadError)
    async def data_error_handler(request: Request, exc: DataLoadError):
        logger.error("Data load failed: %s", exc)
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)) \
            if config.is_development else None
        return error_response(request, 500, "INTERNAL_SERVER_ERROR",
                              "Failed to load compliance data", stack=stack)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)) \
            if config.is_development else None
        return error_response(request, 500, "INTERNAL_SERVER_ERROR",
                              "Internal server error", stack=stack)

    # ── Rute ──

    app.include_router(countries_router, prefix=API_PREFIX)
    app.include_router(custom_links_router, prefix=API_PREFIX)
    app.include_router(custom_content_router, prefix=API_PREFIX)
    app.include_router(export_router, prefix=API_PREFIX)

    @app.get("/health")
    async def health(request: Request):
        state: AppState = request.app.state.tracker
        return envelope(request, {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "uptime": state.uptime,
            "version": VERSION,
            "environment": config.environment,
            "dataLoaded": state.countries.counts(),
        })

    @app.get(API_PREFIX)
    async def api_index(request: Request):
        return envelope(request, {
            "name": "E-Invoicing Compliance Tracker API",
            "version": VERSION,
            "endpoints": {
                "countries": f"{API_PREFIX}/countries",
                "customLinks": f"{API_PREFIX}/custom-links",
                "customContent": f"{API_PREFIX}/custom-content",
                "export": f"{API_PREFIX}/export",
                "health": "/health",
            },
        })

    return app


app = create_app()
