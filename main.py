from contextlib import asynccontextmanager
from typing import Optional
import asyncio
import logging
import time

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.engine import Engine

load_dotenv()

from core.config import Settings, get_settings
from core.database import build_engine, create_db_and_tables
from core.exceptions import AppException, api_error, api_success
from core.logging_config import configure_logging
from core.rate_limit import limiter, rate_limit_exceeded_handler
from routes.activity import router as activity_router
from routes.auth import router as auth_router
from routes.comments import router as comments_router
from routes.projects import router as project_router
from routes.riders import router as riders_router
from routes.subscriptions import router as subscriptions_router
from routes.sync import router as sync_router
from routes.webhooks import router as webhook_router
from services.bds_sync_service import run_periodic_sync

logger = logging.getLogger("rider_service.api")


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    """
    Build the API. The engine is created here (or injected by tests) and
    lives on ``app.state`` for the lifetime of the process.
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    # =========================================
    # 🏁 Lifespan (DB initialization + BDS sync loop)
    # =========================================
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        create_db_and_tables(app.state.engine)
        sync_task = None
        if settings.BDS_SYNC_ENABLED:
            sync_task = asyncio.create_task(run_periodic_sync(settings))
            logger.info("📅 BDS sync scheduled every %s minutes", settings.BDS_SYNC_INTERVAL_MINUTES)
        yield
        if sync_task is not None:
            sync_task.cancel()
        logger.info("✅ Application shutting down.")

    app = FastAPI(lifespan=lifespan, title="Rider Service API", version="1.0.0")
    app.state.engine = engine or build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    if settings is not get_settings():
        app.dependency_overrides[get_settings] = lambda: settings
    app.state.limiter = limiter

    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================
    # 🧾 Request logging
    # =========================================
    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start_time) * 1000.0
        logger.info(
            "%s %s -> %s (%.1f ms)",
            request.method, request.url.path, response.status_code, elapsed_ms,
        )
        return response

    # =========================================
    # ⚠️ Error envelopes
    # =========================================
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        return JSONResponse(status_code=exc.status_code, content=api_error(exc.code, exc.message, exc.details))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Validation failed") if errors else "Validation failed"
        details = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors]
        return JSONResponse(status_code=400, content=api_error("VALIDATION_ERROR", message, details))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=api_error("INTERNAL_SERVER_ERROR", "Internal server error"))

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # =========================================
    # 📦 Routers
    # =========================================
    app.include_router(webhook_router, prefix="/webhook")
    app.include_router(auth_router, prefix="/auth")
    app.include_router(project_router, prefix="/projects")
    app.include_router(riders_router, prefix="/riders")
    app.include_router(comments_router, prefix="/riders")
    app.include_router(subscriptions_router, prefix="/subscriptions")
    app.include_router(activity_router, prefix="/user")
    app.include_router(sync_router, prefix="/sync")

    # =========================================
    # 🩺 Health Check
    # =========================================
    started_at = time.monotonic()

    @app.get("/health")
    @limiter.exempt
    def health_check(request: Request):
        return api_success({"status": "healthy", "uptime": round(time.monotonic() - started_at, 1)})

    @app.get("/")
    def read_root(request: Request):
        return api_success({
            "message": "Rider Service API",
            "version": app.version,
            "endpoints": {
                "auth": "/auth",
                "projects": "/projects",
                "riders": "/riders",
                "subscriptions": "/subscriptions",
                "user": "/user",
                "sync": "/sync",
                "health": "/health",
            },
        })

    return app


app = create_app()
