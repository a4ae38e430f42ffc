import time
import logging
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from .infrastructure.db import engine, SessionLocal
from .infrastructure.models import Base
from .infrastructure.metrics import (
    metrics_endpoint,
    http_requests_total,
    http_request_duration_seconds
)
from .infrastructure.ratelimit import limiter
from .infrastructure.seed import seed_reference_data
from .interfaces.http.routers import auth as auth_router
from .interfaces.http.routers import dashboard as dashboard_router
from .interfaces.http.routers import games as games_router
from .interfaces.http.routers import learning as learning_router
from .interfaces.http.routers import profile as profile_router
from .interfaces.http.routers import projects as projects_router
from .domain.errors import DomainError, Unexpected
from .config import settings

# Настройка структурированного логирования
log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(log_level),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

app = FastAPI(title="CodEd Service", version="0.1.0")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# Добавляем middleware для правильной кодировки и метрик
@app.middleware("http")
async def add_charset_header(request: Request, call_next):
    start_time = time.time()
    method = request.method
    path = request.url.path

    # упавший обработчик учитываем как 500
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        if response.headers.get("content-type", "").startswith("application/json"):
            response.headers["content-type"] = "application/json; charset=utf-8"
        return response
    finally:
        # Метрики
        duration = time.time() - start_time
        http_requests_total.labels(method=method, endpoint=path, status=status_code).inc()
        http_request_duration_seconds.labels(method=method, endpoint=path).observe(duration)

        # Логирование
        logger.info(
            "http_request",
            method=method,
            path=path,
            status_code=status_code,
            duration_ms=round(duration * 1000, 2)
        )


def field_errors(errors: list[dict]) -> dict[str, list[str]]:
    result: dict[str, list[str]] = {}
    for err in errors:
        loc = [part for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = str(loc[-1]) if loc else "_form"
        msg = err.get("msg", "Invalid value").removeprefix("Value error, ")
        result.setdefault(field, []).append(msg)
    return result


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": "validation failed", "errors": field_errors(exc.errors())},
    )


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    content = {"detail": exc.message}
    if exc.errors:
        content["errors"] = {k: v for k, v in exc.errors.items() if v}
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    # наружу только общий текст, детали в лог
    logger.error("unexpected_error", path=request.url.path, error=repr(exc))
    return JSONResponse(status_code=500, content={"detail": Unexpected().message})


@app.on_event("startup")
def on_startup():
    logger.info("Starting CodEd service", version="0.1.0")
    Base.metadata.create_all(bind=engine)

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("Database connection established")

    if settings.SEED_REFERENCE_DATA:
        db = SessionLocal()
        try:
            seed_reference_data(db)
        finally:
            db.close()


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint"""
    return metrics_endpoint()


app.include_router(auth_router.router)
app.include_router(learning_router.router)
app.include_router(games_router.router)
app.include_router(dashboard_router.router)
app.include_router(profile_router.router)
app.include_router(projects_router.router)
