import logging
import logging.handlers
import contextvars
import uuid
from pathlib import Path
from typing import Optional

from core.config import settings
from core.security import get_token_subject
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# Loggers whose records also go to referrals.log, the referral audit trail
REFERRAL_AUDIT_LOGGERS = (
    "services.referral_service",
    "services.events",
    "services.gamification_service",
    "services.notification_service",
)

REQUEST_ID_HEADER = "X-Request-ID"

user_id_var = contextvars.ContextVar("user_id", default="-")
api_var = contextvars.ContextVar("api", default="-")
request_id_var = contextvars.ContextVar("request_id", default="-")


def map_log_level(level_name: str) -> int:
    level = logging.getLevelName((level_name or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.user_id = user_id_var.get()
        record.api = api_var.get()
        record.request_id = request_id_var.get()
        return True


def _daily_file(log_dir: Path, filename: str, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(log_dir / filename),
        when="midnight",
        backupCount=max(settings.LOG_TTL_DAYS, 0),
        encoding="utf-8",
        utc=True,
    )
    handler.suffix = "%Y-%m-%d"
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    return handler


def _attach(target: logging.Logger, handlers: list, level: int, propagate: bool = False) -> None:
    for h in list(target.handlers):
        target.removeHandler(h)
    for h in handlers:
        target.addHandler(h)
    target.setLevel(level)
    target.propagate = propagate


def configure_logging(app_logger_name: Optional[str] = None) -> logging.Logger:
    """Daily-rotated file logging plus console, tagged with request context.

    Files kept for LOG_TTL_DAYS:
        app.log        everything at LOG_LEVEL
        error.log      WARNING and above
        access.log     uvicorn access lines
        referrals.log  code assignment, redemptions and their listeners
    """
    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    level = map_log_level(settings.LOG_LEVEL)

    formatter = logging.Formatter(
        fmt="%(levelname)s - %(asctime)s - %(request_id)s - %(user_id)s - %(api)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    console.addFilter(ContextFilter())

    app_handlers = [
        _daily_file(log_dir, "app.log", level, formatter),
        _daily_file(log_dir, "error.log", logging.WARNING, formatter),
        console,
    ]

    # Service modules log under their module names and reach these via root
    _attach(logging.getLogger(), app_handlers, level, propagate=True)

    app_logger = logging.getLogger(app_logger_name or "dyor_hub")
    _attach(app_logger, app_handlers, level)

    for name in ("uvicorn", "uvicorn.error", "fastapi"):
        _attach(logging.getLogger(name), app_handlers, level)
    _attach(logging.getLogger("uvicorn.access"), [_daily_file(log_dir, "access.log", level, formatter), console], level)

    audit = _daily_file(log_dir, "referrals.log", logging.INFO, formatter)
    for name in REFERRAL_AUDIT_LOGGERS:
        _attach(logging.getLogger(name), [audit], level, propagate=True)

    return app_logger


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind request id, caller and route to every log line of a request."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        user_id = "-"
        auth_header = request.headers.get("authorization")
        if auth_header and auth_header.startswith("Bearer "):
            user_id = get_token_subject(auth_header.split(" ", 1)[1]) or "-"

        tokens = (
            request_id_var.set(request_id),
            user_id_var.set(user_id),
            api_var.set(f"{request.method} {request.url.path}"),
        )
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_var.reset(tokens[0])
            user_id_var.reset(tokens[1])
            api_var.reset(tokens[2])
