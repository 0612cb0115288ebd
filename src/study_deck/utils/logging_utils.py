"""Logging helpers for the Study Deck service.

`log_performance` times manager operations, `log_application_lifecycle` and
`log_error_with_context` record startup/shutdown and failures, and
`RequestLoggingMiddleware` logs every HTTP exchange. Values passed to the
logs go through `redact_arguments` so passwords and tokens never reach the
console.
"""

import asyncio
from datetime import datetime, timezone
import functools
import time
import traceback
from typing import Any, Callable, Dict, Iterable, Optional
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from study_deck.managers.logging_manager import get_logger

SLOW_OPERATION_SECONDS = 2.0
SLOW_REQUEST_SECONDS = 1.0
MAX_LOGGED_VALUE_LENGTH = 100
REDACTED = "<REDACTED>"
SENSITIVE_MARKERS = ("password", "token", "secret", "key", "auth", "credential", "hash")
PROXY_HEADERS = ("x-forwarded-for", "x-real-ip")


def _short_id() -> str:
    return uuid.uuid4().hex[:8]


def client_address(request: Request) -> str:
    """First proxy-reported address of the caller, else the socket peer."""
    for header in PROXY_HEADERS:
        value = request.headers.get(header)
        if value:
            return value.split(",", 1)[0].strip()
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, caller, status and duration of each request."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.logger = get_logger(prefix="[REQUEST]")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        tag = _short_id()
        route = f"{request.method} {request.url.path}"
        started = time.perf_counter()
        self.logger.info("[%s] %s from %s", tag, route, client_address(request))

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed = time.perf_counter() - started
            self.logger.error("[%s] %s raised after %.3fs: %s", tag, route, elapsed, e, exc_info=True)
            raise

        elapsed = time.perf_counter() - started
        level_name = "warning" if elapsed > SLOW_REQUEST_SECONDS else "info"
        getattr(self.logger, level_name)("[%s] %s -> %d in %.3fs", tag, route, response.status_code, elapsed)
        return response


def _is_sensitive(name: str) -> bool:
    lowered = name.lower()
    return any(marker in lowered for marker in SENSITIVE_MARKERS)


def _shorten(value: Any) -> str:
    text = str(value)
    if len(text) > MAX_LOGGED_VALUE_LENGTH:
        return text[:MAX_LOGGED_VALUE_LENGTH] + "..."
    return text


def redact_arguments(args: Iterable[Any] = (), kwargs: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Render call arguments for the logs.

    Positional values whose text mentions a sensitive marker and keyword
    values whose name does are replaced by ``<REDACTED>``; everything else is
    truncated to ``MAX_LOGGED_VALUE_LENGTH`` characters.
    """
    rendered: Dict[str, Any] = {}
    positional = [REDACTED if _is_sensitive(str(arg)) else _shorten(arg) for arg in args]
    if positional:
        rendered["args"] = positional
    if kwargs:
        rendered["kwargs"] = {name: REDACTED if _is_sensitive(name) else _shorten(value) for name, value in kwargs.items()}
    return rendered


def log_performance(operation_name: str, log_args: bool = False):
    """
    Decorator timing a sync or async callable under ``operation_name``.

    Completion is logged at debug level, slow calls (over
    ``SLOW_OPERATION_SECONDS``) as warnings, and failures are logged before
    the exception propagates unchanged.
    """

    def decorator(func: Callable) -> Callable:
        logger = get_logger(prefix="[PERFORMANCE]")

        def _begin(args: tuple, kwargs: dict):
            tag = _short_id()
            if log_args:
                logger.debug("[%s] %s started with %s", tag, operation_name, redact_arguments(args, kwargs))
            else:
                logger.debug("[%s] %s started", tag, operation_name)
            return tag, time.perf_counter()

        def _finish(tag: str, started: float, error: Optional[Exception] = None) -> None:
            elapsed = time.perf_counter() - started
            if error is not None:
                logger.warning("[%s] %s failed after %.3fs: %s", tag, operation_name, elapsed, error)
            elif elapsed > SLOW_OPERATION_SECONDS:
                logger.warning("[%s] %s was slow: %.3fs", tag, operation_name, elapsed)
            else:
                logger.debug("[%s] %s finished in %.3fs", tag, operation_name, elapsed)

        if asyncio.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                tag, started = _begin(args, kwargs)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _finish(tag, started, e)
                    raise
                _finish(tag, started)
                return result

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            tag, started = _begin(args, kwargs)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _finish(tag, started, e)
                raise
            _finish(tag, started)
            return result

        return sync_wrapper

    return decorator


def log_application_lifecycle(event: str, details: Optional[Dict[str, Any]] = None):
    """Record a startup or shutdown step with a UTC timestamp."""
    payload = {"event": event, "at": datetime.now(timezone.utc).isoformat(), **(details or {})}
    get_logger(prefix="[LIFECYCLE]").info("Lifecycle %s: %s", event, payload)


def log_error_with_context(error: Exception, context: Optional[Dict[str, Any]] = None, operation: Optional[str] = None):
    """Log ``error`` with its traceback and redacted ``context``."""
    payload: Dict[str, Any] = {
        "type": type(error).__name__,
        "message": str(error),
        "at": datetime.now(timezone.utc).isoformat(),
    }
    if operation:
        payload["operation"] = operation
    if context:
        payload["context"] = redact_arguments(kwargs=context).get("kwargs", {})
    get_logger(prefix="[ERROR]").error("Failure: %s\n%s", payload, traceback.format_exc())
