import time
from contextvars import ContextVar
from typing import Callable

import structlog
import uuid6
from django.http import HttpRequest, HttpResponse

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

MAX_CORRELATION_ID_LENGTH = 128

logger = structlog.get_logger(__name__)


def get_correlation_id() -> str:
    """Correlation id of the request being served ("" outside a request)."""
    return correlation_id_var.get()


def _incoming_correlation_id(request: HttpRequest) -> str:
    cid = request.META.get("HTTP_X_REQUEST_ID", "").strip()
    if not cid or len(cid) > MAX_CORRELATION_ID_LENGTH or not cid.isprintable():
        return str(uuid6.uuid7())
    return cid


class CorrelationIdMiddleware:
    """Binds a correlation id to every log line of a request.

    The id comes from the ``X-Request-ID`` header when it is usable,
    otherwise a new UUIDv7 is generated.  It is echoed back in the
    ``X-Request-ID`` response header.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = _incoming_correlation_id(request)
        token = correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=cid)

        started = time.monotonic()
        logger.info("http.request.started", method=request.method, path=request.path)
        try:
            response = self.get_response(request)
        finally:
            correlation_id_var.reset(token)

        logger.info(
            "http.request.finished",
            method=request.method,
            path=request.path,
            status_code=response.status_code,
            duration_ms=round((time.monotonic() - started) * 1000, 2),
        )
        response["X-Request-ID"] = cid
        return response
