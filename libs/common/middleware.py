"""Request tracing for the GlowMart services.

Every request gets an ``X-Request-ID`` (taken from the caller or generated)
that is echoed on the response and stamped on each log line. Internal calls
made through ``libs.common.service_client`` also carry ``X-Caller-Service``,
so an order email logged by the communications service can be traced back to
the store request that triggered it.
"""
import logging
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
CALLER_SERVICE_HEADER = "X-Caller-Service"
UNLOGGED_PATHS = {"/health"}


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind request context, log completion and echo the request id."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(
            request_id=request.headers.get(REQUEST_ID_HEADER),
            path=request.url.path,
            method=request.method,
            caller_service=request.headers.get(CALLER_SERVICE_HEADER),
        )
        quiet = request.url.path in UNLOGGED_PATHS
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                "Request failed with unhandled exception",
                extra={"extra_fields": {"error": str(e), "duration_ms": _elapsed_ms(start)}},
            )
            raise
        else:
            if not quiet:
                logger.log(
                    logging_level_for(response.status_code),
                    f"{request.method} {request.url.path} -> {response.status_code}",
                    extra={
                        "extra_fields": {
                            "status_code": response.status_code,
                            "duration_ms": _elapsed_ms(start),
                            "query": str(request.url.query) or None,
                        }
                    },
                )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            clear_request_context()


def logging_level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


def add_observability_middleware(app: FastAPI) -> None:
    """Configure logging and install request tracing on ``app``."""
    configure_logging()
    app.add_middleware(RequestContextMiddleware)
