"""
HTTP middleware: cross-origin headers, last-resort error handling and
request logging.
"""
import json
import logging
import time
from typing import Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


def cors_headers(origin: str) -> dict:
    return {
        "Access-Control-Allow-Origin": origin or "*",
        "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
    }


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """Answers every OPTIONS preflight and stamps CORS headers on all responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        headers = cors_headers(request.headers.get("origin", "*"))

        if request.method == "OPTIONS":
            return Response(status_code=status.HTTP_200_OK, headers=headers, media_type="application/json")

        response = await call_next(request)
        response.headers.update(headers)
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turns unhandled exceptions into a generic 500 without leaking details."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                "Unhandled error",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "Internal Server Error"},
            )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one JSON line per request and per response. Bodies are never logged."""

    def __init__(self, app, ignore_paths: tuple = ()):
        super().__init__(app)
        self.ignore_paths = ignore_paths or ("/api/health",)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.ignore_paths:
            return await call_next(request)

        start_time = time.time()
        logger.info(json.dumps({
            "type": "request",
            "method": request.method,
            "path": request.url.path,
            "client_ip": self._get_client_ip(request),
        }))

        response = await call_next(request)

        response_log = {
            "type": "response",
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "process_time_ms": round((time.time() - start_time) * 1000, 2),
        }
        if response.status_code >= 500:
            logger.error(json.dumps(response_log))
        elif response.status_code >= 400:
            logger.warning(json.dumps(response_log))
        else:
            logger.info(json.dumps(response_log))

        return response

    def _get_client_ip(self, request: Request) -> str:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        if request.client:
            return request.client.host
        return "unknown"
