import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from clinic.core.logger import logger


class LogMiddleware(BaseHTTPMiddleware):
    """One log line per request. Server errors are logged at warning level."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"Unhandled error on {request.method} {request.url.path}")
            raise

        elapsed = time.perf_counter() - started
        level = logger.warning if response.status_code >= 500 else logger.info
        client = request.client.host if request.client else "-"
        level(f"{request.method} {request.url.path} -> {response.status_code} in {elapsed:.4f}s (client {client})")
        return response
