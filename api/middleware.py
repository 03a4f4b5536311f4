"""
FastAPI middleware for request logging and timing.
"""
import time
import logging
from fastapi import Request

from settings import API_PREFIX

logger = logging.getLogger(__name__)


async def log_requests_middleware(request: Request, call_next):
    """Middleware for request logging and timing"""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    if request.url.path.startswith(f"{API_PREFIX}/"):
        has_auth = "[REDACTED]" if request.headers.get("Authorization") else "none"
        logger.info(
            f"{request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s (auth: {has_auth})"
        )

    return response
