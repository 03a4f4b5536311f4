"""
Error responses for the API.

Every error body has the shape {"error": "..."}; token verification
failures additionally carry a machine-readable "code".
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Raised by handlers and dependencies to produce an error response"""

    def __init__(self, status_code: int, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    body = {"error": exc.message}
    if exc.code:
        body["code"] = exc.code
    return JSONResponse(body, status_code=exc.status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report the first invalid body field as '<field> required'"""
    errors = exc.errors()
    message = "Invalid request body"
    if errors:
        loc = errors[0].get("loc", ())
        if len(loc) > 1 and loc[0] == "body":
            message = f"{loc[-1]} required"
    logger.debug(f"Request validation failed on {request.url.path}: {message}")
    return JSONResponse({"error": message}, status_code=400)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
