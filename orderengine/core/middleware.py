"""
Application middleware for request/response processing
"""

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable
import logging
import time
import uuid

from .exceptions import OrderEngineException

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add unique request ID to each request"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log all requests and responses"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"Request failed: {request.method} {request.url.path} "
                f"{str(e)} Time: {process_time:.3f}s"
            )
            raise

        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"Time: {process_time:.3f}s "
            f"Request ID: {getattr(request.state, 'request_id', 'N/A')}"
        )
        response.headers["X-Process-Time"] = f"{process_time:.3f}"
        return response


async def order_engine_exception_handler(request: Request, exc: OrderEngineException) -> JSONResponse:
    """Render service errors in one envelope"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": {
                "code": exc.error_code,
                "message": exc.detail,
                "details": exc.details,
            },
        },
        headers=exc.headers,
    )


def setup_middleware(app: FastAPI) -> None:
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_exception_handler(OrderEngineException, order_engine_exception_handler)
