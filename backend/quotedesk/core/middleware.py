"""
Error handling and request logging

Provides:
1. The application exception hierarchy and its JSON error envelope
2. loguru configuration
3. Request id propagation and access logging
4. Slow request warnings
"""
import sys
import time
import uuid
import traceback
from contextvars import ContextVar
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from loguru import logger

from quotedesk.core.config import settings


# ==================== Exceptions ====================

class AppException(Exception):
    """Base class for every error rendered through the error envelope"""

    def __init__(
        self,
        message: str,
        error_code: str = "APP_ERROR",
        status_code: int = 500,
        details: dict = None
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationException(AppException):
    def __init__(self, message: str, details: dict = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details=details
        )


class NotFoundException(AppException):
    """Record is missing or belongs to another company"""

    def __init__(self, resource: str, resource_id: Optional[object] = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} [{resource_id}] not found"
        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            status_code=404,
            details={"resource": resource, "resource_id": resource_id}
        )


class BusinessException(AppException):
    def __init__(self, message: str, error_code: str = "BUSINESS_ERROR", details: dict = None):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=400,
            details=details
        )


class AuthenticationException(AppException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            message=message,
            error_code="AUTHENTICATION_ERROR",
            status_code=401
        )


class AuthorizationException(AppException):
    def __init__(self, message: str = "Access denied"):
        super().__init__(
            message=message,
            error_code="AUTHORIZATION_ERROR",
            status_code=403
        )


class DiscountError(BusinessException):
    """Effective discount percent is above the allowed ceiling"""

    def __init__(self, discount_percent: Decimal, max_percent: Decimal):
        self.discount_percent = discount_percent
        self.max_percent = max_percent
        super().__init__(
            message=(
                f"Discount cannot exceed {max_percent}%. "
                f"Current discount is {discount_percent:.2f}%"
            ),
            error_code="DISCOUNT_LIMIT_EXCEEDED",
            details={
                "discount_percent": str(discount_percent),
                "max_percent": str(max_percent),
            }
        )


class NumberAllocationExhausted(AppException):
    """Every attempt to claim a document number collided"""

    def __init__(self, scope: str, attempts: int):
        super().__init__(
            message=f"Could not allocate a document number in scope {scope} after {attempts} attempts",
            error_code="NUMBER_ALLOCATION_EXHAUSTED",
            status_code=503,
            details={"scope": scope, "attempts": attempts}
        )


# ==================== Logging ====================

def _ensure_request_id(record) -> bool:
    record["extra"].setdefault("request_id", "-")
    return True


def configure_logging(app_name: str = None, log_dir: str = None):
    """Configure loguru sinks: console plus rotating files"""
    app_name = app_name or settings.APP_NAME
    log_dir = log_dir or settings.LOG_DIR

    logger.remove()

    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<blue>[{extra[request_id]}]</blue> - "
        "<level>{message}</level>"
    )

    file_format = (
        "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
        "{level: <8} | "
        "{name}:{function}:{line} | "
        "[{extra[request_id]}] | "
        "{message}"
    )

    logger.add(
        sys.stderr,
        format=console_format,
        level="DEBUG" if settings.DEBUG else "INFO",
        colorize=True,
        filter=_ensure_request_id
    )

    logger.add(
        f"{log_dir}/{app_name}_{{time:YYYY-MM-DD}}.log",
        format=file_format,
        level="INFO",
        rotation="00:00",
        retention="30 days",
        compression="gz",
        filter=_ensure_request_id
    )

    logger.add(
        f"{log_dir}/{app_name}_error_{{time:YYYY-MM-DD}}.log",
        format=file_format,
        level="ERROR",
        rotation="00:00",
        retention="60 days",
        compression="gz",
        filter=_ensure_request_id
    )

    return logger


# ==================== Request context ====================

_request_id: ContextVar[str] = ContextVar("request_id", default="-")


class RequestContext:
    """Per-request values visible to code that has no Request object"""

    @classmethod
    def set_request_id(cls, request_id: str):
        return _request_id.set(request_id)

    @classmethod
    def reset(cls, token):
        _request_id.reset(token)

    @classmethod
    def get_request_id(cls) -> str:
        return _request_id.get()


# ==================== Middleware ====================

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log with request id"""

    async def dispatch(self, request: Request, call_next: Callable):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        token = RequestContext.set_request_id(request_id)

        start_time = time.time()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        path = request.url.path

        with logger.contextualize(request_id=request_id):
            logger.info(f"Request started | {method} {path} | IP: {client_ip}")

            try:
                response = await call_next(request)

                process_time = round((time.time() - start_time) * 1000, 2)
                logger.info(
                    f"Request finished | {method} {path} | "
                    f"Status: {response.status_code} | "
                    f"Took: {process_time}ms"
                )

                response.headers["X-Request-ID"] = request_id
                response.headers["X-Process-Time"] = f"{process_time}ms"
                return response

            except Exception as e:
                process_time = round((time.time() - start_time) * 1000, 2)
                logger.error(
                    f"Request failed | {method} {path} | "
                    f"Error: {e} | "
                    f"Took: {process_time}ms"
                )
                raise
            finally:
                RequestContext.reset(token)


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Warns about slow requests, PDF rendering included"""

    # milliseconds
    SLOW_REQUEST_THRESHOLD = 1000

    async def dispatch(self, request: Request, call_next: Callable):
        start_time = time.time()

        response = await call_next(request)

        process_time = (time.time() - start_time) * 1000
        if process_time > self.SLOW_REQUEST_THRESHOLD:
            request_id = getattr(request.state, "request_id", "-")
            with logger.contextualize(request_id=request_id):
                logger.warning(
                    f"Slow request | {request.method} {request.url.path} | "
                    f"Took: {process_time:.2f}ms"
                )

        return response


# ==================== Exception handlers ====================

def create_error_response(
    request: Request,
    error_code: str,
    message: str,
    status_code: int,
    details: dict = None
) -> JSONResponse:
    """Build the common error envelope"""
    request_id = getattr(request.state, "request_id", "-")

    response_body = {
        "success": False,
        "error": {
            "code": error_code,
            "message": message,
            "details": details or {},
            "timestamp": datetime.now().isoformat(),
            "request_id": request_id,
            "path": str(request.url.path)
        }
    }

    return JSONResponse(status_code=status_code, content=response_body)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "-")

    with logger.contextualize(request_id=request_id):
        if exc.status_code >= 500:
            logger.error(f"Application error | {exc.error_code}: {exc.message}")
        else:
            logger.warning(f"Application error | {exc.error_code}: {exc.message}")

    return create_error_response(
        request=request,
        error_code=exc.error_code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details
    )


HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "UNPROCESSABLE_ENTITY",
    429: "TOO_MANY_REQUESTS",
    500: "INTERNAL_SERVER_ERROR",
    503: "SERVICE_UNAVAILABLE",
}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "-")

    with logger.contextualize(request_id=request_id):
        logger.warning(f"HTTP error | {exc.status_code}: {exc.detail}")

    return create_error_response(
        request=request,
        error_code=HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
        message=str(exc.detail),
        status_code=exc.status_code
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "-")

    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"]
        })

    with logger.contextualize(request_id=request_id):
        logger.warning(f"Validation error | {errors}")

    if len(errors) == 1:
        message = f"Invalid parameter: {errors[0]['field']} - {errors[0]['message']}"
    else:
        message = "Several parameters are invalid"

    return create_error_response(
        request=request,
        error_code="VALIDATION_ERROR",
        message=message,
        status_code=422,
        details={"validation_errors": errors}
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "-")
    tb = traceback.format_exc()

    with logger.contextualize(request_id=request_id):
        logger.error(f"Unhandled exception | {type(exc).__name__}: {exc}\n{tb}")

    return create_error_response(
        request=request,
        error_code="INTERNAL_SERVER_ERROR",
        message="Internal server error, please retry later",
        status_code=500,
        details={"exception_type": type(exc).__name__}
    )


# ==================== Registration ====================

def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)


def register_middlewares(app: FastAPI):
    # executed in reverse order of registration
    app.add_middleware(PerformanceMiddleware)
    app.add_middleware(RequestLoggingMiddleware)


def setup_error_handling(app: FastAPI):
    """
    Wire logging, middleware and exception handlers into the app

    Called once from main.py:
        from quotedesk.core.middleware import setup_error_handling
        setup_error_handling(app)
    """
    configure_logging()
    register_middlewares(app)
    register_exception_handlers(app)

    logger.info("Error handling and logging middleware initialised")
