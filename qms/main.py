"""
QMS FastAPI Main Application
Entry point for the quotation / order management REST API
"""
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from qms.api.v1.api_router import api_router
from qms.core.config import settings
from qms.core.database import init_db
from qms.core.exceptions import QMSException, RateLimitedError
from qms.core.logging import get_logger, setup_logging
from qms.core.rate_limit import client_key, is_exempt, rate_limiter

setup_logging()
logger = get_logger("api")

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHENTICATED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    413: "PAYLOAD_TOO_LARGE",
    429: "RATE_LIMITED",
}

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
    ## Quotation and Order Management API

    Sales and purchasing back office: quotations, sales orders, purchase
    orders, invoices, vendor bills, stock movements and a double-entry ledger.

    ### Key Features:
    - **Sales**: Quotations converted to sales orders with stock checks
    - **Fulfilment**: Delivery tracking with stock deduction and automatic invoicing
    - **Purchasing**: Purchase orders, goods receipt and vendor bills
    - **Stock**: Movement log with reconciliation against product stock
    - **Ledger**: Balanced journal entries, P&L and balance sheet

    All responses use a common envelope:
    `{"success": true, "data": ..., "message": ...}` or
    `{"success": false, "error": ..., "code": ..., "details": ...}`.
    """,
    docs_url=settings.DOCS_URL,
    redoc_url=settings.REDOC_URL,
    openapi_url=settings.OPENAPI_URL,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add trusted host middleware for production
if not settings.DEBUG:
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.ALLOWED_HOSTS
    )


def error_response(status_code: int, message: str, code: str, details=None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, "code": code, "details": details},
        headers=headers,
    )


@app.middleware("http")
async def log_and_limit_requests(request: Request, call_next):
    """
    Request logging and rate limiting

    Every request is logged with its status and duration; clients over
    their budget get a 429 envelope before any route runs.
    """
    start = time.perf_counter()
    client = client_key(
        request.client.host if request.client else None,
        request.headers.get("x-forwarded-for"),
    )

    if settings.RATE_LIMIT_ENABLED and not is_exempt(request.url.path):
        allowed, retry_after = rate_limiter.hit(client)
        if not allowed:
            logger.warning(f"Rate limit exceeded for {client} on {request.method} {request.url.path}")
            exc = RateLimitedError(retry_after)
            return error_response(
                exc.status_code, exc.message, exc.code, exc.details,
                headers={"Retry-After": str(retry_after)},
            )

    response = await call_next(request)

    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        f"{request.method} {request.url.path} from {client} "
        f"-> {response.status_code} ({duration_ms:.1f}ms)"
    )
    return response


@app.exception_handler(QMSException)
async def qms_exception_handler(request: Request, exc: QMSException):
    """Domain errors carry their own status and code"""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return error_response(exc.status_code, exc.message, exc.code, exc.details)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg"),
            "type": error.get("type"),
        }
        for error in exc.errors()
    ]
    return error_response(400, "Request validation failed", "VALIDATION_ERROR", errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    return error_response(exc.status_code, str(exc.detail), code, headers=getattr(exc, "headers", None))


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors

    Args:
        request: FastAPI request object
        exc: Exception that occurred

    Returns:
        JSON error envelope
    """
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    message = str(exc) if settings.DEBUG else "An unexpected error occurred"
    return error_response(500, message, "INTERNAL_ERROR")


# Health check endpoint
@app.get("/health", tags=["System"])
async def health_check():
    """
    Liveness check for load balancers

    Database connectivity is reported by the versioned health endpoint
    """
    return {"success": True, "data": {"status": "ok", "version": settings.APP_VERSION}, "message": None}


# System information endpoint
@app.get("/info", tags=["System"])
async def system_info():
    """
    System information endpoint

    Returns application configuration and build information
    """
    return {
        "success": True,
        "data": {
            "application": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "api_version": "v1",
            "docs_url": settings.DOCS_URL,
            "modules": {
                "sales": "Quotations, sales orders, delivery and invoices",
                "purchasing": "Purchase orders, goods receipt and vendor bills",
                "stock": "Movement log, low stock alerts and reconciliation",
                "ledger": "Journal entries, chart of accounts, P&L and balance sheet",
                "documents": "File attachments for business records",
            },
        },
        "message": None,
    }


# Application startup event
@app.on_event("startup")
async def startup_event():
    """
    Application startup tasks

    Create any missing tables
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENVIRONMENT})")
    init_db()
    logger.info("Application startup completed successfully")


# Application shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down application")


app.include_router(api_router, prefix=settings.API_V1_STR)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "qms.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
