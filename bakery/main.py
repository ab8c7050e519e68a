import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bakery.api.deps import engine, settings
from bakery.api.routers.admin import router as admin_router
from bakery.api.routers.availability import router as availability_router
from bakery.api.routers.health import router as health_router
from bakery.api.routers.orders import router as orders_router
from bakery.api.routers.quotes import router as quotes_router
from bakery.domain.errors import (
    CapacitySlotConflictError,
    CheckoutNotFoundError,
    DateUnavailableError,
    DomainError,
    GatewayUnavailableError,
    InvalidModificationError,
    InvalidQuoteStatusError,
    InvalidReservationStatusError,
    InvalidWebhookError,
    PaymentNotCompletedError,
    PersistenceError,
    QuoteAlreadyConvertedError,
    QuoteRequestNotFoundError,
    ReservationAlreadyExistsError,
    ReservationNotFoundError,
    ValidationError,
)
from bakery.infrastructure.db.tables import metadata

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DOMAIN_ERROR_STATUS: dict[type[DomainError], int] = {
    DateUnavailableError: 409,
    CapacitySlotConflictError: 409,
    ReservationAlreadyExistsError: 409,
    QuoteAlreadyConvertedError: 409,
    ReservationNotFoundError: 404,
    QuoteRequestNotFoundError: 404,
    CheckoutNotFoundError: 404,
    InvalidReservationStatusError: 400,
    InvalidModificationError: 400,
    InvalidQuoteStatusError: 400,
    PaymentNotCompletedError: 400,
    InvalidWebhookError: 400,
    ValidationError: 400,
    GatewayUnavailableError: 503,
    PersistenceError: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not settings.use_in_memory:
        # Initialize DB tables (for dev/demo purposes)
        async with engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
    yield
    # Cleanup
    await engine.dispose()

app = FastAPI(
    title="Bakery Reservations API",
    version="0.1.0",
    lifespan=lifespan
)


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    status_code = DOMAIN_ERROR_STATUS.get(type(exc), 400)
    content = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, DateUnavailableError):
        content["reason"] = exc.reason

    log = logger.error if status_code >= 500 else logger.info
    log(
        "Request rejected",
        exc_info=exc if status_code >= 500 else None,
        extra={
            "code": exc.code,
            "status_code": status_code,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(status_code=status_code, content=content)


# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler to prevent stack trace exposure to clients.
    All unhandled exceptions are logged internally and return a generic error message.
    """
    error_id = str(uuid.uuid4())

    logger.error(
        "Unhandled exception occurred",
        exc_info=exc,
        extra={
            "error_id": error_id,
            "path": request.url.path,
            "method": request.method,
            "client_host": request.client.host if request.client else None,
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "message": "An unexpected error occurred. Please contact support with the error_id if the issue persists."
        }
    )


app.include_router(health_router, tags=["Health"])
app.include_router(availability_router, prefix="/api/v1", tags=["Availability"])
app.include_router(orders_router, prefix="/api/v1", tags=["Orders"])
app.include_router(quotes_router, prefix="/api/v1", tags=["Quotes"])
app.include_router(admin_router, prefix="/api/v1", tags=["Admin"])
