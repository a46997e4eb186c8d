import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import models
from .config import settings
from .database import engine
from .routers import booking_router, wallet_router

logging.basicConfig(level=settings.LOG_LEVEL)

# Setup logger
logger = logging.getLogger("hotel_booking")

# Create database tables on startup
# (bookings_info, wallets, wallet_transactions, coupons, coupon_usage)
models.Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages application startup and shutdown events.
    """
    logger.info("Hotel booking service starting...")

    yield  # The application is now running

    # --- Code to run on shutdown ---
    logger.info("Releasing database connections...")
    engine.dispose()


# Create the FastAPI app instance, passing the lifespan manager
app = FastAPI(
    title="Hotel Booking Service API",
    description="Records hotel and paying-guest bookings with wallet and coupon side effects.",
    version="1.0.0",
    lifespan=lifespan
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed payloads are client errors (400), never touching storage."""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    logger.info(f"Rejected payload on {request.url.path}: {problems}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": f"Invalid payload: {problems}"},
    )


# Include the API routes
app.include_router(booking_router.router)
app.include_router(wallet_router.router)


@app.get("/")
def read_root():
    return {"message": "Welcome to the Hotel Booking Service"}
