import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import models  # noqa: F401
from .config import CORS_ORIGINS
from .database import Base, engine
from .domain.bookings.router import router as bookings_router
from .domain.coverage.router import router as coverage_router
from .domain.payments.router import router as payments_router
from .domain.payments.router import webhooks_router as stripe_webhooks_router
from .domain.promotions.router import router as promotions_router
from .domain.reviews.router import router as reviews_router
from .errors import (
    ConfigurationError,
    InvalidPromotionError,
    InvalidStatusTransitionError,
    NotFoundError,
    PaymentVerificationError,
    PermissionDeniedError,
    PromotionNotApplicableError,
    RemoteOperationError,
    SlotUnavailableError,
)
from .routes import auth_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("stripe").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Another worker may have created the tables first
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")
            raise

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="SalonBook API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert 422 validation errors from HTTPBearer to 401 authentication errors
    when the issue is with the Authorization header
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(
                status_code=401,
                content={
                    "detail": "Not authenticated. Please provide a valid Bearer token in the Authorization header."
                },
            )

    # ctx may hold the raised ValueError itself
    errors = jsonable_encoder(exc.errors())
    logger.warning(f"Validation error for {request.url.path}: {errors}")
    return JSONResponse(status_code=422, content={"detail": errors})


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"❌ {request.url.path}: backend not configured: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(RemoteOperationError)
async def remote_error_handler(request: Request, exc: RemoteOperationError):
    logger.error(f"❌ {request.url.path}: remote operation failed: {exc}")
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    logger.warning(f"🚫 {request.url.path}: {exc}")
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(PaymentVerificationError)
async def payment_verification_handler(request: Request, exc: PaymentVerificationError):
    logger.warning(f"🚫 {request.url.path}: payment not verified: {exc}")
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(PromotionNotApplicableError)
async def promotion_not_applicable_handler(request: Request, exc: PromotionNotApplicableError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(InvalidPromotionError)
async def invalid_promotion_handler(request: Request, exc: InvalidPromotionError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(SlotUnavailableError)
async def slot_unavailable_handler(request: Request, exc: SlotUnavailableError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(InvalidStatusTransitionError)
async def status_transition_handler(request: Request, exc: InvalidStatusTransitionError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


logger.info(f"CORS allowed origins: {CORS_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials="*" not in CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(auth_router)
app.include_router(bookings_router)
app.include_router(payments_router)
app.include_router(stripe_webhooks_router)
app.include_router(reviews_router)
app.include_router(coverage_router)
app.include_router(promotions_router)


@app.get("/")
def root():
    return {"message": "SalonBook API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
