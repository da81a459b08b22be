import logging
import uuid
from pathlib import Path
from contextlib import asynccontextmanager

# ============================================
# Load .env FIRST, before any skillbridge imports read settings
# ============================================
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
ENV_FILE = PROJECT_ROOT / ".env"

load_dotenv(dotenv_path=ENV_FILE)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from skillbridge.config import settings
from skillbridge.database import init_db, close_db, AsyncSessionLocal
from skillbridge.errors import ErrorCode, error_body, code_for_status, get_error_summary
from skillbridge.exceptions import SkillBridgeException
from skillbridge.routes import router
from skillbridge.security.rate_limit import limiter
from skillbridge.services.catalog_service import seed_catalog

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting SkillBridge API...")
    logger.info(f"Loaded .env from: {ENV_FILE} (exists: {ENV_FILE.exists()})")
    logger.info(f"Grader backend: {settings.GRADER_BACKEND}")
    try:
        await init_db()
        logger.info("Database connected successfully")

        async with AsyncSessionLocal() as session:
            inserted = await seed_catalog(session)
            logger.info(f"✓ Catalog: {inserted} rows seeded")
    except Exception as e:
        logger.error(f"Failed to connect to database: {str(e)}")
        raise

    yield

    logger.info("Shutting down application...")
    try:
        await close_db()
        logger.info("Database connection closed")
    except Exception as e:
        logger.error(f"Error closing database connection: {str(e)}")


app = FastAPI(
    title="SkillBridge API",
    description="Progression and unlock engine: XP, streaks, readiness, credits and phase gating",
    version=API_VERSION,
    docs_url="/docs" if settings.is_development() else None,
    redoc_url="/redoc" if settings.is_development() else None,
    lifespan=lifespan
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
logger.info("✓ Rate limiter configured")

origins = [
    "http://localhost:3000",
    "http://localhost:8000",
    "http://localhost:8081",
    "http://localhost:19006",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:8000",
    "http://127.0.0.1:8081",
    "http://127.0.0.1:19006",
]
origins.extend(settings.ALLOWED_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(SkillBridgeException)
async def skillbridge_exception_handler(request: Request, exc: SkillBridgeException):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.code} - {exc.message}")
    else:
        logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.code} - {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.message, exc.code, exc.details)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")

    error_details = []
    for error in exc.errors():
        error_details.append({
            "loc": error.get("loc"),
            "msg": error.get("msg"),
            "type": error.get("type")
        })

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "Request validation failed",
            ErrorCode.VALIDATION_ERROR,
            {"errors": error_details}
        )
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.warning(f"HTTP exception on {request.url.path}: {exc.detail}")

    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content=exc.detail, headers=exc.headers)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, str(exc.detail), code_for_status(exc.status_code)),
        headers=exc.headers
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    log_id = str(uuid.uuid4())[:8]
    logger.error(f"[{log_id}] Unhandled exception on {request.url.path}: {type(exc).__name__}: {str(exc)}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An unexpected error occurred. Please try again later.",
            ErrorCode.INTERNAL_ERROR,
            {"log_id": log_id}
        )
    )


@app.get("/health", tags=["Health"])
async def health_check():
    return {
        "status": "healthy",
        "version": API_VERSION,
        **settings.as_dict()
    }


@app.get("/api/errors/health", tags=["Health"])
async def error_handling_health():
    return get_error_summary()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "SkillBridge API",
        "version": API_VERSION,
        "docs": "/docs" if settings.is_development() else None
    }


app.include_router(router, prefix="/api")
