import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIASGIMiddleware
import logging
import sys

from app.api.v1.analytics import analytics_router
from app.api.v1.attendance import router
from app.api.v1.auth import auth_routes
from app.api.v1.sessions import session_router
from app.core.config import settings
from app.core.exceptions import AttendanceServiceError, RateLimitedError
from app.core.limiter import limiter
from app.database import database

# Configure logging with UTF-8 encoding
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler('app.log', encoding='utf-8')
    ]
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")
    await database.connect()
    await database.create_tables()
    logger.info("Application startup complete")
    yield

    logger.info("Shutting down application...")
    try:
        await database.disconnect()
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")
    logger.info("Application shutdown complete")


app = FastAPI(
    title="Attendance Check-in API",
    description="Time-boxed attendance sessions, student self check-in and live rosters",
    version="1.0.0",
    lifespan=lifespan
)

app.state.limiter = limiter
app.add_middleware(SlowAPIASGIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_routes)
app.include_router(session_router)
app.include_router(router)
app.include_router(analytics_router)


def error_response(exc: AttendanceServiceError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": "error",
            "code": exc.error_code,
            "message": exc.message
        }
    )


@app.exception_handler(AttendanceServiceError)
async def attendance_error_handler(request: Request, exc: AttendanceServiceError):
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    return error_response(exc)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded on {request.url.path}: {exc.detail}")
    return error_response(RateLimitedError(str(exc.detail)))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "status": "error",
            "code": "INVALID_INPUT",
            "message": "Invalid input data. Backend validation failed.",
            "errors": [
                {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
                for err in exc.errors()
            ]
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "code": "INTERNAL_ERROR",
            "message": "Internal server error"
        }
    )


@app.get("/")
async def root():
    return {
        "message": "Welcome to the Attendance Check-in API",
        "version": "1.0.0",
        "endpoints": {
            "auth": "/auth",
            "sessions": "/sessions",
            "attendance": "/attendance/mark",
            "analytics": "/analytics",
            "health": "/health"
        }
    }


@app.get("/health")
async def health_check():
    db_status = await database.check_connection()
    return {
        "status": "healthy" if db_status else "degraded",
        "database": "connected" if db_status else "disconnected"
    }


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
