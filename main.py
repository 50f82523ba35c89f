"""Learntrack - FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from learntrack.config import settings
from learntrack.database import close_db, init_db
from learntrack.errors import InvalidArgument, TrackingError
from learntrack.middleware import AuthMiddleware
from learntrack.routers import lessons, progress, quiz

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    # Create data directory if needed
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    # Initialize database tables
    await init_db()
    yield
    await close_db()


app = FastAPI(title="Learntrack", version="0.1.0", lifespan=lifespan)

# Middleware
app.add_middleware(AuthMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error translation
@app.exception_handler(TrackingError)
async def tracking_error_handler(request: Request, exc: TrackingError):
    if exc.public_message:
        logger.warning(
            "%s %s failed with %s: %s",
            request.method,
            request.url.path,
            exc.code,
            exc.message,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "path", "query")]
        errors.append({"field": ".".join(loc) or "body", "message": err.get("msg", "")})
    return JSONResponse(
        status_code=InvalidArgument.status_code,
        content={
            "detail": "Invalid request",
            "code": InvalidArgument.code,
            "errors": errors,
        },
    )


# Routers
app.include_router(progress.router)
app.include_router(quiz.router)
app.include_router(lessons.router)


@app.get("/api/health")
async def health():
    return {
        "status": "OK",
        "message": "Learntrack API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
