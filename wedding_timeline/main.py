"""
Main FastAPI application
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from wedding_timeline.config import get_settings
from wedding_timeline.database import engine, create_tables
from wedding_timeline.errors import TimelineError
from wedding_timeline.models import Wedding, PartyMember, TimelineTask  # noqa: F401 - register tables
from wedding_timeline.api import actions, tasks, timeline, weddings
from wedding_timeline.utils.logger import get_logger

settings = get_settings()
logger = get_logger("wedding_timeline")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    logger.info("Database tables created")
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error rendering ---

def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"code": code, "message": message}})


@app.exception_handler(TimelineError)
async def timeline_error_handler(request: Request, exc: TimelineError):
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return _error(422, "VALIDATION_ERROR", str(exc.errors()))


@app.exception_handler(ValidationError)
async def payload_validation_handler(request: Request, exc: ValidationError):
    return _error(422, "VALIDATION_ERROR", str(exc.errors()))


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return _error(500, "DATABASE_ERROR", str(exc))


# Include routers; the action endpoint goes first so "/actions" never hits "/{wedding_id}"
app.include_router(actions.router, prefix="/api/timeline", tags=["Actions"])
app.include_router(weddings.router, prefix="/api/weddings", tags=["Weddings"])
app.include_router(tasks.router, prefix="/api/tasks", tags=["Tasks"])
app.include_router(timeline.router, prefix="/api/timeline", tags=["Timeline"])


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "wedding_timeline.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
