import logging
import os

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from config import DEFAULT_CORS_ORIGINS, Settings, get_settings, split_origins
from database import create_db_and_tables
from errors import TaskApiError
from logging_setup import setup_logging
from routes import tasks

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def create_app(settings: Settings = None) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        settings: Explicit settings; when omitted they are loaded from the
            environment at startup, not at import time

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Task API",
        description="RESTful API for personal task management with per-user isolation",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    if settings is not None:
        app.dependency_overrides[get_settings] = lambda: settings
        cors_origins = settings.cors_origin_list
    else:
        cors_origins = split_origins(os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS))

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(tasks.router, prefix="/api", tags=["tasks"])

    @app.exception_handler(TaskApiError)
    async def task_api_error_handler(request: Request, exc: TaskApiError):
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info("Rejected malformed request: %s", exc.errors())
        return PlainTextResponse(
            "Malformed request.", status_code=status.HTTP_400_BAD_REQUEST
        )

    @app.on_event("startup")
    def on_startup():
        """Configure logging and create database tables on startup"""
        active = settings or get_settings()
        setup_logging(active.log_level)
        create_db_and_tables(active)

    @app.get("/")
    def read_root():
        """Root endpoint"""
        return {
            "message": "Task API is running",
            "version": "1.0.0",
            "docs": "/docs"
        }

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy"}

    return app


app = create_app()


def run():
    settings = get_settings()
    setup_logging(settings.log_level)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
