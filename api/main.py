"""
FastAPI application for the offers loader.

This module creates and configures the FastAPI application, registering
all routers, exception handlers and middleware. The recovery sweep runs
in the lifespan, before the application accepts any request.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import redis
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import settings
from api.dependencies import get_engine, get_gateway
from api.routers import offers, sellers, task_router
from api.schemas.common import HealthCheckResponse, MessageResponse
from backend.models.schema import Base
from services.exceptions import DispatchError, SellerNotFoundError, TaskNotFoundError
from services.gateway import PersistenceGateway
from services.task_service import TaskLifecycleManager
from tasks.dispatch import CeleryDispatcher, IngestionDispatcher, build_dispatcher

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT,
    handlers=[
        logging.FileHandler(settings.LOG_FILE),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events. A failing recovery sweep aborts
    startup: the store is unreachable or misconfigured. With the Celery
    backend the sweep belongs to the workers, see tasks.celery_app.
    """
    # Startup
    logger.info(f"Starting {settings.API_TITLE} v{settings.API_VERSION}")
    logger.info(f"Ingestion backend: {settings.INGESTION_BACKEND}")

    if app.state.create_schema:
        logger.info(f"Database: {settings.DATABASE_URL.split('@')[-1]}")  # Hide credentials
        try:
            Base.metadata.create_all(bind=get_engine())
            logger.info("Database tables verified")
        except Exception as e:
            logger.error(f"Database initialization failed: {e}")

    if app.state.sweep_on_startup:
        app.state.lifecycle.recover_abandoned()
    else:
        # Celery workers outlive the API; they sweep when they start
        logger.info("Skipping recovery sweep, ingestion runs in Celery workers")

    yield

    # Shutdown
    logger.info("Shutting down application")


def message_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=MessageResponse(message=message).model_dump()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as {"message": ...}."""

    @app.exception_handler(SellerNotFoundError)
    async def seller_not_found_handler(request: Request, exc: SellerNotFoundError):
        return message_response(status.HTTP_400_BAD_REQUEST, "Seller with the given seller_id does not exist")

    @app.exception_handler(TaskNotFoundError)
    async def task_not_found_handler(request: Request, exc: TaskNotFoundError):
        return message_response(status.HTTP_400_BAD_REQUEST, "Task with the given task_id does not exist")

    @app.exception_handler(DispatchError)
    async def dispatch_error_handler(request: Request, exc: DispatchError):
        return message_response(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info(f"Invalid input for {request.url.path}: {exc.errors()}")
        return message_response(status.HTTP_400_BAD_REQUEST, "Invalid input data")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return message_response(exc.status_code, "not found")
        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            return message_response(exc.status_code, "method not allowed")
        return message_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        message = f"Internal server error: {exc}" if settings.DEBUG else "Internal server error"
        return message_response(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


def create_app(gateway: Optional[PersistenceGateway] = None,
               dispatcher: Optional[IngestionDispatcher] = None) -> FastAPI:
    """
    Build the application around a gateway and a dispatcher.

    Args:
        gateway: Store to use; defaults to the configured database, whose
            tables are then created on startup
        dispatcher: Worker handoff; defaults to INGESTION_BACKEND
    """
    app = FastAPI(
        title=settings.API_TITLE,
        description=settings.API_DESCRIPTION,
        version=settings.API_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json"
    )

    app.state.create_schema = gateway is None
    gateway = gateway or get_gateway()
    dispatcher = dispatcher or build_dispatcher(settings.INGESTION_BACKEND, gateway)
    app.state.gateway = gateway
    app.state.lifecycle = TaskLifecycleManager(gateway, dispatcher)
    app.state.sweep_on_startup = not isinstance(dispatcher, CeleryDispatcher)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS
    )

    register_exception_handlers(app)

    app.include_router(sellers.router)
    app.include_router(offers.router)
    app.include_router(task_router.router)

    @app.get('/health', response_model=HealthCheckResponse, tags=['health'])
    async def health_check(request: Request):
        """
        Health check endpoint.

        Checks connectivity to the database and, with the celery backend,
        to Redis and the Celery workers.
        """
        health_status = {
            'status': 'healthy',
            'timestamp': datetime.utcnow(),
            'version': settings.API_VERSION,
            'database': 'unknown',
            'ingestion_backend': settings.INGESTION_BACKEND,
            'redis': 'not used',
            'celery': 'not used'
        }

        # Check database
        try:
            request.app.state.gateway.ping()
            health_status['database'] = 'connected'
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            health_status['database'] = 'disconnected'
            health_status['status'] = 'unhealthy'

        if settings.INGESTION_BACKEND == 'celery':
            # Check Redis
            try:
                redis_client = redis.Redis.from_url(settings.REDIS_URL)
                redis_client.ping()
                health_status['redis'] = 'connected'
            except Exception as e:
                logger.error(f"Redis health check failed: {e}")
                health_status['redis'] = 'disconnected'
                health_status['status'] = 'degraded'

            # Check Celery workers
            try:
                from tasks.celery_app import celery_app

                active_workers = celery_app.control.inspect().active()
                if active_workers:
                    health_status['celery'] = f'active ({len(active_workers)} workers)'
                else:
                    health_status['celery'] = 'no workers'
                    health_status['status'] = 'degraded'
            except Exception as e:
                logger.error(f"Celery health check failed: {e}")
                health_status['celery'] = 'unknown'

        return HealthCheckResponse(**health_status)

    @app.get('/api/ping', tags=['health'])
    async def ping():
        """
        Simple ping endpoint for load balancers.

        **Returns:**
        ```json
        {"ping": "pong"}
        ```
        """
        return {'ping': 'pong'}

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests."""
        response = await call_next(request)
        client = request.client.host if request.client else '-'
        logger.info(f"{client} {request.method} {request.url.path} - {response.status_code}")
        return response

    return app


app = create_app()


if __name__ == '__main__':
    import uvicorn

    uvicorn.run(
        'api.main:app',
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower()
    )
