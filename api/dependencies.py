"""
Dependency injection utilities for FastAPI.

This module builds the database engine, the persistence gateway and the
task lifecycle manager, and exposes them as request dependencies.
"""

import logging
from functools import lru_cache

from fastapi import HTTPException, Request, status
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from api.config import settings
from services.gateway import SqlAlchemyGateway
from services.task_service import TaskLifecycleManager

logger = logging.getLogger(__name__)


@lru_cache()
def get_engine() -> Engine:
    """Create the database engine once per process."""
    if settings.DATABASE_URL.startswith('sqlite'):
        return create_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    return create_engine(
        settings.DATABASE_URL,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=settings.DB_POOL_PRE_PING,
        echo=settings.DEBUG
    )


@lru_cache()
def get_gateway() -> SqlAlchemyGateway:
    """Gateway over the configured database, shared by API and workers."""
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return SqlAlchemyGateway(session_factory)


def get_lifecycle(request: Request) -> TaskLifecycleManager:
    """
    Get the task lifecycle manager built at startup.

    Usage:
        @router.post("/endpoint")
        def endpoint(lifecycle: TaskLifecycleManager = Depends(get_lifecycle)):
            lifecycle.submit_ingestion(...)
    """
    return request.app.state.lifecycle


def get_request_gateway(request: Request) -> SqlAlchemyGateway:
    """Get the gateway the application was started with."""
    return request.app.state.gateway


def verify_file_size(file_size: int) -> bool:
    """
    Verify uploaded file size is within limit.

    Args:
        file_size: File size in bytes

    Returns:
        True if size is acceptable

    Raises:
        HTTPException: If file is too large
    """
    max_size_bytes = settings.MAX_FILE_SIZE_MB * 1024 * 1024

    if file_size > max_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File size ({file_size / 1024 / 1024:.1f} MB) exceeds maximum allowed "
                   f"({settings.MAX_FILE_SIZE_MB} MB)"
        )

    return True
