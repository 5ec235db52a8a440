"""
Common Pydantic schemas used across the API.

This module contains the shared error and health check schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime


class MessageResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Error message")

    class Config:
        json_schema_extra = {
            "example": {
                "message": "Seller with the given seller_id does not exist"
            }
        }


class HealthCheckResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Health check timestamp")
    version: str = Field(..., description="API version")
    database: str = Field(..., description="Database connection status")
    ingestion_backend: str = Field(..., description="Configured ingestion backend")
    redis: str = Field(..., description="Redis connection status")
    celery: str = Field(..., description="Celery worker status")

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "timestamp": "2025-10-15T12:00:00Z",
                "version": "1.0.0",
                "database": "connected",
                "ingestion_backend": "thread",
                "redis": "not used",
                "celery": "not used"
            }
        }
