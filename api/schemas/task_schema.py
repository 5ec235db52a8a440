"""
Task-related Pydantic schemas.

This module contains schemas for ingestion task status and listings.
"""

from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime

from api.schemas.seller_schema import SellerResponse
from backend.models.task import TaskStatus


class TaskCreatedResponse(BaseModel):
    """Response when an upload is accepted."""

    task_id: int = Field(..., description="Task tracking the ingestion of the upload")

    class Config:
        json_schema_extra = {
            "example": {"task_id": 1}
        }


class TaskResponse(BaseModel):
    """
    Ingestion task status.

    Counters are null unless the task is Completed.
    """

    task_id: int = Field(..., description="Task identifier")
    start_date: datetime = Field(..., description="Task creation timestamp")
    finish_date: Optional[datetime] = Field(None, description="Set once the task is finished")
    status: TaskStatus = Field(..., description="Current task status")

    num_errors: Optional[int] = Field(None, description="Rows rejected during validation")
    num_created: Optional[int] = Field(None, description="Offers created")
    num_updated: Optional[int] = Field(None, description="Offers updated")
    num_deleted: Optional[int] = Field(None, description="Offers deleted")

    seller: SellerResponse

    class Config:
        json_schema_extra = {
            "example": {
                "task_id": 3,
                "start_date": "2025-10-15T12:00:00",
                "finish_date": "2025-10-15T12:00:01",
                "status": "Completed",
                "num_errors": 1,
                "num_created": 4,
                "num_updated": 0,
                "num_deleted": 0,
                "seller": {"seller_id": 1, "seller_name": "Acme Stationery"}
            }
        }


class TaskListResponse(BaseModel):
    tasks: List[TaskResponse]
