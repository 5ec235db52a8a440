"""
Tasks router - ingestion task status.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.dependencies import get_lifecycle, get_request_gateway
from api.schemas.task_schema import TaskListResponse, TaskResponse
from services.gateway import SqlAlchemyGateway
from services.task_service import TaskLifecycleManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/tasks', tags=['tasks'])


@router.get('', response_model=TaskListResponse)
async def list_tasks(
    limit: Optional[int] = Query(None, description="Maximum number of tasks"),
    offset: Optional[int] = Query(None, description="Number of tasks to skip"),
    gateway: SqlAlchemyGateway = Depends(get_request_gateway)
):
    """
    List ingestion tasks, oldest first.

    **Example:**
    ```bash
    curl "http://localhost:8080/tasks?limit=10&offset=20"
    ```
    """
    if limit is not None and limit < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid value for limit")
    if offset is not None and offset < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid value for offset")

    return TaskListResponse(tasks=gateway.list_tasks(limit=limit, offset=offset))


@router.get('/{task_id}', response_model=TaskResponse)
async def get_task(
    task_id: int,
    lifecycle: TaskLifecycleManager = Depends(get_lifecycle)
):
    """
    Get the status of an ingestion task.

    **Status Values:**
    - `Running`: the file is still being processed
    - `Completed`: offers were applied; counters are filled in
    - `Error`: nothing was applied; counters are null
    """
    return TaskResponse(**lifecycle.get_task(task_id))
