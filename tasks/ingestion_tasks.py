"""
Ingestion background tasks.

This module defines the Celery task that runs the ingestion worker in a
separate worker process.
"""

import base64
import logging
from typing import Any, Dict

from api.dependencies import get_gateway
from backend.models.task import TaskStatus
from services.ingestion_service import IngestionWorker
from tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name='tasks.ingestion_tasks.ingest_offers_file')
def ingest_offers_file(self, payload: str, seller_id: int, task_id: int) -> Dict[str, Any]:
    """
    Background task to ingest an uploaded offers workbook.

    Args:
        payload: Base64-encoded file contents
        seller_id: Seller owning the catalog
        task_id: Running task created for the upload

    Returns:
        {'task_id': int, 'status': str or None}
    """
    logger.info(f"Celery job {self.request.id} picked up task {task_id}")

    gateway = get_gateway()
    task = gateway.get_task(task_id)

    # Redelivered message of a task that already finished
    if task is None or task['status'] != TaskStatus.RUNNING.value:
        logger.warning(f"Task {task_id} is not Running, skipping ingestion")
        return {
            'task_id': task_id,
            'status': task['status'] if task else None
        }

    IngestionWorker(gateway).run(base64.b64decode(payload), seller_id, task_id)

    task = gateway.get_task(task_id)
    return {
        'task_id': task_id,
        'status': task['status'] if task else None
    }
