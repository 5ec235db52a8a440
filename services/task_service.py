"""
Ingestion task lifecycle.

Creates tasks, hands uploads to a worker, and finalizes tasks left
Running by a previous process.
"""

import logging

from services.exceptions import DispatchError, TaskNotFoundError
from services.gateway import PersistenceGateway
from tasks.dispatch import IngestionDispatcher, IngestionRequest

logger = logging.getLogger(__name__)


class TaskLifecycleManager:
    """Entry point of the ingestion core."""

    def __init__(self, gateway: PersistenceGateway, dispatcher: IngestionDispatcher):
        self.gateway = gateway
        self.dispatcher = dispatcher

    def submit_ingestion(self, file_bytes: bytes, seller_id: int) -> int:
        """
        Create a task for an upload and start ingesting it in the background.

        Args:
            file_bytes: Fully buffered upload
            seller_id: Seller the offers belong to

        Returns:
            ID of the new Running task

        Raises:
            SellerNotFoundError: If the seller does not exist; no task is created
            DispatchError: If no worker could be started; the task is marked Error
        """
        task_id = self.gateway.create_task(seller_id)
        request = IngestionRequest(file_bytes=file_bytes, seller_id=seller_id, task_id=task_id)

        try:
            self.dispatcher.dispatch(request)
        except Exception as e:
            logger.error(f"Could not dispatch task {task_id}: {e}", exc_info=True)
            self.gateway.force_error(task_id)
            raise DispatchError(f"Could not start ingestion for task {task_id}") from e

        logger.info(f"Task {task_id} dispatched for seller {seller_id}")
        return task_id

    def recover_abandoned(self) -> int:
        """
        Finalize tasks whose worker died with a previous process.

        Must run before the service accepts uploads: any task still
        Running at that point has no worker left.
        """
        count = self.gateway.sweep_abandoned()
        if count:
            logger.warning(f"Recovery sweep marked {count} abandoned tasks as Error")
        else:
            logger.info("Recovery sweep found no abandoned tasks")
        return count

    def get_task(self, task_id: int) -> dict:
        task = self.gateway.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task
