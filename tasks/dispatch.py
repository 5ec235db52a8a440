"""
Handoff of uploaded files to ingestion workers.

The request path builds an IngestionRequest and passes it to a
dispatcher; the worker never sees the HTTP request or response.
"""

import base64
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass

from services.gateway import PersistenceGateway
from services.ingestion_service import IngestionWorker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestionRequest:
    """Everything a worker needs to ingest one upload."""
    file_bytes: bytes
    seller_id: int
    task_id: int


class IngestionDispatcher(ABC):
    """Starts an ingestion worker for a request without waiting for it."""

    @abstractmethod
    def dispatch(self, request: IngestionRequest) -> None:
        ...


class InlineDispatcher(IngestionDispatcher):
    """Runs the worker in the calling thread. Used by the CLI and tests."""

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway

    def dispatch(self, request: IngestionRequest) -> None:
        IngestionWorker(self.gateway).run(request.file_bytes, request.seller_id, request.task_id)


class ThreadDispatcher(IngestionDispatcher):
    """
    Starts one daemon thread per upload.

    There is no pool and no queue, so the number of concurrent workers is
    unbounded. Threads die with the process; their tasks are finalized by
    the startup sweep.
    """

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway

    def dispatch(self, request: IngestionRequest) -> None:
        worker = IngestionWorker(self.gateway)
        thread = threading.Thread(
            target=worker.run,
            args=(request.file_bytes, request.seller_id, request.task_id),
            name=f"ingest-task-{request.task_id}",
            daemon=True
        )
        thread.start()
        logger.debug(f"Started thread {thread.name}")


class CeleryDispatcher(IngestionDispatcher):
    """Sends the request to a Celery worker through the broker."""

    def dispatch(self, request: IngestionRequest) -> None:
        from tasks.ingestion_tasks import ingest_offers_file

        payload = base64.b64encode(request.file_bytes).decode('ascii')
        result = ingest_offers_file.apply_async(
            args=[payload, request.seller_id, request.task_id]
        )
        logger.info(f"Queued task {request.task_id} as Celery job {result.id}")


INGESTION_BACKENDS = ('thread', 'celery', 'inline')


def build_dispatcher(backend: str, gateway: PersistenceGateway) -> IngestionDispatcher:
    """
    Create the dispatcher named by the INGESTION_BACKEND setting.

    Raises:
        ValueError: If the backend name is unknown
    """
    if backend == 'thread':
        return ThreadDispatcher(gateway)
    if backend == 'celery':
        return CeleryDispatcher()
    if backend == 'inline':
        return InlineDispatcher(gateway)
    raise ValueError(
        f"Unknown ingestion backend '{backend}'. "
        f"Expected one of: {', '.join(INGESTION_BACKENDS)}"
    )
