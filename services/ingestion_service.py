"""
Offers ingestion worker.

Reads an uploaded workbook, validates every row and hands the valid
offers to the persistence gateway in a single call. Runs outside the
request that created the task, so nothing is raised to the caller: the
outcome is only visible through the task status.
"""

import io
import logging
from typing import Any, List, Sequence, Tuple

import openpyxl
from openpyxl.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from services.exceptions import RowRejectedError, WorkbookFormatError
from services.gateway import PersistenceGateway
from services.offer_row_service import CandidateOffer, offer_from_row

logger = logging.getLogger(__name__)


def open_workbook(file_bytes: bytes) -> Workbook:
    """
    Open an in-memory .xlsx document.

    Raises:
        WorkbookFormatError: If the bytes are not a readable workbook
    """
    try:
        return openpyxl.load_workbook(io.BytesIO(file_bytes), data_only=True)
    except Exception as e:
        raise WorkbookFormatError(f"Cannot open workbook: {e}") from e


def extract_row(sheet: Worksheet, row_index: int) -> Tuple[Any, ...]:
    """Return the cell values of one 1-based row."""
    return tuple(cell.value for cell in sheet[row_index])


class IngestionWorker:
    """
    Drives one uploaded file through validation and persistence.

    The worker owns the batch and the error counter of a task until it
    calls the gateway to finalize the task. Every path through run()
    ends with the task Completed or Error.
    """

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway

    def collect_offers(self, workbook: Workbook, seller_id: int) -> Tuple[List[CandidateOffer], int]:
        """
        Validate every row of every sheet in document order.

        Returns:
            (valid offers tagged with seller_id, number of rejected rows)
        """
        batch: List[CandidateOffer] = []
        error_count = 0

        for sheet in workbook.worksheets:
            for row_index in range(1, sheet.max_row + 1):
                try:
                    values = extract_row(sheet, row_index)
                except Exception as e:
                    logger.debug(f"Sheet '{sheet.title}' row {row_index}: cannot read row: {e}")
                    error_count += 1
                    continue

                try:
                    candidate = offer_from_row(values)
                except RowRejectedError as e:
                    logger.debug(f"Sheet '{sheet.title}' row {row_index}: rejected: {e}")
                    error_count += 1
                    continue

                batch.append(candidate.for_seller(seller_id))

        return batch, error_count

    def run(self, file_bytes: bytes, seller_id: int, task_id: int) -> None:
        """
        Ingest an uploaded file for a Running task.

        Args:
            file_bytes: Fully buffered upload
            seller_id: Seller owning the catalog
            task_id: Task created for this upload
        """
        logger.info(f"Starting ingestion for task {task_id}: seller {seller_id}, {len(file_bytes)} bytes")

        try:
            self._ingest(file_bytes, seller_id, task_id)
        except Exception as e:
            logger.error(f"Ingestion of task {task_id} failed unexpectedly: {e}", exc_info=True)
            self._fail(task_id)

    def _ingest(self, file_bytes: bytes, seller_id: int, task_id: int) -> None:
        try:
            workbook = open_workbook(file_bytes)
        except WorkbookFormatError as e:
            logger.warning(f"Task {task_id}: {e}")
            self._fail(task_id)
            return

        try:
            batch, error_count = self.collect_offers(workbook, seller_id)
        finally:
            workbook.close()

        logger.info(f"Task {task_id}: {len(batch)} valid rows, {error_count} rejected")

        if not batch:
            logger.warning(f"Task {task_id}: no valid offers in file")
            self._fail(task_id)
            return

        self._apply(task_id, error_count, batch)

    def _apply(self, task_id: int, error_count: int, batch: Sequence[CandidateOffer]) -> None:
        try:
            created, updated, deleted = self.gateway.bulk_apply(task_id, error_count, batch)
        except Exception as e:
            logger.error(f"Task {task_id}: storing {len(batch)} offers failed: {e}")
            self._fail(task_id)
            return

        logger.info(
            f"Task {task_id} finished: {created} created, {updated} updated, "
            f"{deleted} deleted, {error_count} errors"
        )

    def _fail(self, task_id: int) -> None:
        try:
            self.gateway.force_error(task_id)
        except Exception as e:
            # left for the startup sweep
            logger.error(f"Could not mark task {task_id} as Error: {e}", exc_info=True)
