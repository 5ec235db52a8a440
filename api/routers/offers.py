"""
Offers router - upload offer spreadsheets and search the catalog.

An upload returns as soon as its task exists; the file is ingested in
the background and its outcome is read through the tasks endpoints.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile

from api.dependencies import get_lifecycle, get_request_gateway, verify_file_size
from api.schemas.offer_schema import OfferSearchRequest, OfferSearchResponse
from api.schemas.task_schema import TaskCreatedResponse
from services.exceptions import SellerNotFoundError
from services.gateway import SqlAlchemyGateway
from services.task_service import TaskLifecycleManager

logger = logging.getLogger(__name__)

router = APIRouter(tags=['offers'])


@router.post('/sellers/{seller_id}/offers/load', response_model=TaskCreatedResponse)
async def load_offers(
    seller_id: int,
    data: UploadFile = File(..., description="Offers workbook (.xlsx)"),
    gateway: SqlAlchemyGateway = Depends(get_request_gateway),
    lifecycle: TaskLifecycleManager = Depends(get_lifecycle)
):
    """
    Upload an offers workbook and start ingesting it.

    Each row holds: offer_id, name, price, quantity, available
    ('true' to create or update the offer, 'false' to delete it).

    **Workflow:**
    1. Check the seller exists
    2. Buffer the whole file in memory
    3. Create a Running task
    4. Hand the file to a background worker
    5. Return the task id

    **Progress Tracking:**
    - Poll GET /tasks/{task_id} until status is Completed or Error
    """
    if not gateway.seller_exists(seller_id):
        raise SellerNotFoundError(seller_id)

    file_bytes = await data.read()
    verify_file_size(len(file_bytes))
    logger.info(f"Upload for seller {seller_id}: {data.filename} ({len(file_bytes)} bytes)")

    task_id = lifecycle.submit_ingestion(file_bytes, seller_id)
    return TaskCreatedResponse(task_id=task_id)


@router.post('/offers/search', response_model=OfferSearchResponse)
async def search_offers(
    body: OfferSearchRequest,
    gateway: SqlAlchemyGateway = Depends(get_request_gateway)
):
    """
    Search offers by seller, offer id and name substring.

    **Example:**
    ```bash
    curl -X POST http://localhost:8080/offers/search \\
        -d '{"offer_name": "pencil", "ignore_register": true}'
    ```
    """
    offers = gateway.search_offers(
        seller_id=body.seller_id,
        offer_id=body.offer_id,
        offer_name=body.offer_name,
        ignore_case=bool(body.ignore_register)
    )
    return OfferSearchResponse(offers=offers)


@router.get('/offers/search', response_model=OfferSearchResponse)
async def search_offers_by_query(
    offer_id: Optional[int] = Query(None),
    offer_name: Optional[str] = Query(None),
    seller_id: Optional[int] = Query(None),
    ignore_register: bool = Query(False),
    gateway: SqlAlchemyGateway = Depends(get_request_gateway)
):
    """Same search with filters passed as query parameters."""
    offers = gateway.search_offers(
        seller_id=seller_id,
        offer_id=offer_id,
        offer_name=offer_name,
        ignore_case=ignore_register
    )
    return OfferSearchResponse(offers=offers)
