"""
Sellers router - register and look up sellers.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import get_request_gateway
from api.schemas.seller_schema import (
    SellerCreateRequest, SellerCreatedResponse, SellerListResponse, SellerResponse,
    is_valid_seller_name
)
from services.exceptions import SellerNameTakenError, SellerNotFoundError
from services.gateway import SqlAlchemyGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/sellers', tags=['sellers'])


@router.post('', response_model=SellerCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_seller(
    body: SellerCreateRequest,
    gateway: SqlAlchemyGateway = Depends(get_request_gateway)
):
    """
    Register a seller.

    The name must be non-empty, start with a Latin or Cyrillic letter and
    be unique.
    """
    if not is_valid_seller_name(body.seller_name):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid seller_name: expected a non-empty string starting with a Latin or Cyrillic letter"
        )

    try:
        seller_id = gateway.create_seller(body.seller_name)
    except SellerNameTakenError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Seller with the given seller_name already exists"
        )

    return SellerCreatedResponse(seller_id=seller_id)


@router.get('', response_model=SellerListResponse)
async def list_sellers(gateway: SqlAlchemyGateway = Depends(get_request_gateway)):
    """List sellers in registration order."""
    return SellerListResponse(sellers=gateway.list_sellers())


@router.get('/{seller_id}', response_model=SellerResponse)
async def get_seller(seller_id: int, gateway: SqlAlchemyGateway = Depends(get_request_gateway)):
    seller = gateway.get_seller(seller_id)
    if seller is None:
        raise SellerNotFoundError(seller_id)
    return SellerResponse(**seller)
