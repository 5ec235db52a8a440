"""
Pydantic schemas for request/response validation.

This package contains all Pydantic models used for API request validation
and response serialization.
"""

from api.schemas.common import MessageResponse, HealthCheckResponse
from api.schemas.seller_schema import (
    SellerCreateRequest, SellerCreatedResponse, SellerResponse, SellerListResponse
)
from api.schemas.task_schema import (
    TaskCreatedResponse, TaskResponse, TaskListResponse
)
from api.schemas.offer_schema import OfferSearchRequest, OfferResponse, OfferSearchResponse

__all__ = [
    # Common
    'MessageResponse',
    'HealthCheckResponse',

    # Seller
    'SellerCreateRequest',
    'SellerCreatedResponse',
    'SellerResponse',
    'SellerListResponse',

    # Task
    'TaskCreatedResponse',
    'TaskResponse',
    'TaskListResponse',

    # Offer
    'OfferSearchRequest',
    'OfferResponse',
    'OfferSearchResponse',
]
