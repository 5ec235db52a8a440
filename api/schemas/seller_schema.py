"""
Seller-related Pydantic schemas.
"""

import re
from typing import List
from pydantic import BaseModel, Field

# First character must be a Latin or Cyrillic letter
SELLER_NAME_PATTERN = re.compile(r'^[а-яА-ЯёЁa-zA-Z]')


def is_valid_seller_name(seller_name: str) -> bool:
    return bool(SELLER_NAME_PATTERN.match(seller_name))


class SellerCreateRequest(BaseModel):
    """Request body for seller registration."""

    seller_name: str = Field("", max_length=255, description="Seller display name")

    class Config:
        json_schema_extra = {
            "example": {"seller_name": "Acme Stationery"}
        }


class SellerCreatedResponse(BaseModel):
    seller_id: int


class SellerResponse(BaseModel):
    """Seller as returned by the API."""

    seller_id: int = Field(..., description="Seller identifier")
    seller_name: str = Field(..., description="Seller display name")


class SellerListResponse(BaseModel):
    sellers: List[SellerResponse]
