"""
Offer-related Pydantic schemas.
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from api.schemas.seller_schema import SellerResponse


class OfferSearchRequest(BaseModel):
    """Offer search filters; all optional."""

    offer_id: Optional[int] = Field(None, description="Exact offer identifier")
    offer_name: Optional[str] = Field(None, description="Substring of the offer name")
    seller_id: Optional[int] = Field(None, description="Owning seller")
    ignore_register: Optional[bool] = Field(False, description="Case-insensitive name match")

    class Config:
        json_schema_extra = {
            "example": {
                "offer_name": "pencil",
                "ignore_register": True
            }
        }


class OfferResponse(BaseModel):
    offer_id: int
    offer_name: str
    price: int
    quantity: int
    seller: SellerResponse


class OfferSearchResponse(BaseModel):
    offers: List[OfferResponse]
