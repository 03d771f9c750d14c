from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from localdeals.deals.query import DealResult
from localdeals.models.deal import Deal


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateDealRequest(CamelModel):
    # Required fields are checked by DealService so the caller gets one clear message
    store_name: Optional[str] = None
    product: Optional[str] = None
    original_price: Optional[Union[float, str]] = None
    sale_price: Optional[Union[float, str]] = None
    location: Optional[str] = None
    description: Optional[str] = None
    postal_code: Optional[Union[str, int]] = Field(
        default=None,
        validation_alias=AliasChoices("postalCode", "zipCode", "postal_code"),
    )

    @field_validator("postal_code")
    @classmethod
    def postal_code_as_text(cls, value: Optional[Union[str, int]]) -> Optional[str]:
        # Clients may send the zip as a JSON number
        return None if value is None else str(value)


class DealResponse(CamelModel):
    id: int
    store_name: str
    product: str
    description: str
    original_price: Optional[float]
    sale_price: float
    savings_percent: Optional[int]
    location: str
    postal_code: str
    latitude: Optional[float]
    longitude: Optional[float]
    created_at: datetime
    expires_at: datetime
    upvote_count: int
    report_count: int
    distance: Optional[float] = None

    @classmethod
    def from_deal(cls, deal: Deal, distance: Optional[float] = None) -> "DealResponse":
        return cls(
            id=deal.id,
            store_name=deal.store_name,
            product=deal.product,
            description=deal.description or "",
            original_price=deal.original_price,
            sale_price=deal.sale_price,
            savings_percent=deal.savings_percent,
            location=deal.location,
            postal_code=deal.postal_code,
            latitude=deal.latitude,
            longitude=deal.longitude,
            created_at=deal.created_at,
            expires_at=deal.expires_at,
            upvote_count=deal.upvotes,
            report_count=deal.reports,
            distance=distance,
        )

    @classmethod
    def from_result(cls, result: DealResult) -> "DealResponse":
        return cls.from_deal(result.deal, result.distance)


class ReportResponse(CamelModel):
    message: str
    killed: bool
    report_count: int


class GeocodeResponse(CamelModel):
    latitude: float
    longitude: float
    city: str
    state: str
