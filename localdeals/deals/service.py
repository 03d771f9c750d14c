from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Optional

from loguru import logger

from localdeals.deals.exceptions import (
    LocationResolutionError,
    NotFoundError,
    ValidationError,
)
from localdeals.deals.lifecycle import is_active
from localdeals.deals.query import (
    DEFAULT_RADIUS_MILES,
    DealResult,
    QueryEngine,
    SortMode,
)
from localdeals.deals.store import DealFields, DealStore, ReportResult
from localdeals.geo.distance import Coordinates
from localdeals.geo.geocoder import BaseGeocoder, GeoLocation
from localdeals.models.base import utcnow
from localdeals.models.deal import Deal

REQUIRED_FIELDS_MESSAGE = (
    "Missing required fields: storeName, product, salePrice, and zipCode are required"
)
INVALID_POSTAL_CODE_MESSAGE = "Invalid zip code. Please enter a valid US zip code."
DEAL_NOT_FOUND_MESSAGE = "Deal not found"


@dataclass
class DealSubmission:
    store_name: Optional[str] = None
    product: Optional[str] = None
    sale_price: Any = None
    postal_code: Optional[str] = None
    original_price: Any = None
    location: Optional[str] = None
    description: Optional[str] = None


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _parse_price(value: Any, field: str) -> float:
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not math.isfinite(price):
        raise ValidationError(f"{field} must be a number")
    return price


def parse_sort_mode(value: Optional[str]) -> Optional[SortMode]:
    if _is_blank(value):
        return None
    try:
        return SortMode(value.strip().lower())
    except ValueError:
        allowed = ", ".join(mode.value for mode in SortMode)
        raise ValidationError(f"Unknown sort mode {value!r}. Use one of: {allowed}")


class DealService:
    """Submission, lookup and moderation of deals.

    Geocoding always happens before the store is touched, so a slow or failed
    lookup never holds the store lock or consumes a deal id.
    """

    def __init__(
        self,
        store: DealStore,
        geocoder: BaseGeocoder,
        clock: Callable[[], datetime] = utcnow,
        default_radius_miles: float = DEFAULT_RADIUS_MILES,
    ):
        self.store = store
        self.geocoder = geocoder
        self.clock = clock
        self.default_radius_miles = default_radius_miles
        self.query_engine = QueryEngine(store)

    def _validate(self, submission: DealSubmission) -> DealSubmission:
        if any(
            _is_blank(value)
            for value in (
                submission.store_name,
                submission.product,
                submission.sale_price,
                submission.postal_code,
            )
        ):
            raise ValidationError(REQUIRED_FIELDS_MESSAGE)

        sale_price = _parse_price(submission.sale_price, "salePrice")
        if sale_price <= 0:
            raise ValidationError("salePrice must be greater than 0")

        original_price = None
        if not _is_blank(submission.original_price):
            original_price = _parse_price(submission.original_price, "originalPrice")
            if original_price < 0:
                raise ValidationError("originalPrice cannot be negative")
            # 0 視同未填寫原價
            original_price = original_price or None

        return DealSubmission(
            store_name=submission.store_name.strip(),
            product=submission.product.strip(),
            sale_price=sale_price,
            postal_code=str(submission.postal_code).strip(),
            original_price=original_price,
            location=None if _is_blank(submission.location) else submission.location.strip(),
            description=(submission.description or "").strip(),
        )

    def submit(self, submission: DealSubmission) -> Deal:
        clean = self._validate(submission)

        geo = self.geocoder.resolve(clean.postal_code)
        if geo is None:
            logger.warning(f"Rejected deal submission, unresolvable zip {clean.postal_code!r}")
            raise LocationResolutionError(INVALID_POSTAL_CODE_MESSAGE)

        return self.store.create(
            DealFields(
                store_name=clean.store_name,
                product=clean.product,
                sale_price=clean.sale_price,
                postal_code=clean.postal_code,
                location=clean.location or geo.display_name,
                latitude=geo.latitude,
                longitude=geo.longitude,
                original_price=clean.original_price,
                description=clean.description,
            ),
            now=self.clock(),
        )

    def geocode(self, postal_code: str) -> GeoLocation:
        if _is_blank(postal_code):
            raise ValidationError("zipCode is required")
        geo = self.geocoder.resolve(postal_code.strip())
        if geo is None:
            raise LocationResolutionError("Zip code not found")
        return geo

    def get(self, deal_id: int) -> Deal:
        deal = self.store.get_by_id(deal_id)
        if deal is None or not is_active(deal, self.clock()):
            raise NotFoundError(DEAL_NOT_FOUND_MESSAGE)
        return deal

    def list(
        self,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        radius_miles: Optional[float] = None,
        sort: Optional[str] = None,
    ) -> List[DealResult]:
        mode = parse_sort_mode(sort)

        if radius_miles is None:
            radius_miles = self.default_radius_miles
        if not math.isfinite(radius_miles) or radius_miles < 0:
            raise ValidationError("radius must be a non-negative number of miles")

        # 經緯度需同時提供才啟用距離篩選
        viewer = None
        if latitude is not None and longitude is not None:
            if not (math.isfinite(latitude) and -90 <= latitude <= 90):
                raise ValidationError("lat must be between -90 and 90")
            if not (math.isfinite(longitude) and -180 <= longitude <= 180):
                raise ValidationError("lng must be between -180 and 180")
            viewer = Coordinates(latitude, longitude)

        return self.query_engine.query(
            viewer=viewer, radius_miles=radius_miles, sort=mode, now=self.clock()
        )

    def upvote(self, deal_id: int) -> Deal:
        deal = self.store.increment_upvote(deal_id)
        if deal is None:
            raise NotFoundError(DEAL_NOT_FOUND_MESSAGE)
        return deal

    def report(self, deal_id: int) -> ReportResult:
        result = self.store.increment_report(deal_id)
        if result is None:
            raise NotFoundError(DEAL_NOT_FOUND_MESSAGE)
        return result

    def delete(self, deal_id: int) -> None:
        if not self.store.delete_by_id(deal_id):
            raise NotFoundError(DEAL_NOT_FOUND_MESSAGE)
