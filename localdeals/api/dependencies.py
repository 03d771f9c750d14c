from functools import lru_cache

from localdeals.config import get_settings
from localdeals.deals.service import DealService
from localdeals.deals.store import DealStore
from localdeals.geo.geocoder import ZippopotamGeocoder


@lru_cache
def get_deal_service() -> DealService:
    settings = get_settings()
    store = DealStore.from_url(settings.database_url)
    return DealService(
        store=store,
        geocoder=ZippopotamGeocoder(),
        default_radius_miles=settings.default_radius_miles,
    )
