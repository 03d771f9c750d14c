from datetime import datetime, timezone
from typing import Dict, Optional

import pytest

from localdeals.deals.service import DealService
from localdeals.deals.store import DealFields, DealStore
from localdeals.geo.geocoder import BaseGeocoder, GeoLocation

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

AUSTIN = GeoLocation(latitude=30.2711, longitude=-97.7437, city="Austin", state="TX")
DALLAS = GeoLocation(latitude=32.7831, longitude=-96.8067, city="Dallas", state="TX")


class FakeGeocoder(BaseGeocoder):
    def __init__(self, places: Optional[Dict[str, GeoLocation]] = None):
        self.places = places if places is not None else {"78701": AUSTIN, "75201": DALLAS}
        self.calls = []

    def resolve(self, postal_code: str) -> Optional[GeoLocation]:
        self.calls.append(postal_code)
        return self.places.get(postal_code)


class FrozenClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_fields(**overrides) -> DealFields:
    values = dict(
        store_name="H-E-B",
        product="Coffee beans",
        sale_price=5.0,
        original_price=10.0,
        postal_code="78701",
        location="Austin, TX",
        latitude=AUSTIN.latitude,
        longitude=AUSTIN.longitude,
    )
    values.update(overrides)
    return DealFields(**values)


@pytest.fixture
def store():
    return DealStore.from_url("sqlite://")


@pytest.fixture
def geocoder():
    return FakeGeocoder()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def service(store, geocoder, clock):
    return DealService(store=store, geocoder=geocoder, clock=clock)
