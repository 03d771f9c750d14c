from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import httpx
from loguru import logger

from localdeals.config import get_settings
from localdeals.geo.distance import Coordinates


@dataclass(frozen=True)
class GeoLocation:
    latitude: float
    longitude: float
    city: str
    state: str

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(self.latitude, self.longitude)

    @property
    def display_name(self) -> str:
        return f"{self.city}, {self.state}"


class BaseGeocoder(ABC):
    @abstractmethod
    def resolve(self, postal_code: str) -> Optional[GeoLocation]:
        """將郵遞區號解析為座標與地名，查不到或服務失敗時回傳 None"""
        ...

    def close(self) -> None:
        pass


class ZippopotamGeocoder(BaseGeocoder):
    """Postal code lookup against the free Zippopotam.us API.

    Any failure (network, non-success status, malformed payload) is reported
    as ``None``; callers cannot tell "unknown code" from "lookup unavailable".
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        country: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.geocoder_base_url).rstrip("/")
        self.country = country or settings.geocoder_country
        self.client = httpx.Client(
            timeout=timeout if timeout is not None else settings.geocoder_timeout,
            headers={"Accept": "application/json"},
        )

    def _lookup_url(self, postal_code: str) -> str:
        return f"{self.base_url}/{self.country}/{quote(postal_code.strip(), safe='')}"

    def resolve(self, postal_code: str) -> Optional[GeoLocation]:
        try:
            resp = self.client.get(self._lookup_url(postal_code))
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"Geocoding miss for {postal_code!r}: HTTP {e.response.status_code}"
            )
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Geocoding failed for {postal_code!r}: {e}")
            return None

        try:
            place = data["places"][0]
            return GeoLocation(
                latitude=float(place["latitude"]),
                longitude=float(place["longitude"]),
                city=place["place name"],
                state=place["state abbreviation"],
            )
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning(f"Malformed geocoding payload for {postal_code!r}: {e}")
            return None

    def close(self) -> None:
        self.client.close()
