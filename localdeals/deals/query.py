from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from localdeals.deals.lifecycle import filter_active
from localdeals.deals.store import DealStore
from localdeals.geo.distance import Coordinates
from localdeals.models.base import utcnow
from localdeals.models.deal import Deal

DEFAULT_RADIUS_MILES = 30.0


class SortMode(enum.Enum):
    distance = "distance"
    popular = "popular"
    recent = "recent"


@dataclass
class DealResult:
    deal: Deal
    distance: Optional[float] = None


def annotate_distance(deals: Sequence[Deal], viewer: Coordinates) -> List[DealResult]:
    """計算每筆優惠與使用者的距離，沒有座標的優惠直接略過"""
    return [
        DealResult(
            deal=deal,
            distance=viewer.distance_to(Coordinates(deal.latitude, deal.longitude)),
        )
        for deal in deals
        if deal.has_coordinates
    ]


def within_radius(results: Sequence[DealResult], radius_miles: float) -> List[DealResult]:
    return [r for r in results if r.distance <= radius_miles]


def sort_results(
    results: Sequence[DealResult], mode: SortMode, has_viewer: bool
) -> List[DealResult]:
    """Order results for display.

    ``distance`` only applies when a viewer location was given and otherwise
    falls back to ``recent``. All sorts are stable, so ties keep store order.
    """
    if mode is SortMode.popular:
        return sorted(results, key=lambda r: r.deal.upvotes, reverse=True)
    if mode is SortMode.distance and has_viewer:
        return sorted(results, key=lambda r: r.distance)
    return sorted(results, key=lambda r: r.deal.created_at, reverse=True)


class QueryEngine:
    def __init__(self, store: DealStore):
        self.store = store

    def query(
        self,
        viewer: Optional[Coordinates] = None,
        radius_miles: float = DEFAULT_RADIUS_MILES,
        sort: Optional[SortMode] = None,
        now: Optional[datetime] = None,
    ) -> List[DealResult]:
        now = now or utcnow()
        # 先過濾失效優惠，避免替已下架的優惠計算距離
        active = filter_active(self.store.all(), now)

        if viewer is not None:
            results = within_radius(annotate_distance(active, viewer), radius_miles)
        else:
            results = [DealResult(deal=deal) for deal in active]

        if sort is None:
            sort = SortMode.distance if viewer is not None else SortMode.recent
        return sort_results(results, sort, has_viewer=viewer is not None)
