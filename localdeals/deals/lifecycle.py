"""Deal liveness rules.

A deal's status is never stored. It is recomputed from ``created_at``,
``reports`` and the current time on every read.
"""
from __future__ import annotations

import enum
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from localdeals.models.base import utcnow
from localdeals.models.deal import Deal

EXPIRATION_WINDOW = timedelta(days=30)
REPORT_THRESHOLD = 2


class DealStatus(enum.Enum):
    active = "active"
    expired = "expired"
    killed = "killed"


def is_expired(deal: Deal, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    return now - deal.created_at > EXPIRATION_WINDOW


def is_killed(deal: Deal) -> bool:
    return deal.reports >= REPORT_THRESHOLD


def is_active(deal: Deal, now: Optional[datetime] = None) -> bool:
    return not is_expired(deal, now) and not is_killed(deal)


def evaluate(deal: Deal, now: Optional[datetime] = None) -> DealStatus:
    # killed wins when both apply, a report-removed deal stays removed
    if is_killed(deal):
        return DealStatus.killed
    if is_expired(deal, now):
        return DealStatus.expired
    return DealStatus.active


def filter_active(deals: Iterable[Deal], now: Optional[datetime] = None) -> List[Deal]:
    now = now or utcnow()
    return [deal for deal in deals if is_active(deal, now)]
