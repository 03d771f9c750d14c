from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from localdeals.db.database import create_db_engine, init_db
from localdeals.deals.exceptions import IdentityExhaustion
from localdeals.deals.lifecycle import EXPIRATION_WINDOW, is_killed
from localdeals.models.base import utcnow
from localdeals.models.deal import Deal


@dataclass
class DealFields:
    store_name: str
    product: str
    sale_price: float
    postal_code: str
    location: str
    latitude: float
    longitude: float
    original_price: Optional[float] = None
    description: str = ""


@dataclass
class ReportResult:
    deal: Deal
    killed: bool


class DealStore:
    """Authoritative collection of deals.

    Every operation runs under one lock, so id assignment plus insert is a
    single atomic step and readers see a consistent snapshot. Returned deals
    are detached copies; mutate them only through the store.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        self._lock = threading.Lock()

    @classmethod
    def from_url(cls, database_url: str) -> "DealStore":
        engine = create_db_engine(database_url)
        init_db(engine)
        return cls(engine)

    def create(self, fields: DealFields, now: Optional[datetime] = None) -> Deal:
        created_at = now or utcnow()
        deal = Deal(
            store_name=fields.store_name,
            product=fields.product,
            description=fields.description,
            original_price=fields.original_price,
            sale_price=fields.sale_price,
            location=fields.location,
            postal_code=fields.postal_code,
            latitude=fields.latitude,
            longitude=fields.longitude,
            created_at=created_at,
            expires_at=created_at + EXPIRATION_WINDOW,
            upvotes=0,
            reports=0,
        )
        with self._lock, self._session_factory() as session:
            session.add(deal)
            try:
                session.commit()
            except OperationalError as e:
                session.rollback()
                # SQLite raises SQLITE_FULL once AUTOINCREMENT hits the max rowid
                if "full" in str(e.orig).lower():
                    raise IdentityExhaustion("No deal ids left to assign") from e
                raise
        logger.info(f"Created deal {deal.id}: {deal.product} @ {deal.store_name}")
        return deal

    def get_by_id(self, deal_id: int) -> Optional[Deal]:
        with self._lock, self._session_factory() as session:
            return session.get(Deal, deal_id)

    def delete_by_id(self, deal_id: int) -> bool:
        with self._lock, self._session_factory() as session:
            deal = session.get(Deal, deal_id)
            if deal is None:
                return False
            session.delete(deal)
            session.commit()
        logger.info(f"Deleted deal {deal_id}")
        return True

    def increment_upvote(self, deal_id: int) -> Optional[Deal]:
        with self._lock, self._session_factory() as session:
            deal = session.get(Deal, deal_id)
            if deal is None:
                return None
            deal.upvotes += 1
            session.commit()
            return deal

    def increment_report(self, deal_id: int) -> Optional[ReportResult]:
        with self._lock, self._session_factory() as session:
            deal = session.get(Deal, deal_id)
            if deal is None:
                return None
            deal.reports += 1
            session.commit()
            killed = is_killed(deal)
        if killed:
            logger.info(f"Deal {deal_id} removed after {deal.reports} reports")
        return ReportResult(deal=deal, killed=killed)

    def all(self) -> List[Deal]:
        with self._lock, self._session_factory() as session:
            return list(session.scalars(select(Deal).order_by(Deal.id.asc())))
