from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from localdeals.api.dependencies import get_deal_service
from localdeals.api.schemas import (
    CreateDealRequest,
    DealResponse,
    GeocodeResponse,
    ReportResponse,
)
from localdeals.deals.exceptions import LocationResolutionError
from localdeals.deals.service import DealService, DealSubmission

router = APIRouter(prefix="/api", tags=["deals"])

# Endpoints are plain ``def`` so FastAPI runs them in its threadpool; the
# geocoder does blocking I/O and DealStore serializes access with a lock.


@router.get("/deals", response_model=List[DealResponse])
def list_deals(
    lat: Optional[float] = Query(None),
    lng: Optional[float] = Query(None),
    radius: Optional[float] = Query(None),
    sort: Optional[str] = Query(None),
    service: DealService = Depends(get_deal_service),
):
    results = service.list(latitude=lat, longitude=lng, radius_miles=radius, sort=sort)
    return [DealResponse.from_result(r) for r in results]


@router.get("/deals/{deal_id}", response_model=DealResponse)
def get_deal(deal_id: int, service: DealService = Depends(get_deal_service)):
    return DealResponse.from_deal(service.get(deal_id))


@router.post("/deals", status_code=201, response_model=DealResponse)
def create_deal(
    body: CreateDealRequest, service: DealService = Depends(get_deal_service)
):
    deal = service.submit(
        DealSubmission(
            store_name=body.store_name,
            product=body.product,
            sale_price=body.sale_price,
            postal_code=body.postal_code,
            original_price=body.original_price,
            location=body.location,
            description=body.description,
        )
    )
    return DealResponse.from_deal(deal)


@router.delete("/deals/{deal_id}", status_code=204)
def delete_deal(deal_id: int, service: DealService = Depends(get_deal_service)):
    service.delete(deal_id)
    return Response(status_code=204)


@router.patch("/deals/{deal_id}/upvote", response_model=DealResponse)
def upvote_deal(deal_id: int, service: DealService = Depends(get_deal_service)):
    return DealResponse.from_deal(service.upvote(deal_id))


@router.patch("/deals/{deal_id}/report", response_model=ReportResponse)
def report_deal(deal_id: int, service: DealService = Depends(get_deal_service)):
    result = service.report(deal_id)
    message = (
        "Deal has been removed due to reports" if result.killed else "Report submitted"
    )
    return ReportResponse(
        message=message, killed=result.killed, report_count=result.deal.reports
    )


@router.get("/geocode/{postal_code}", response_model=GeocodeResponse)
def geocode(postal_code: str, service: DealService = Depends(get_deal_service)):
    try:
        geo = service.geocode(postal_code)
    except LocationResolutionError:
        raise HTTPException(status_code=404, detail="Zip code not found")
    return GeocodeResponse(
        latitude=geo.latitude, longitude=geo.longitude, city=geo.city, state=geo.state
    )
