"""Partner offer catalog, redemption history and usage endpoints."""

from collections.abc import Callable
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.dependencies import get_api_key, get_clock, get_db
from app.schemas.partners import (
    HistoryEntryResponse,
    PromotionCreate,
    PromotionResponse,
    PromotionUpdate,
    UsageSummaryResponse,
)
from unipass.services.catalog_service import CatalogService
from unipass.services.errors import (
    InvalidOfferError,
    PartnerNotFoundError,
    PromotionNotFoundError,
)
from unipass.services.event_log import EventLogService

router = APIRouter(prefix="/api", tags=["partners"])


@router.get("/partners/{partner_id}/promotions", response_model=list[PromotionResponse])
def list_promotions(partner_id: str, db: Session = Depends(get_db)):
    svc = CatalogService(db)
    try:
        return svc.list_promotions(partner_id)
    except PartnerNotFoundError as e:
        raise HTTPException(404, detail=str(e))


@router.get("/partners/{partner_id}/offers")
def list_active_offers(
    partner_id: str,
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """What the counter can redeem today: standard benefit first."""
    svc = CatalogService(db)
    try:
        _, offers = svc.active_offers(partner_id, clock().date())
    except PartnerNotFoundError as e:
        raise HTTPException(404, detail=str(e))
    except InvalidOfferError as e:
        raise HTTPException(422, detail=f"Offer configuration error: {e}")
    return [
        {
            "id": o.id,
            "title": o.title,
            "limit": o.limit.value,
            "description": o.description,
            "validUntil": o.valid_until.isoformat() if o.valid_until else None,
            "isStandard": o.is_standard,
        }
        for o in offers
    ]


@router.post("/partners/{partner_id}/promotions", response_model=PromotionResponse, status_code=201)
def create_promotion(
    partner_id: str,
    body: PromotionCreate,
    db: Session = Depends(get_db),
    _key: str = Depends(get_api_key),
):
    svc = CatalogService(db)
    try:
        return svc.add_promotion(
            partner_id,
            title=body.title,
            limit=body.limit,
            description=body.description,
            valid_until=body.valid_until,
            promotion_id=body.id,
        )
    except PartnerNotFoundError as e:
        raise HTTPException(404, detail=str(e))
    except InvalidOfferError as e:
        raise HTTPException(409, detail=str(e))


@router.put("/partners/{partner_id}/promotions/{promotion_id}", response_model=PromotionResponse)
def update_promotion(
    partner_id: str,
    promotion_id: str,
    body: PromotionUpdate,
    db: Session = Depends(get_db),
    _key: str = Depends(get_api_key),
):
    svc = CatalogService(db)
    updates = body.model_dump(exclude_unset=True)
    try:
        return svc.update_promotion(partner_id, promotion_id, updates)
    except PromotionNotFoundError as e:
        raise HTTPException(404, detail=str(e))


@router.delete("/partners/{partner_id}/promotions/{promotion_id}", response_model=PromotionResponse)
def deactivate_promotion(
    partner_id: str,
    promotion_id: str,
    db: Session = Depends(get_db),
    _key: str = Depends(get_api_key),
):
    svc = CatalogService(db)
    try:
        return svc.deactivate_promotion(partner_id, promotion_id)
    except PromotionNotFoundError as e:
        raise HTTPException(404, detail=str(e))


@router.get("/partners/{partner_id}/history", response_model=list[HistoryEntryResponse])
def redemption_history(
    partner_id: str,
    actor_id: str | None = Query(None, alias="actorId"),
    role: str | None = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    svc = EventLogService(db)
    return svc.history(partner_id, actor_id=actor_id, role=role, limit=limit)


@router.get("/partners/{partner_id}/usage", response_model=UsageSummaryResponse)
def usage_summary(partner_id: str, db: Session = Depends(get_db)):
    svc = EventLogService(db)
    return svc.usage_summary(partner_id)
