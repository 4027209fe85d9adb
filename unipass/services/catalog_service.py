"""Offer catalog: partners, their promotions, and the engine-ready offer list."""

from datetime import date, datetime
from typing import Any
from uuid import uuid4

import structlog
from sqlalchemy import Select, and_, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from db.enums import UsageLimit
from db.models import Partners, Promotions
from unipass.services._helpers import now_iso, parse_date
from unipass.services._types import PromotionDict
from unipass.services.eligibility import build_offers
from unipass.services.errors import (
    InvalidOfferError,
    PartnerNotFoundError,
    PromotionNotFoundError,
)
from unipass.services.retry import retry_call
from unipass.services.schemas import STANDARD_BENEFIT_ID, Offer, Partner

logger = structlog.get_logger(__name__)

_STORE_ERRORS: tuple[type[Exception], ...] = (OperationalError,)
_NULLABLE: frozenset[str] = frozenset({"description", "valid_until"})


def _promotion_id() -> str:
    return "promo_" + uuid4().hex[:12]


def to_partner(row: Partners) -> Partner:
    return Partner(id=row.id, name=row.name, discount=row.discount)


def to_offer(row: Promotions) -> Offer:
    try:
        limit: UsageLimit = UsageLimit(row.usage_limit)
    except ValueError as e:
        raise InvalidOfferError(
            f"Promotion '{row.id}' has unknown usage limit '{row.usage_limit}'",
            offer_id=row.id,
        ) from e
    return Offer(
        id=row.id,
        title=row.title,
        limit=limit,
        description=row.description,
        valid_until=stored_expiry(row),
        is_active=bool(row.is_active),
    )


def stored_expiry(promo: Promotions) -> date | None:
    """Parsed ``valid_until``; an unreadable stored value is a catalog fault."""
    try:
        return parse_date(promo.valid_until)
    except ValueError as e:
        raise InvalidOfferError(
            f"Promotion '{promo.id}' has invalid expiry date '{promo.valid_until}'",
            offer_id=promo.id,
        ) from e


def expiry_text(value: date | str | None, promotion_id: str | None = None) -> str | None:
    """Normalize an expiry to YYYY-MM-DD for storage."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError as e:
        raise InvalidOfferError(
            f"Invalid expiry date '{value}', expected YYYY-MM-DD", offer_id=promotion_id
        ) from e


def is_redeemable_on(promo: Promotions, today: date) -> bool:
    """Active and not past its expiration date."""
    if promo.is_active is False:
        return False
    expires: date | None = stored_expiry(promo)
    return expires is None or expires >= today


class CatalogService:
    """Reads and edits a partner's promotions."""

    def __init__(self, session: Session) -> None:
        self.session: Session = session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_partner_row(self, partner_id: str) -> Partners:
        row: Partners | None = retry_call(
            "catalog",
            "get_partner",
            lambda: self.session.get(Partners, partner_id),
            retry_on=_STORE_ERRORS,
        )
        if row is None:
            raise PartnerNotFoundError(f"Partner '{partner_id}' not found")
        return row

    def get_partner(self, partner_id: str) -> Partner:
        return to_partner(self.get_partner_row(partner_id))

    def _promotion_rows(self, partner_id: str) -> list[Promotions]:
        stmt: Select[tuple[Promotions]] = (
            select(Promotions)
            .where(Promotions.partner_id == partner_id)
            .order_by(Promotions.created_at, Promotions.id)
        )
        return list(
            retry_call(
                "catalog",
                "list_promotions",
                lambda: self.session.scalars(stmt).all(),
                retry_on=_STORE_ERRORS,
            )
        )

    def list_promotions(self, partner_id: str) -> list[PromotionDict]:
        self.get_partner_row(partner_id)
        return [self._to_dict(p) for p in self._promotion_rows(partner_id)]

    def active_promotions(self, partner_id: str, today: date) -> list[Offer]:
        return [
            to_offer(p) for p in self._promotion_rows(partner_id) if is_redeemable_on(p, today)
        ]

    def active_offers(self, partner_id: str, today: date) -> tuple[Partner, list[Offer]]:
        """Partner plus its engine-ready offers: standard benefit first."""
        partner: Partner = self.get_partner(partner_id)
        return partner, build_offers(partner, self.active_promotions(partner_id, today))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_promotion(
        self,
        partner_id: str,
        title: str,
        limit: UsageLimit | str = UsageLimit.UNLIMITED,
        description: str | None = None,
        valid_until: date | str | None = None,
        promotion_id: str | None = None,
    ) -> PromotionDict:
        self.get_partner_row(partner_id)
        pid: str = promotion_id or _promotion_id()
        if pid == STANDARD_BENEFIT_ID:
            raise InvalidOfferError(
                f"Promotion id '{STANDARD_BENEFIT_ID}' is reserved", offer_id=pid
            )
        if self._get_promotion(partner_id, pid) is not None:
            raise InvalidOfferError(f"Promotion '{pid}' already exists", offer_id=pid)
        expires: str | None = expiry_text(valid_until, pid)

        ts: str = now_iso()
        promo: Promotions = Promotions(
            partner_id=partner_id,
            id=pid,
            title=title,
            usage_limit=UsageLimit(limit).value,
            description=description,
            valid_until=expires,
            is_active=True,
            created_at=ts,
            updated_at=ts,
        )
        self.session.add(promo)
        self.session.flush()
        logger.info("Promotion added", partner_id=partner_id, promotion_id=pid, limit=promo.usage_limit)
        return self._to_dict(promo)

    def update_promotion(
        self, partner_id: str, promotion_id: str, updates: dict[str, Any]
    ) -> PromotionDict:
        """Apply ``updates``; None clears description and valid_until, and is ignored elsewhere."""
        promo: Promotions = self._require_promotion(partner_id, promotion_id)
        field_map: dict[str, str] = {
            "title": "title",
            "limit": "usage_limit",
            "description": "description",
            "valid_until": "valid_until",
            "is_active": "is_active",
        }
        for key, value in updates.items():
            column: str | None = field_map.get(key)
            if column is None or (value is None and column not in _NULLABLE):
                continue
            if column == "usage_limit":
                value = UsageLimit(value).value
            elif column == "valid_until":
                value = expiry_text(value, promotion_id)
            setattr(promo, column, value)
        promo.updated_at = now_iso()
        self.session.flush()
        logger.info("Promotion updated", partner_id=partner_id, promotion_id=promotion_id)
        return self._to_dict(promo)

    def deactivate_promotion(self, partner_id: str, promotion_id: str) -> PromotionDict:
        """Soft delete; past redemptions keep pointing at the id."""
        return self.update_promotion(partner_id, promotion_id, {"is_active": False})

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_promotion(self, partner_id: str, promotion_id: str) -> Promotions | None:
        stmt: Select[tuple[Promotions]] = select(Promotions).where(
            and_(Promotions.partner_id == partner_id, Promotions.id == promotion_id)
        )
        return self.session.scalars(stmt).first()

    def _require_promotion(self, partner_id: str, promotion_id: str) -> Promotions:
        promo: Promotions | None = self._get_promotion(partner_id, promotion_id)
        if promo is None:
            raise PromotionNotFoundError(
                f"Promotion '{promotion_id}' not found for partner '{partner_id}'"
            )
        return promo

    @staticmethod
    def _to_dict(p: Promotions) -> PromotionDict:
        return PromotionDict(
            id=p.id,
            partnerId=p.partner_id,
            title=p.title,
            limit=p.usage_limit,
            description=p.description,
            validUntil=p.valid_until,
            isActive=bool(p.is_active),
            createdAt=p.created_at,
            updatedAt=p.updated_at,
        )
