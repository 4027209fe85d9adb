"""Eligibility engine: which of a partner's offers a member may redeem right now.

Pure functions only. The caller supplies the clock (``now``), the offer set
(already filtered to active offers) and the redemption log; nothing here
reads the wall clock or touches storage.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import assert_never

from db.enums import BlockReason, UsageLimit
from unipass.services.errors import InvalidOfferError
from unipass.services.event_index import EventIndex, Usage
from unipass.services.schemas import (
    STANDARD_BENEFIT_ID,
    Member,
    Offer,
    OfferStatus,
    Partner,
    RedemptionEvent,
)


def standard_benefit(partner: Partner) -> Offer | None:
    """The partner's fixed benefit as an offer, or None when it has no discount text."""
    if not partner.has_standard_benefit:
        return None
    return Offer(
        id=STANDARD_BENEFIT_ID,
        title=(partner.discount or "").strip(),
        limit=UsageLimit.UNLIMITED,
        is_standard=True,
    )


def build_offers(partner: Partner, promotions: Sequence[Offer]) -> list[Offer]:
    """Standard benefit first, then promotions in catalog order."""
    offers: list[Offer] = []
    benefit: Offer | None = standard_benefit(partner)
    if benefit is not None:
        offers.append(benefit)
    for promo in promotions:
        if promo.id == STANDARD_BENEFIT_ID:
            raise InvalidOfferError(
                f"Promotion id '{STANDARD_BENEFIT_ID}' is reserved for the standard benefit",
                offer_id=promo.id,
            )
        offers.append(promo)
    return offers


def ensure_unique_ids(offers: Sequence[Offer]) -> None:
    seen: set[str] = set()
    for offer in offers:
        if offer.id in seen:
            raise InvalidOfferError(f"Duplicate offer id '{offer.id}'", offer_id=offer.id)
        seen.add(offer.id)


def same_calendar_month(used_at: datetime, now: datetime) -> bool:
    """Compare on ``now``'s wall clock.

    Aware timestamps are converted into ``now``'s zone; naive ones are taken
    to already be wall-clock time in that zone.
    """
    if now.tzinfo is None:
        local: datetime = used_at.replace(tzinfo=None)
    elif used_at.tzinfo is None:
        local = used_at.replace(tzinfo=now.tzinfo)
    else:
        local = used_at.astimezone(now.tzinfo)
    return (local.year, local.month) == (now.year, now.month)


def next_month_start(now: datetime) -> datetime:
    """Midnight of the first day of the month after ``now``, same tzinfo."""
    year, month = (now.year + 1, 1) if now.month == 12 else (now.year, now.month + 1)
    return now.replace(year=year, month=month, day=1, hour=0, minute=0, second=0, microsecond=0)


def evaluate_offer(offer: Offer, usage: Usage, now: datetime) -> OfferStatus:
    available: bool = True
    reason: BlockReason = BlockReason.NONE
    available_from: datetime | None = None

    limit: UsageLimit = UsageLimit.UNLIMITED if offer.is_standard else offer.limit
    match limit:
        case UsageLimit.UNLIMITED:
            pass
        case UsageLimit.ONCE:
            if usage.count > 0:
                available, reason = False, BlockReason.ALREADY_USED
        case UsageLimit.MONTHLY:
            if usage.last_used_at is not None and same_calendar_month(usage.last_used_at, now):
                available, reason = False, BlockReason.USED_THIS_MONTH
                available_from = next_month_start(now)
        case _:
            assert_never(limit)

    return OfferStatus(
        offer_id=offer.id,
        title=offer.title,
        limit=limit,
        usage_count=usage.count,
        last_used_at=usage.last_used_at,
        available=available,
        reason=reason,
        available_from=available_from,
        is_standard=offer.is_standard,
    )


def evaluate(
    member: Member,
    partner: Partner,
    offers: Sequence[Offer],
    events: Iterable[RedemptionEvent] | EventIndex,
    now: datetime,
) -> list[OfferStatus]:
    """One status per offer, in input order.

    ``events`` may be the whole log; only entries for this member and partner
    count. Raises InvalidOfferError on duplicate offer ids, before producing
    anything.
    """
    ensure_unique_ids(offers)
    if not offers:
        return []
    index: EventIndex = events if isinstance(events, EventIndex) else EventIndex(events)
    return [evaluate_offer(o, index.usage(member.id, partner.id, o.id), now) for o in offers]
