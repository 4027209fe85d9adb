"""Redemption event log backed by the database.

Events are append-only. Reads come back in (timestamp, insertion) order so
callers can hand them straight to the eligibility engine.
"""

from datetime import datetime

import structlog
from sqlalchemy import Select, and_, func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from db.enums import BlockReason, UsageLimit
from db.models import RedemptionEvents
from unipass.services._helpers import new_id, parse_ts
from unipass.services._types import HistoryEntryDict, OfferUsageDict, UsageSummaryDict
from unipass.services.errors import OfferUnavailableError
from unipass.services.event_index import visible_history
from unipass.services.retry import retry_call
from unipass.services.schemas import Offer, Operator, RedemptionEvent

logger = structlog.get_logger(__name__)

_STORE_ERRORS: tuple[type[Exception], ...] = (OperationalError,)


def limit_key(member_id: str, partner_id: str, offer: Offer, at: datetime) -> str | None:
    """Storage-level uniqueness token for capped offers; None when uncapped.

    ``at`` must be on the same wall clock the engine evaluates months with.
    """
    if offer.is_standard:
        return None
    match offer.limit:
        case UsageLimit.ONCE:
            return f"{member_id}|{partner_id}|{offer.id}"
        case UsageLimit.MONTHLY:
            return f"{member_id}|{partner_id}|{offer.id}|{at:%Y-%m}"
        case _:
            return None


def to_event(row: RedemptionEvents) -> RedemptionEvent:
    return RedemptionEvent(
        id=row.id,
        timestamp=parse_ts(row.created_at),
        partner_id=row.partner_id,
        offer_id=row.offer_id,
        member_id=row.member_id,
        actor_id=row.actor_id,
        actor_name=row.actor_name,
        actor_role=row.actor_role,
        offer_title=row.offer_title,
    )


def to_history_entry(e: RedemptionEvent) -> HistoryEntryDict:
    return HistoryEntryDict(
        id=e.id,
        timestamp=e.timestamp.isoformat(),
        partnerId=e.partner_id,
        offerId=e.offer_id,
        offerTitle=e.offer_title,
        memberId=e.member_id,
        actorId=e.actor_id,
        actorName=e.actor_name,
        actorRole=e.actor_role,
    )


class EventLogService:
    """Queries and appends against the redemption_events table."""

    def __init__(self, session: Session) -> None:
        self.session: Session = session

    def _fetch(self, operation: str, stmt: Select[tuple[RedemptionEvents]]) -> list[RedemptionEvent]:
        rows = retry_call(
            "event_log",
            operation,
            lambda: self.session.scalars(stmt).all(),
            retry_on=_STORE_ERRORS,
        )
        return [to_event(r) for r in rows]

    def events_for_member(self, member_id: str, partner_id: str) -> list[RedemptionEvent]:
        stmt: Select[tuple[RedemptionEvents]] = (
            select(RedemptionEvents)
            .where(
                and_(
                    RedemptionEvents.member_id == member_id,
                    RedemptionEvents.partner_id == partner_id,
                )
            )
            .order_by(RedemptionEvents.created_at, RedemptionEvents.seq)
        )
        return self._fetch("events_for_member", stmt)

    def events_for_partner(self, partner_id: str) -> list[RedemptionEvent]:
        stmt: Select[tuple[RedemptionEvents]] = (
            select(RedemptionEvents)
            .where(RedemptionEvents.partner_id == partner_id)
            .order_by(RedemptionEvents.created_at, RedemptionEvents.seq)
        )
        return self._fetch("events_for_partner", stmt)

    def append(
        self,
        member_id: str,
        partner_id: str,
        offer: Offer,
        operator: Operator,
        at: datetime,
        local_at: datetime | None = None,
    ) -> RedemptionEvent:
        """Insert one event. A second capped redemption in the same window raises OfferUnavailableError."""
        row: RedemptionEvents = RedemptionEvents(
            id=new_id(),
            created_at=at.isoformat(),
            partner_id=partner_id,
            offer_id=offer.id,
            offer_title=offer.title,
            member_id=member_id,
            actor_id=operator.id,
            actor_name=operator.name,
            actor_role=operator.role,
            limit_key=limit_key(member_id, partner_id, offer, local_at or at),
        )
        if row.limit_key is not None and self._limit_key_taken(row.limit_key):
            raise self._unavailable(member_id, partner_id, offer)
        try:
            self.session.add(row)
            self.session.flush()
        except IntegrityError as e:
            # concurrent confirmation won the race; the request transaction is void
            self.session.rollback()
            raise self._unavailable(member_id, partner_id, offer) from e

        logger.info(
            "Redemption registered",
            event_id=row.id,
            member_id=member_id,
            partner_id=partner_id,
            offer_id=offer.id,
            actor_id=operator.id,
        )
        return to_event(row)

    def _limit_key_taken(self, key: str) -> bool:
        stmt = select(RedemptionEvents.seq).where(RedemptionEvents.limit_key == key).limit(1)
        return self.session.scalar(stmt) is not None

    @staticmethod
    def _unavailable(member_id: str, partner_id: str, offer: Offer) -> OfferUnavailableError:
        logger.warning(
            "Duplicate capped redemption rejected",
            member_id=member_id,
            partner_id=partner_id,
            offer_id=offer.id,
        )
        reason: BlockReason = (
            BlockReason.ALREADY_USED if offer.limit == UsageLimit.ONCE else BlockReason.USED_THIS_MONTH
        )
        return OfferUnavailableError(
            f"Offer '{offer.id}' was already redeemed by this member", reason=reason.value
        )

    def history(
        self,
        partner_id: str,
        actor_id: str | None = None,
        role: str | None = None,
        limit: int = 100,
    ) -> list[HistoryEntryDict]:
        """Newest first. Store admins see the whole partner; others only their own."""
        if role is None:
            events = self.events_for_partner(partner_id)
            ordered: list[RedemptionEvent] = list(reversed(events))
        else:
            stmt: Select[tuple[RedemptionEvents]] = (
                select(RedemptionEvents)
                .where(
                    (RedemptionEvents.partner_id == partner_id)
                    | (RedemptionEvents.actor_id == (actor_id or ""))
                )
                .order_by(RedemptionEvents.created_at, RedemptionEvents.seq)
            )
            ordered = visible_history(self._fetch("history", stmt), partner_id, actor_id, role)
        return [to_history_entry(e) for e in ordered[:limit]]

    def usage_summary(self, partner_id: str) -> UsageSummaryDict:
        stmt = (
            select(
                RedemptionEvents.offer_id,
                func.max(RedemptionEvents.offer_title),
                func.count(RedemptionEvents.seq),
                func.count(func.distinct(RedemptionEvents.member_id)),
            )
            .where(RedemptionEvents.partner_id == partner_id)
            .group_by(RedemptionEvents.offer_id)
            .order_by(RedemptionEvents.offer_id)
        )
        rows = self.session.execute(stmt).all()
        members: int = (
            self.session.scalar(
                select(func.count(func.distinct(RedemptionEvents.member_id))).where(
                    RedemptionEvents.partner_id == partner_id
                )
            )
            or 0
        )
        offers: list[OfferUsageDict] = [
            OfferUsageDict(offerId=oid, offerTitle=title, redemptions=n, uniqueMembers=u)
            for oid, title, n, u in rows
        ]
        return UsageSummaryDict(
            partnerId=partner_id,
            totalRedemptions=sum(o["redemptions"] for o in offers),
            uniqueMembers=members,
            offers=offers,
        )
