"""Tests for unipass.services.event_log."""

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from db.enums import BlockReason, UsageLimit
from db.models import RedemptionEvents
from unipass.services.errors import OfferUnavailableError
from unipass.services.event_log import EventLogService, limit_key
from unipass.services.schemas import STANDARD_BENEFIT_ID, Offer, Operator, RedemptionEvent

T0: datetime = datetime(2024, 1, 10, 15, 0, tzinfo=UTC)

ONCE: Offer = Offer(id="once", title="Welcome", limit=UsageLimit.ONCE)
MONTHLY: Offer = Offer(id="monthly", title="Coffee", limit=UsageLimit.MONTHLY)
UNLIMITED: Offer = Offer(id="free", title="Bookmark")
STANDARD: Offer = Offer(id=STANDARD_BENEFIT_ID, title="10%", is_standard=True)

CASHIER: Operator = Operator(id="op1", name="Caixa 1", role="STORE")
MANAGER: Operator = Operator(id="op2", name="Gerente", role="STORE_ADMIN")


class TestLimitKey:
    def test_once_has_no_window(self) -> None:
        assert limit_key("m", "p", ONCE, T0) == "m|p|once"

    def test_monthly_window(self) -> None:
        assert limit_key("m", "p", MONTHLY, T0) == "m|p|monthly|2024-01"

    def test_monthly_window_uses_given_wall_clock(self) -> None:
        local: datetime = datetime(2024, 2, 1, 1, 0, tzinfo=UTC).astimezone(ZoneInfo("America/Sao_Paulo"))
        assert limit_key("m", "p", MONTHLY, local) == "m|p|monthly|2024-01"

    @pytest.mark.parametrize("offer", [UNLIMITED, STANDARD])
    def test_uncapped(self, offer: Offer) -> None:
        assert limit_key("m", "p", offer, T0) is None


class TestAppend:
    def test_roundtrip(self, session: Session) -> None:
        svc: EventLogService = EventLogService(session)

        event: RedemptionEvent = svc.append("m1", "p1", ONCE, CASHIER, at=T0)

        assert event.timestamp == T0
        assert event.offer_title == "Welcome"
        assert event.actor_name == "Caixa 1"
        assert svc.events_for_member("m1", "p1") == [event]

    def test_reads_in_timestamp_then_insertion_order(self, session: Session) -> None:
        svc: EventLogService = EventLogService(session)
        late = svc.append("m1", "p1", UNLIMITED, CASHIER, at=T0 + timedelta(hours=1))
        early = svc.append("m1", "p1", UNLIMITED, CASHIER, at=T0)
        tie = svc.append("m1", "p1", UNLIMITED, CASHIER, at=T0)
        svc.append("m2", "p1", UNLIMITED, CASHIER, at=T0)
        svc.append("m1", "p2", UNLIMITED, CASHIER, at=T0)

        assert [e.id for e in svc.events_for_member("m1", "p1")] == [early.id, tie.id, late.id]
        assert len(svc.events_for_partner("p1")) == 4

    def test_unlimited_appends_freely(self, session: Session) -> None:
        svc: EventLogService = EventLogService(session)
        for i in range(3):
            svc.append("m1", "p1", UNLIMITED, CASHIER, at=T0 + timedelta(minutes=i))
            svc.append("m1", "p1", STANDARD, CASHIER, at=T0 + timedelta(minutes=i))
        assert len(svc.events_for_member("m1", "p1")) == 6

    def test_second_once_rejected(self, session: Session) -> None:
        svc: EventLogService = EventLogService(session)
        svc.append("m1", "p1", ONCE, CASHIER, at=T0)

        with pytest.raises(OfferUnavailableError) as exc:
            svc.append("m1", "p1", ONCE, CASHIER, at=T0 + timedelta(days=90))

        assert exc.value.reason == BlockReason.ALREADY_USED.value
        assert len(svc.events_for_member("m1", "p1")) == 1

    def test_monthly_once_per_calendar_month(self, session: Session) -> None:
        svc: EventLogService = EventLogService(session)
        svc.append("m1", "p1", MONTHLY, CASHIER, at=T0)

        with pytest.raises(OfferUnavailableError) as exc:
            svc.append("m1", "p1", MONTHLY, CASHIER, at=T0 + timedelta(days=5))
        assert exc.value.reason == BlockReason.USED_THIS_MONTH.value

        svc.append("m1", "p1", MONTHLY, CASHIER, at=datetime(2024, 2, 1, 12, tzinfo=UTC))
        assert len(svc.events_for_member("m1", "p1")) == 2

    def test_other_member_not_affected(self, session: Session) -> None:
        svc: EventLogService = EventLogService(session)
        svc.append("m1", "p1", ONCE, CASHIER, at=T0)
        svc.append("m2", "p1", ONCE, CASHIER, at=T0)
        assert len(svc.events_for_partner("p1")) == 2

    def test_constraint_violation_reported_as_unavailable(
        self, session: Session, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        svc: EventLogService = EventLogService(session)
        svc.append("m1", "p1", ONCE, CASHIER, at=T0)
        session.commit()
        # simulate a concurrent writer that passed the pre-check
        monkeypatch.setattr(svc, "_limit_key_taken", lambda key: False)

        with pytest.raises(OfferUnavailableError):
            svc.append("m1", "p1", ONCE, CASHIER, at=T0 + timedelta(seconds=1))

        rows = session.scalars(select(RedemptionEvents)).all()
        assert len(rows) == 1


class TestHistory:
    @pytest.fixture()
    def svc(self, session: Session) -> EventLogService:
        svc: EventLogService = EventLogService(session)
        svc.append("m1", "p1", UNLIMITED, CASHIER, at=T0)
        svc.append("m2", "p1", UNLIMITED, MANAGER, at=T0 + timedelta(minutes=1))
        svc.append("m3", "p2", UNLIMITED, MANAGER, at=T0 + timedelta(minutes=2))
        svc.append("m4", "p2", UNLIMITED, CASHIER, at=T0 + timedelta(minutes=3))
        return svc

    def test_without_role_lists_partner_newest_first(self, svc: EventLogService) -> None:
        assert [e["memberId"] for e in svc.history("p1")] == ["m2", "m1"]

    def test_store_admin(self, svc: EventLogService) -> None:
        entries = svc.history("p1", actor_id="op2", role="STORE_ADMIN")
        assert [e["memberId"] for e in entries] == ["m3", "m2", "m1"]

    def test_operator_sees_own(self, svc: EventLogService) -> None:
        entries = svc.history("p1", actor_id="op1", role="STORE")
        assert [e["memberId"] for e in entries] == ["m4", "m1"]

    def test_operator_without_id(self, svc: EventLogService) -> None:
        assert svc.history("p1", role="STORE") == []

    def test_limit(self, svc: EventLogService) -> None:
        assert len(svc.history("p1", limit=1)) == 1

    def test_entry_shape(self, svc: EventLogService) -> None:
        entry = svc.history("p1", limit=1)[0]
        assert entry["timestamp"] == (T0 + timedelta(minutes=1)).isoformat()
        assert entry["actorRole"] == "STORE_ADMIN"
        assert entry["offerTitle"] == "Bookmark"


class TestUsageSummary:
    def test_counts(self, session: Session) -> None:
        svc: EventLogService = EventLogService(session)
        svc.append("m1", "p1", UNLIMITED, CASHIER, at=T0)
        svc.append("m1", "p1", UNLIMITED, CASHIER, at=T0 + timedelta(minutes=1))
        svc.append("m2", "p1", UNLIMITED, CASHIER, at=T0)
        svc.append("m2", "p1", ONCE, CASHIER, at=T0)
        svc.append("m9", "p2", ONCE, CASHIER, at=T0)

        summary = svc.usage_summary("p1")

        assert summary["totalRedemptions"] == 4
        assert summary["uniqueMembers"] == 2
        by_offer = {o["offerId"]: o for o in summary["offers"]}
        assert by_offer["free"]["redemptions"] == 3
        assert by_offer["free"]["uniqueMembers"] == 2
        assert by_offer["once"] == {"offerId": "once", "offerTitle": "Welcome", "redemptions": 1, "uniqueMembers": 1}

    def test_empty(self, session: Session) -> None:
        summary = EventLogService(session).usage_summary("p1")
        assert summary["totalRedemptions"] == 0
        assert summary["offers"] == []
