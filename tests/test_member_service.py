"""Tests for unipass.services.member_service."""

from datetime import date

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from conftest import make_member
from db.enums import CardStatus, MemberType
from unipass.services.errors import ServiceError
from unipass.services.member_service import MemberService, card_status
from unipass.services.schemas import Member


class TestGetById:
    def test_found(self, session: Session) -> None:
        make_member(session, "m1", full_name="Ana Souza", member_type="COLABORADOR")

        member: Member | None = MemberService(session).get_by_id("m1")

        assert member is not None
        assert member.name == "Ana Souza"
        assert member.member_type == MemberType.STAFF
        assert member.valid_until == date(2030, 12, 31)

    def test_strips_whitespace(self, session: Session) -> None:
        make_member(session, "m1")
        assert MemberService(session).get_by_id("  m1\n") is not None

    @pytest.mark.parametrize("code", ["", "   ", "nope"])
    def test_missing(self, session: Session, code: str) -> None:
        make_member(session, "m1")
        assert MemberService(session).get_by_id(code) is None

    def test_unknown_type_falls_back_to_student(self, session: Session) -> None:
        make_member(session, "m1", member_type="VISITANTE")
        member: Member | None = MemberService(session).get_by_id("m1")
        assert member is not None
        assert member.member_type == MemberType.STUDENT

    def test_dependent_keeps_parent(self, session: Session) -> None:
        make_member(session, "parent")
        make_member(session, "kid", cpf="987.654.321-00", parent_id="parent")
        member: Member | None = MemberService(session).get_by_id("kid")
        assert member is not None
        assert member.parent_id == "parent"


class TestGetByCpf:
    @pytest.mark.parametrize("query", ["123.456.789-09", "12345678909", " 123 456 789 09 "])
    def test_matches_any_mask(self, session: Session, query: str) -> None:
        make_member(session, "m1", cpf="123.456.789-09")
        member: Member | None = MemberService(session).get_by_cpf(query)
        assert member is not None
        assert member.id == "m1"

    def test_matches_raw_stored_value(self, session: Session) -> None:
        make_member(session, "m1", cpf="12345678909")
        member: Member | None = MemberService(session).get_by_cpf("123.456.789-09")
        assert member is not None

    def test_same_suffix_different_cpf(self, session: Session) -> None:
        make_member(session, "m1", cpf="111.111.111-09")
        make_member(session, "m2", cpf="123.456.789-09")
        member: Member | None = MemberService(session).get_by_cpf("12345678909")
        assert member is not None
        assert member.id == "m2"

    @pytest.mark.parametrize("query", ["", "123", "123.456.789-0", "999.999.999-99"])
    def test_miss(self, session: Session, query: str) -> None:
        make_member(session, "m1")
        assert MemberService(session).get_by_cpf(query) is None


class TestCardStatus:
    def test_active(self) -> None:
        m: Member = Member(id="m", name="x", valid_until=date(2024, 12, 31))
        assert card_status(m, date(2024, 12, 31)) == CardStatus.ACTIVE

    def test_expired(self) -> None:
        m: Member = Member(id="m", name="x", valid_until=date(2024, 12, 31))
        assert card_status(m, date(2025, 1, 1)) == CardStatus.EXPIRED

    def test_inactive_wins(self) -> None:
        m: Member = Member(id="m", name="x", valid_until=date(2020, 1, 1), is_active=False)
        assert card_status(m, date(2025, 1, 1)) == CardStatus.INACTIVE

    def test_no_expiry(self) -> None:
        assert card_status(Member(id="m", name="x"), date(2099, 1, 1)) == CardStatus.ACTIVE


class TestToDict:
    def test_masks_cpf_by_default(self, session: Session) -> None:
        row = make_member(session, "m1", parent_id=None)
        d = MemberService.to_dict(row)
        assert d["cpf"] == "***.***.789-09"
        assert d["isDependent"] is False

    def test_unmasked(self, session: Session) -> None:
        row = make_member(session, "m1")
        assert MemberService.to_dict(row, mask=False)["cpf"] == "123.456.789-09"


class TestStoreFailures:
    def test_operational_error_exhausts_into_service_error(
        self, session: Session, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("RETRY_DELAY", "0")
        from config import get_settings

        get_settings.cache_clear()
        calls: list[str] = []

        def _boom(*args: object, **kwargs: object) -> None:
            calls.append("get")
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(session, "get", _boom)
        try:
            with pytest.raises(ServiceError) as exc:
                MemberService(session).get_by_id("m1")
        finally:
            get_settings.cache_clear()

        assert exc.value.service_name == "members"
        assert len(calls) == 3
