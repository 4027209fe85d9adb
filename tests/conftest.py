"""Shared fixtures: in-memory SQLite DB with all tables, plus seed helpers."""

from collections.abc import Callable, Generator
from datetime import UTC, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.enums import UsageLimit
from db.models import Base, Members, Partners, Promotions
from unipass.services._helpers import now_iso


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    eng: Engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session(engine: Engine) -> Generator[Session, None, None]:
    factory: sessionmaker[Session] = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    sess: Session = factory()
    yield sess
    sess.rollback()
    sess.close()


def fixed_clock(at: datetime) -> Callable[[], datetime]:
    return lambda: at


@pytest.fixture()
def now() -> datetime:
    return datetime(2024, 1, 25, 12, 0, tzinfo=UTC)


# ---------- seed helpers ----------


def make_member(session: Session, mid: str = "m1", **kwargs: object) -> Members:
    ts: str = now_iso()
    m: Members = Members(
        id=mid,
        school_id=kwargs.get("school_id", "s1"),
        full_name=kwargs.get("full_name", "Maria Silva"),
        cpf=kwargs.get("cpf", "123.456.789-09"),
        member_type=kwargs.get("member_type", "ALUNO"),
        valid_until=kwargs.get("valid_until", "2030-12-31"),
        is_active=kwargs.get("is_active", True),
        parent_id=kwargs.get("parent_id"),
        created_at=ts,
        updated_at=ts,
    )
    session.add(m)
    session.flush()
    return m


def make_partner(
    session: Session,
    pid: str = "p1",
    discount: str | None = "10% off",
    promotions: list[tuple[str, UsageLimit]] | None = None,
    **kwargs: object,
) -> Partners:
    ts: str = now_iso()
    p: Partners = Partners(
        id=pid,
        name=kwargs.get("name", "Café Central"),
        category=kwargs.get("category", "Alimentação"),
        discount=discount,
        is_active=True,
        created_at=ts,
        updated_at=ts,
    )
    session.add(p)
    for i, (promo_id, limit) in enumerate(promotions or []):
        session.add(
            Promotions(
                partner_id=pid,
                id=promo_id,
                title=f"Promo {promo_id}",
                usage_limit=limit.value,
                is_active=True,
                created_at=f"2024-01-01T00:00:0{i}+00:00",
                updated_at=ts,
            )
        )
    session.flush()
    return p
