"""Tests for unipass.cli.main."""

from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
import typer
from sqlalchemy.orm import Session
from typer.testing import CliRunner

from conftest import make_member, make_partner
from db.enums import UsageLimit
from db.models import Promotions
from unipass.cli.main import app, parse_instant

runner: CliRunner = CliRunner()


@pytest.fixture()
def cli_session(session: Session, monkeypatch: pytest.MonkeyPatch) -> Session:
    """Point the CLI's get_session at the test session."""

    @contextmanager
    def _get_session() -> Generator[Session, None, None]:
        yield session

    monkeypatch.setattr("db.connection.get_session", _get_session)
    make_member(session, "m1")
    make_partner(session, "p1", promotions=[("once", UsageLimit.ONCE)])
    return session


class TestParseInstant:
    def test_naive_gets_configured_zone(self) -> None:
        parsed: datetime = parse_instant("2024-01-31T23:59:59")
        assert parsed.tzinfo == ZoneInfo("America/Sao_Paulo")
        assert parsed.hour == 23

    def test_aware_kept(self) -> None:
        assert parse_instant("2024-01-31T23:59:59+00:00").utcoffset().total_seconds() == 0

    def test_missing_is_now(self) -> None:
        assert parse_instant(None).tzinfo is not None

    def test_garbage(self) -> None:
        with pytest.raises(typer.BadParameter):
            parse_instant("yesterday")


class TestCommands:
    def test_eligibility(self, cli_session: Session) -> None:
        result = runner.invoke(app, ["eligibility", "m1", "p1", "--at", "2024-01-25T12:00:00"])
        assert result.exit_code == 0, result.output
        assert "Promo once" in result.output

    def test_eligibility_unknown_member(self, cli_session: Session) -> None:
        result = runner.invoke(app, ["eligibility", "ghost", "p1"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_history_empty(self, cli_session: Session) -> None:
        result = runner.invoke(app, ["history", "p1"])
        assert result.exit_code == 0
        assert "No redemptions registered" in result.output

    def test_eligibility_bad_catalog(self, cli_session: Session) -> None:
        promo: Promotions | None = cli_session.get(Promotions, ("p1", "once"))
        assert promo is not None
        promo.usage_limit = "WEEKLY"
        cli_session.flush()

        result = runner.invoke(app, ["eligibility", "m1", "p1"])

        assert result.exit_code == 1
        assert "Offer configuration error" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)
