"""Tests for unipass.services._helpers."""

from datetime import UTC, date, datetime

import pytest

from unipass.services._helpers import (
    clean_cpf,
    format_cpf,
    mask_cpf,
    new_id,
    now_iso,
    parse_date,
    parse_ts,
)


def test_new_id_uniqueness() -> None:
    ids: set[str] = {new_id() for _ in range(100)}
    assert len(ids) == 100


def test_now_iso_format() -> None:
    ts: str = now_iso()
    assert "T" in ts
    assert ts.endswith("+00:00")


def test_parse_ts_accepts_z_suffix() -> None:
    assert parse_ts("2024-01-31T23:59:59Z") == datetime(2024, 1, 31, 23, 59, 59, tzinfo=UTC)


def test_parse_ts_keeps_offset() -> None:
    parsed: datetime = parse_ts("2024-01-31T20:00:00-03:00")
    assert parsed.astimezone(UTC) == datetime(2024, 1, 31, 23, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2024-12-31", date(2024, 12, 31)),
        ("2024-12-31T10:00:00+00:00", date(2024, 12, 31)),
        ("2024-12-31T10:00:00Z", date(2024, 12, 31)),
        (None, None),
        ("", None),
    ],
)
def test_parse_date(raw: str | None, expected: date | None) -> None:
    assert parse_date(raw) == expected


class TestCpf:
    def test_clean(self) -> None:
        assert clean_cpf("123.456.789-09") == "12345678909"
        assert clean_cpf(" 123 456 789 09 ") == "12345678909"
        assert clean_cpf(None) == ""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("123", "123"),
            ("1234", "123.4"),
            ("1234567", "123.456.7"),
            ("12345678909", "123.456.789-09"),
            ("123456789099999", "123.456.789-09"),
        ],
    )
    def test_format_progressive(self, raw: str, expected: str) -> None:
        assert format_cpf(raw) == expected

    def test_mask(self) -> None:
        assert mask_cpf("123.456.789-09") == "***.***.789-09"
        assert mask_cpf("12345678909") == "***.***.789-09"

    def test_mask_malformed_returned_as_is(self) -> None:
        assert mask_cpf("12-34") == "12-34"
        assert mask_cpf(None) == ""
