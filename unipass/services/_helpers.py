"""Shared utilities for the service layer."""

import re
from datetime import UTC, date, datetime
from uuid import uuid4

_NON_DIGITS = re.compile(r"\D")


def new_id() -> str:
    return str(uuid4())


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def parse_ts(raw: str) -> datetime:
    """Parse a stored ISO timestamp. A trailing ``Z`` is accepted."""
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    return datetime.fromisoformat(raw)


def parse_date(raw: str | None) -> date | None:
    """Parse a stored ISO date; full timestamps are truncated to their date."""
    if not raw:
        return None
    if "T" in raw:
        return parse_ts(raw).date()
    return date.fromisoformat(raw)


# -- CPF -------------------------------------------------------------------


def clean_cpf(value: str | None) -> str:
    """Digits only."""
    return _NON_DIGITS.sub("", value or "")


def format_cpf(value: str) -> str:
    """Progressively format digits as 000.000.000-00."""
    raw: str = clean_cpf(value)
    if len(raw) > 9:
        formatted = f"{raw[:3]}.{raw[3:6]}.{raw[6:9]}-{raw[9:11]}"
    elif len(raw) > 6:
        formatted = f"{raw[:3]}.{raw[3:6]}.{raw[6:9]}"
    elif len(raw) > 3:
        formatted = f"{raw[:3]}.{raw[3:6]}"
    else:
        formatted = raw
    return formatted[:14]


def mask_cpf(value: str | None) -> str:
    """Hide the first six digits: ***.***.888-99. Malformed input is returned as-is."""
    if not value:
        return ""
    raw: str = clean_cpf(value)
    if len(raw) != 11:
        return value
    return f"***.***.{raw[6:9]}-{raw[9:11]}"
