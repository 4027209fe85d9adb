"""FastAPI dependencies: DB sessions, API key and clock."""

from collections.abc import Callable
from datetime import datetime

from fastapi import Header, HTTPException

from config import get_settings
from db.connection import get_db as get_db  # noqa: F401  re-exported for routes
from unipass.services.validation_session import local_now


def get_api_key(x_api_key: str = Header(default="")) -> str:
    """Validate API key on mutation endpoints."""
    expected: str | None = get_settings().api_key
    if not expected:
        return ""  # auth disabled when no key configured
    if x_api_key != expected:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
    return x_api_key


def get_clock() -> Callable[[], datetime]:
    """Overridden in tests to pin ``now``."""
    return local_now
