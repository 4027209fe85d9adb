"""Retry-with-backoff for store calls."""

import time
from collections.abc import Callable
from typing import TypeVar

import structlog

from config import get_settings
from unipass.services.errors import ServiceError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def retry_operation(
    operation: Callable[[], T],
    retries: int | None = None,
    delay: float | None = None,
    backoff: float | None = None,
    retry_on: tuple[type[Exception], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``operation`` up to ``retries`` times, multiplying the pause by ``backoff``.

    Only exceptions in ``retry_on`` are retried; anything else propagates at
    once. Re-raises the last error when attempts are exhausted. Unset
    arguments fall back to RetrySettings.
    """
    settings = get_settings().retry
    attempts: int = retries if retries is not None else settings.attempts
    current_delay: float = delay if delay is not None else settings.delay
    factor: float = backoff if backoff is not None else settings.backoff

    last_error: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except retry_on as e:
            last_error = e
            logger.warning(
                "Operation failed, retrying",
                attempt=attempt,
                attempts=attempts,
                error=str(e),
            )
            if attempt < attempts:
                sleep(current_delay)
                current_delay *= factor

    assert last_error is not None
    raise last_error


def retry_call(
    service_name: str,
    operation_name: str,
    operation: Callable[[], T],
    **kwargs,
) -> T:
    """retry_operation, wrapping exhaustion into ServiceError."""
    retry_on: tuple[type[Exception], ...] = kwargs.get("retry_on", (Exception,))
    try:
        return retry_operation(operation, **kwargs)
    except retry_on as e:
        logger.error(
            "Operation exhausted retries",
            service=service_name,
            operation=operation_name,
            error=str(e),
        )
        raise ServiceError(service_name, operation_name, e) from e
