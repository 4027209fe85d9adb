"""Shared dataclasses for unipass services."""

from unipass.services.schemas.domain import (
    STANDARD_BENEFIT_ID,
    Member,
    Offer,
    Operator,
    Partner,
    RedemptionEvent,
)
from unipass.services.schemas.results import OfferStatus, ValidationResult

__all__ = [
    # Domain
    "STANDARD_BENEFIT_ID",
    "Member",
    "Offer",
    "Operator",
    "Partner",
    "RedemptionEvent",
    # Results
    "OfferStatus",
    "ValidationResult",
]
