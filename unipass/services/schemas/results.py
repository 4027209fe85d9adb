"""Result dataclasses returned by service operations."""

from dataclasses import dataclass, field
from datetime import datetime

from db.enums import BlockReason, CardStatus, UsageLimit, ValidationMethod
from unipass.services.schemas.domain import Member


@dataclass(frozen=True, slots=True)
class OfferStatus:
    offer_id: str
    title: str
    limit: UsageLimit
    usage_count: int
    last_used_at: datetime | None
    available: bool
    reason: BlockReason = BlockReason.NONE
    available_from: datetime | None = None
    is_standard: bool = False


@dataclass
class ValidationResult:
    valid: bool
    method: ValidationMethod
    message: str
    member: Member | None = None
    card_status: CardStatus | None = None
    offers: list[OfferStatus] = field(default_factory=list)
