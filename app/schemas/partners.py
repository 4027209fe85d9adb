"""Partner offer catalog request/response schemas."""

from datetime import date

from pydantic import Field, field_validator

from app.schemas.common import CamelModel
from db.enums import UsageLimit
from unipass.services.schemas import STANDARD_BENEFIT_ID


class PromotionCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=128)
    limit: UsageLimit = UsageLimit.UNLIMITED
    description: str | None = Field(None, max_length=512)
    valid_until: date | None = Field(None, description="YYYY-MM-DD")
    id: str | None = Field(None, min_length=1, max_length=64)

    @field_validator("id")
    @classmethod
    def _not_reserved(cls, v: str | None) -> str | None:
        if v == STANDARD_BENEFIT_ID:
            raise ValueError(f"'{STANDARD_BENEFIT_ID}' is reserved")
        return v


class PromotionUpdate(CamelModel):
    title: str | None = Field(None, min_length=1, max_length=128)
    limit: UsageLimit | None = None
    description: str | None = Field(None, max_length=512)
    valid_until: date | None = Field(None, description="YYYY-MM-DD; null clears it")
    is_active: bool | None = None


class PromotionResponse(CamelModel):
    id: str
    partner_id: str
    title: str
    limit: str
    description: str | None
    valid_until: str | None
    is_active: bool
    created_at: str
    updated_at: str


class HistoryEntryResponse(CamelModel):
    id: str
    timestamp: str
    partner_id: str
    offer_id: str
    offer_title: str | None
    member_id: str
    actor_id: str
    actor_name: str
    actor_role: str


class OfferUsageResponse(CamelModel):
    offer_id: str
    offer_title: str | None
    redemptions: int
    unique_members: int


class UsageSummaryResponse(CamelModel):
    partner_id: str
    total_redemptions: int
    unique_members: int
    offers: list[OfferUsageResponse]
