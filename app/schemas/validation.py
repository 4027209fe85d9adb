"""Validation and redemption request/response schemas."""

from datetime import date, datetime

from pydantic import Field, model_validator

from app.schemas.common import CamelModel, OperatorFields
from unipass.services._helpers import mask_cpf
from unipass.services.schemas import Member, OfferStatus, ValidationResult


class ValidateRequest(OperatorFields):
    code: str | None = Field(None, description="QR payload (member id)")
    cpf: str | None = None

    @model_validator(mode="after")
    def _one_lookup(self) -> "ValidateRequest":
        if bool(self.code) == bool(self.cpf):
            raise ValueError("Provide exactly one of 'code' or 'cpf'")
        return self


class RedemptionRequest(OperatorFields):
    member_id: str = Field(..., min_length=1)
    offer_id: str = Field(..., min_length=1)


class OfferStatusResponse(CamelModel):
    offer_id: str
    title: str
    limit: str
    usage_count: int
    last_used_at: datetime | None
    available: bool
    reason: str
    available_from: datetime | None
    is_standard: bool

    @classmethod
    def from_status(cls, s: OfferStatus) -> "OfferStatusResponse":
        return cls(
            offer_id=s.offer_id,
            title=s.title,
            limit=s.limit.value,
            usage_count=s.usage_count,
            last_used_at=s.last_used_at,
            available=s.available,
            reason=s.reason.value,
            available_from=s.available_from,
            is_standard=s.is_standard,
        )


class MemberResponse(CamelModel):
    id: str
    full_name: str
    cpf: str
    member_type: str
    valid_until: date | None
    is_active: bool
    is_dependent: bool

    @classmethod
    def from_member(cls, m: Member) -> "MemberResponse":
        return cls(
            id=m.id,
            full_name=m.name,
            cpf=mask_cpf(m.cpf),
            member_type=m.member_type.value,
            valid_until=m.valid_until,
            is_active=m.is_active,
            is_dependent=m.parent_id is not None,
        )


class ValidationResponse(CamelModel):
    valid: bool
    method: str
    message: str
    member: MemberResponse | None = None
    card_status: str | None = None
    offers: list[OfferStatusResponse] = []

    @classmethod
    def from_result(cls, r: ValidationResult) -> "ValidationResponse":
        return cls(
            valid=r.valid,
            method=r.method.value,
            message=r.message,
            member=MemberResponse.from_member(r.member) if r.member else None,
            card_status=r.card_status.value if r.card_status else None,
            offers=[OfferStatusResponse.from_status(s) for s in r.offers],
        )
