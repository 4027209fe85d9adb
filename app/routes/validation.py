"""Counter endpoints: card validation, eligibility and redemption."""

from collections.abc import Callable
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.dependencies import get_api_key, get_clock, get_db
from app.schemas.validation import (
    OfferStatusResponse,
    RedemptionRequest,
    ValidateRequest,
    ValidationResponse,
)
from unipass.services.errors import (
    InvalidOfferError,
    MemberNotFoundError,
    OfferNotFoundError,
    OfferUnavailableError,
    PartnerNotFoundError,
)
from unipass.services.schemas import Operator, ValidationResult
from unipass.services.validation_session import ValidationSession

router = APIRouter(prefix="/api", tags=["validation"])


def _operator(body: ValidateRequest | RedemptionRequest) -> Operator:
    return Operator(id=body.operator_id, name=body.operator_name, role=body.operator_role)


@router.post("/partners/{partner_id}/validate", response_model=ValidationResponse)
def validate_member(
    partner_id: str,
    body: ValidateRequest,
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ValidationResponse:
    svc = ValidationSession(db, clock=clock)
    try:
        if body.code:
            result: ValidationResult = svc.validate_by_code(partner_id, body.code, _operator(body))
        else:
            result = svc.validate_by_cpf(partner_id, body.cpf or "", _operator(body))
    except PartnerNotFoundError as e:
        raise HTTPException(404, detail=str(e))
    except InvalidOfferError as e:
        raise HTTPException(422, detail=f"Offer configuration error: {e}")
    return ValidationResponse.from_result(result)


@router.get(
    "/partners/{partner_id}/members/{member_id}/eligibility",
    response_model=list[OfferStatusResponse],
)
def member_eligibility(
    partner_id: str,
    member_id: str,
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> list[OfferStatusResponse]:
    svc = ValidationSession(db, clock=clock)
    try:
        statuses = svc.evaluate_member(partner_id, member_id)
    except (PartnerNotFoundError, MemberNotFoundError) as e:
        raise HTTPException(404, detail=str(e))
    except InvalidOfferError as e:
        raise HTTPException(422, detail=f"Offer configuration error: {e}")
    return [OfferStatusResponse.from_status(s) for s in statuses]


@router.post(
    "/partners/{partner_id}/redemptions",
    response_model=list[OfferStatusResponse],
    status_code=201,
)
def register_redemption(
    partner_id: str,
    body: RedemptionRequest,
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    _key: str = Depends(get_api_key),
) -> list[OfferStatusResponse]:
    svc = ValidationSession(db, clock=clock)
    try:
        statuses = svc.register_redemption(partner_id, body.member_id, body.offer_id, _operator(body))
    except (PartnerNotFoundError, MemberNotFoundError, OfferNotFoundError) as e:
        raise HTTPException(404, detail=str(e))
    except OfferUnavailableError as e:
        raise HTTPException(409, detail={"message": str(e), "reason": e.reason})
    except InvalidOfferError as e:
        raise HTTPException(422, detail=f"Offer configuration error: {e}")
    return [OfferStatusResponse.from_status(s) for s in statuses]
