"""Counter-side validation: resolve a card, show what it can redeem, register usage."""

from collections.abc import Callable
from datetime import UTC, datetime

import structlog
from sqlalchemy.orm import Session

from config import get_settings
from db.enums import ActionType, CardStatus, ValidationMethod
from db.models import ValidationLogs
from unipass.services._helpers import new_id
from unipass.services.catalog_service import CatalogService
from unipass.services.eligibility import evaluate
from unipass.services.errors import MemberNotFoundError, OfferNotFoundError, OfferUnavailableError
from unipass.services.event_log import EventLogService
from unipass.services.member_service import MemberService, card_status
from unipass.services.schemas import (
    Member,
    Offer,
    OfferStatus,
    Operator,
    Partner,
    ValidationResult,
)

logger = structlog.get_logger(__name__)

NOT_FOUND_MESSAGES: dict[ValidationMethod, str] = {
    ValidationMethod.QR: "QR Code inválido ou estudante inexistente.",
    ValidationMethod.CPF: "CPF não encontrado ou estudante inexistente.",
}


def local_now() -> datetime:
    return datetime.now(get_settings().tz)


class ValidationSession:
    """One operator's view of a partner counter.

    ``clock`` returns the current wall-clock instant; month boundaries for
    MONTHLY offers follow its zone.
    """

    def __init__(self, session: Session, clock: Callable[[], datetime] | None = None) -> None:
        self.session: Session = session
        self.clock: Callable[[], datetime] = clock or local_now
        self.members: MemberService = MemberService(session)
        self.catalog: CatalogService = CatalogService(session)
        self.events: EventLogService = EventLogService(session)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def validate_by_code(self, partner_id: str, code: str, operator: Operator) -> ValidationResult:
        member: Member | None = self.members.get_by_id(code)
        return self._validate(partner_id, member, ValidationMethod.QR, operator)

    def validate_by_cpf(self, partner_id: str, cpf: str, operator: Operator) -> ValidationResult:
        member: Member | None = self.members.get_by_cpf(cpf)
        return self._validate(partner_id, member, ValidationMethod.CPF, operator)

    def _validate(
        self,
        partner_id: str,
        member: Member | None,
        method: ValidationMethod,
        operator: Operator,
    ) -> ValidationResult:
        now: datetime = self.clock()
        partner, offers = self.catalog.active_offers(partner_id, now.date())

        if member is None:
            message: str = NOT_FOUND_MESSAGES[method]
            self._log_validation(partner_id, None, ActionType.VALIDATION_FAILED, method, operator, message, now)
            logger.info("Validation failed", partner_id=partner_id, method=method.value)
            return ValidationResult(valid=False, method=method, message=message)

        message = f"Validação via {method.value}: {member.name}"
        self._log_validation(partner_id, member.id, ActionType.VALIDATION_SUCCESS, method, operator, message, now)
        statuses: list[OfferStatus] = self._evaluate(member, partner, offers, now)
        status: CardStatus = card_status(member, now.date())
        logger.info(
            "Validation succeeded",
            partner_id=partner_id,
            member_id=member.id,
            method=method.value,
            card_status=status.value,
            available=sum(1 for s in statuses if s.available),
        )
        return ValidationResult(
            valid=True,
            method=method,
            message=message,
            member=member,
            card_status=status,
            offers=statuses,
        )

    # ------------------------------------------------------------------
    # Eligibility
    # ------------------------------------------------------------------

    def evaluate_member(self, partner_id: str, member_id: str) -> list[OfferStatus]:
        now: datetime = self.clock()
        member: Member = self._require_member(member_id)
        partner, offers = self.catalog.active_offers(partner_id, now.date())
        return self._evaluate(member, partner, offers, now)

    def register_redemption(
        self,
        partner_id: str,
        member_id: str,
        offer_id: str,
        operator: Operator,
    ) -> list[OfferStatus]:
        """Append a redemption after confirmation, then return the refreshed statuses.

        Eligibility is re-checked against the stored log first; a blocked
        offer raises OfferUnavailableError and nothing is written.
        """
        now: datetime = self.clock()
        member: Member = self._require_member(member_id)
        partner, offers = self.catalog.active_offers(partner_id, now.date())

        offer: Offer | None = next((o for o in offers if o.id == offer_id), None)
        if offer is None:
            raise OfferNotFoundError(f"Offer '{offer_id}' is not active for partner '{partner_id}'")

        current: list[OfferStatus] = self._evaluate(member, partner, [offer], now)
        if not current[0].available:
            raise OfferUnavailableError(
                f"Offer '{offer_id}' is not available: {current[0].reason.value}",
                reason=current[0].reason.value,
            )

        at: datetime = now.astimezone(UTC) if now.tzinfo is not None else now
        self.events.append(member.id, partner_id, offer, operator, at=at, local_at=now)
        return self._evaluate(member, partner, offers, now)

    def _evaluate(
        self, member: Member, partner: Partner, offers: list[Offer], now: datetime
    ) -> list[OfferStatus]:
        return evaluate(member, partner, offers, self.events.events_for_member(member.id, partner.id), now)

    def _require_member(self, member_id: str) -> Member:
        member: Member | None = self.members.get_by_id(member_id)
        if member is None:
            raise MemberNotFoundError(f"Member '{member_id}' not found")
        return member

    def _log_validation(
        self,
        partner_id: str,
        member_id: str | None,
        action: ActionType,
        method: ValidationMethod,
        operator: Operator,
        details: str,
        now: datetime,
    ) -> None:
        self.session.add(
            ValidationLogs(
                id=new_id(),
                created_at=(now.astimezone(UTC) if now.tzinfo is not None else now).isoformat(),
                partner_id=partner_id,
                member_id=member_id,
                action=action.value,
                method=method.value,
                actor_id=operator.id,
                actor_name=operator.name,
                actor_role=operator.role,
                details=details,
            )
        )
        self.session.flush()
