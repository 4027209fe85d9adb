"""Member resolution: QR payload or CPF to a card holder."""

from datetime import date

import structlog
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from db.enums import CardStatus, MemberType
from db.models import Members
from unipass.services._helpers import clean_cpf, format_cpf, mask_cpf, parse_date
from unipass.services._types import MemberDict
from unipass.services.retry import retry_call
from unipass.services.schemas import Member

logger = structlog.get_logger(__name__)

_STORE_ERRORS: tuple[type[Exception], ...] = (OperationalError,)


def to_member(row: Members) -> Member:
    try:
        member_type: MemberType = MemberType(row.member_type)
    except ValueError:
        member_type = MemberType.STUDENT
    return Member(
        id=row.id,
        name=row.full_name,
        member_type=member_type,
        valid_until=parse_date(row.valid_until),
        is_active=bool(row.is_active),
        cpf=row.cpf,
        school_id=row.school_id,
        parent_id=row.parent_id,
    )


def card_status(member: Member, today: date) -> CardStatus:
    if not member.is_active:
        return CardStatus.INACTIVE
    if member.valid_until is not None and member.valid_until < today:
        return CardStatus.EXPIRED
    return CardStatus.ACTIVE


class MemberService:
    """Read-only lookups over enrolled members and dependents."""

    def __init__(self, session: Session) -> None:
        self.session: Session = session

    def get_row(self, member_id: str) -> Members | None:
        return retry_call(
            "members",
            "get_by_id",
            lambda: self.session.get(Members, member_id),
            retry_on=_STORE_ERRORS,
        )

    def get_by_id(self, member_id: str) -> Member | None:
        member_id = (member_id or "").strip()
        if not member_id:
            return None
        row: Members | None = self.get_row(member_id)
        return to_member(row) if row else None

    def get_by_cpf(self, cpf: str) -> Member | None:
        """Match on digits only, whatever mask either side uses."""
        digits: str = clean_cpf(cpf)
        if len(digits) != 11:
            return None

        def _fetch() -> Members | None:
            # stored values may be masked or raw; narrow by the last digits, compare cleaned
            candidates = self.session.scalars(
                select(Members).where(Members.cpf.like(f"%{digits[-2:]}")).order_by(Members.id)
            ).all()
            return next((m for m in candidates if clean_cpf(m.cpf) == digits), None)

        row: Members | None = retry_call("members", "get_by_cpf", _fetch, retry_on=_STORE_ERRORS)
        if row is None:
            logger.info("CPF lookup missed", cpf=mask_cpf(digits))
            return None
        return to_member(row)

    @staticmethod
    def to_dict(row: Members, mask: bool = True) -> MemberDict:
        return MemberDict(
            id=row.id,
            fullName=row.full_name,
            cpf=mask_cpf(row.cpf) if mask else format_cpf(row.cpf),
            memberType=row.member_type,
            schoolId=row.school_id,
            registrationNumber=row.registration_number,
            course=row.course,
            validUntil=row.valid_until,
            isActive=bool(row.is_active),
            isDependent=row.parent_id is not None,
            parentId=row.parent_id,
        )
