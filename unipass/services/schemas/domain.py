"""Plain value types the eligibility engine works on.

ORM rows are converted into these at the service boundary so the engine
never touches a session.
"""

from dataclasses import dataclass
from datetime import date, datetime

from db.enums import MemberType, UsageLimit

# Reserved offer id for the partner's fixed benefit.
STANDARD_BENEFIT_ID = "STANDARD_BENEFIT"


@dataclass(frozen=True, slots=True)
class Member:
    id: str
    name: str
    member_type: MemberType = MemberType.STUDENT
    valid_until: date | None = None
    is_active: bool = True
    cpf: str = ""
    school_id: str | None = None
    parent_id: str | None = None


@dataclass(frozen=True, slots=True)
class Partner:
    id: str
    name: str = ""
    discount: str | None = None  # standard benefit text

    @property
    def has_standard_benefit(self) -> bool:
        return bool((self.discount or "").strip())


@dataclass(frozen=True, slots=True)
class Offer:
    id: str
    title: str
    limit: UsageLimit = UsageLimit.UNLIMITED
    description: str | None = None
    valid_until: date | None = None
    is_active: bool = True
    is_standard: bool = False


@dataclass(frozen=True, slots=True)
class RedemptionEvent:
    id: str
    timestamp: datetime
    partner_id: str
    offer_id: str
    member_id: str
    actor_id: str = ""
    actor_name: str = ""
    actor_role: str = "STORE"
    offer_title: str | None = None


@dataclass(frozen=True, slots=True)
class Operator:
    """Who is at the counter. Audit only."""

    id: str = "sys"
    name: str = "Loja"
    role: str = "STORE"
