"""Enumeration types for UniPass."""

from enum import Enum


class UsageLimit(str, Enum):
    """How often one member may redeem an offer."""

    UNLIMITED = "UNLIMITED"
    MONTHLY = "MONTHLY"  # once per calendar month
    ONCE = "ONCE"


class BlockReason(str, Enum):
    """Why an offer is currently not redeemable."""

    NONE = "NONE"
    ALREADY_USED = "ALREADY_USED"
    USED_THIS_MONTH = "USED_THIS_MONTH"


class MemberType(str, Enum):
    """Category tag printed on the card."""

    STUDENT = "ALUNO"
    STAFF = "COLABORADOR"
    MANAGER = "GESTOR"
    PARTNER = "SÓCIO"


class UserRole(str, Enum):
    """Operator roles."""

    STUDENT = "STUDENT"
    STORE = "STORE"  # validation only
    STORE_ADMIN = "STORE_ADMIN"
    ADMIN = "ADMIN"
    SCHOOL_ADMIN = "SCHOOL_ADMIN"


class ValidationMethod(str, Enum):
    """How the member was looked up at the counter."""

    QR = "QR"
    CPF = "CPF"


class ActionType(str, Enum):
    """Audit action recorded for a validation attempt."""

    VALIDATION_SUCCESS = "VALIDATION_SUCCESS"
    VALIDATION_FAILED = "VALIDATION_FAILED"


class CardStatus(str, Enum):
    """State of a member's card at validation time."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    EXPIRED = "EXPIRED"
