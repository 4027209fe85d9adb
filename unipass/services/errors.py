"""Shared exception hierarchy for unipass services."""

# ── Eligibility ───────────────────────────────────────────────────────────────


class EligibilityError(Exception):
    """Base exception for eligibility engine errors."""


class InvalidOfferError(EligibilityError):
    """Offer set violates identifier uniqueness. Data-integrity fault; do not retry."""

    def __init__(self, message: str, offer_id: str | None = None) -> None:
        super().__init__(message)
        self.offer_id = offer_id


# ── Validation session ────────────────────────────────────────────────────────


class ValidationSessionError(Exception):
    """Base exception for validation session errors."""


class MemberNotFoundError(ValidationSessionError):
    """Member could not be resolved."""


class OfferNotFoundError(ValidationSessionError):
    """Offer is not among the partner's active offers."""


class OfferUnavailableError(ValidationSessionError):
    """Offer is blocked for this member."""

    def __init__(self, message: str, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


# ── Catalog ───────────────────────────────────────────────────────────────────


class CatalogError(Exception):
    """Base exception for offer catalog errors."""


class PartnerNotFoundError(CatalogError):
    """Partner does not exist."""


class PromotionNotFoundError(CatalogError):
    """Promotion does not exist for this partner."""


# ── I/O ───────────────────────────────────────────────────────────────────────


class ServiceError(Exception):
    """A store call failed after exhausting retries."""

    def __init__(self, service_name: str, operation: str, original: BaseException) -> None:
        super().__init__(f"{service_name} failed during {operation}: {original}")
        self.service_name = service_name
        self.operation = operation
        self.original = original
