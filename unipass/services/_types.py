"""Typed dicts for service-layer return values.

Keeps route-facing methods explicit about their shape instead of returning bare dicts.
"""

from typing import TypedDict

# -- Members ---------------------------------------------------------------


class MemberDict(TypedDict):
    id: str
    fullName: str
    cpf: str
    memberType: str
    schoolId: str
    registrationNumber: str | None
    course: str | None
    validUntil: str
    isActive: bool
    isDependent: bool
    parentId: str | None


# -- Catalog ---------------------------------------------------------------


class PromotionDict(TypedDict):
    id: str
    partnerId: str
    title: str
    limit: str
    description: str | None
    validUntil: str | None
    isActive: bool
    createdAt: str
    updatedAt: str


# -- Event log -------------------------------------------------------------


class HistoryEntryDict(TypedDict):
    id: str
    timestamp: str
    partnerId: str
    offerId: str
    offerTitle: str | None
    memberId: str
    actorId: str
    actorName: str
    actorRole: str


class OfferUsageDict(TypedDict):
    offerId: str
    offerTitle: str | None
    redemptions: int
    uniqueMembers: int


class UsageSummaryDict(TypedDict):
    partnerId: str
    totalRedemptions: int
    uniqueMembers: int
    offers: list[OfferUsageDict]


# -- Health ----------------------------------------------------------------


class DbInfoDict(TypedDict, total=False):
    backend_type: str
    database_url_or_path: str | None
    tables_present: list[str]
    tables_missing: list[str]
    schema_initialized: bool
    pid: int
    error: str
