"""In-memory indexing and filtering over the redemption log."""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime

from db.enums import UserRole
from unipass.services.schemas import RedemptionEvent

EventKey = tuple[str, str, str]  # (member_id, partner_id, offer_id)


@dataclass(frozen=True, slots=True)
class Usage:
    count: int = 0
    last_used_at: datetime | None = None


class EventIndex:
    """Events grouped by (member, partner, offer), log order preserved within a group.

    Timestamps within one log must be consistently naive or consistently aware.
    """

    def __init__(self, events: Iterable[RedemptionEvent] = ()) -> None:
        self._by_key: dict[EventKey, list[RedemptionEvent]] = defaultdict(list)
        self._size: int = 0
        for e in events:
            self.add(e)

    def __len__(self) -> int:
        return self._size

    def add(self, event: RedemptionEvent) -> None:
        self._by_key[(event.member_id, event.partner_id, event.offer_id)].append(event)
        self._size += 1

    def events_for(self, member_id: str, partner_id: str, offer_id: str) -> list[RedemptionEvent]:
        return list(self._by_key.get((member_id, partner_id, offer_id), ()))

    def usage(self, member_id: str, partner_id: str, offer_id: str) -> Usage:
        matched: list[RedemptionEvent] = self._by_key.get((member_id, partner_id, offer_id), [])
        if not matched:
            return Usage()
        last: datetime = matched[0].timestamp
        for e in matched[1:]:
            # >= so that equal timestamps resolve to the later log entry
            if e.timestamp >= last:
                last = e.timestamp
        return Usage(count=len(matched), last_used_at=last)


def visible_history(
    events: Sequence[RedemptionEvent],
    partner_id: str,
    actor_id: str | None,
    role: UserRole | str | None,
) -> list[RedemptionEvent]:
    """History an operator may see, newest first.

    Store admins see every event of their partner plus their own; everyone
    else sees only events they registered.
    """
    is_admin: bool = role in (UserRole.STORE_ADMIN, UserRole.STORE_ADMIN.value)

    def _visible(e: RedemptionEvent) -> bool:
        mine: bool = actor_id is not None and e.actor_id == actor_id
        if is_admin:
            return e.partner_id == partner_id or mine
        return mine

    # enumerate keeps insertion order as the tie-breaker after the reverse sort
    indexed = [(i, e) for i, e in enumerate(events) if _visible(e)]
    indexed.sort(key=lambda pair: (pair[1].timestamp, pair[0]), reverse=True)
    return [e for _, e in indexed]
