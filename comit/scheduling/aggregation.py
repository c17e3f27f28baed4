"""Read model over stored records and the in-flight edit session.

Nothing here mutates; every query recomputes from the store, which stays
cheap because a grid holds at most 96 cells per day.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from comit.scheduling.session import EditSession
from comit.scheduling.status import PREFERENCE_ORDER, AvailabilityStatus
from comit.scheduling.store import AvailabilityStore, normalize_name


@dataclass(frozen=True)
class StatusCounts:
    available: frozenset[str] = field(default_factory=frozenset)
    if_needed: frozenset[str] = field(default_factory=frozenset)
    unavailable: frozenset[str] = field(default_factory=frozenset)

    def users(self, status: AvailabilityStatus) -> frozenset[str]:
        match status:
            case AvailabilityStatus.AVAILABLE:
                return self.available
            case AvailabilityStatus.IF_NEEDED:
                return self.if_needed
            case AvailabilityStatus.UNAVAILABLE:
                return self.unavailable

    def count(self, status: AvailabilityStatus) -> int:
        return len(self.users(status))

    @property
    def total(self) -> int:
        return len(self.available) + len(self.if_needed) + len(self.unavailable)

    def as_dict(self) -> dict[str, int]:
        return {s.value: self.count(s) for s in PREFERENCE_ORDER}


def _group(entries: dict[str, tuple[str, AvailabilityStatus]]) -> StatusCounts:
    buckets: dict[AvailabilityStatus, set[str]] = {s: set() for s in PREFERENCE_ORDER}
    for name, status in entries.values():
        buckets[status].add(name)
    return StatusCounts(
        available=frozenset(buckets[AvailabilityStatus.AVAILABLE]),
        if_needed=frozenset(buckets[AvailabilityStatus.IF_NEEDED]),
        unavailable=frozenset(buckets[AvailabilityStatus.UNAVAILABLE]),
    )


def _stored(
    store: AvailabilityStore, cell_key: str, exclude_user: str | None
) -> dict[str, tuple[str, AvailabilityStatus]]:
    excluded = normalize_name(exclude_user) if exclude_user else None
    return {
        uid: (store.display_name(uid), status)
        for uid, status in store.statuses_at(cell_key).items()
        if uid != excluded
    }


def status_counts(
    store: AvailabilityStore, cell_key: str, exclude_user: str | None = None
) -> StatusCounts:
    """Participants per status at one cell, optionally leaving one participant out."""
    return _group(_stored(store, cell_key, exclude_user))


def preview_counts(store: AvailabilityStore, cell_key: str, session: EditSession) -> StatusCounts:
    """Counts as they would be if the session were saved right now."""
    entries = _stored(store, cell_key, session.user_name)
    pending = session.status_of(cell_key)
    if pending is not None:
        uid = normalize_name(session.user_name)
        name = store.display_name(uid) if store.has_user(uid) else session.user_name
        entries[uid] = (name, pending)
    return _group(entries)


def dominant_status(counts: StatusCounts) -> AvailabilityStatus | None:
    """The status held by the most participants; ties go to the preferred status."""
    best = None
    for status in PREFERENCE_ORDER:
        if counts.count(status) and (best is None or counts.count(status) > counts.count(best)):
            best = status
    return best


def effective_status(cell_key: str, session: EditSession | None) -> AvailabilityStatus | None:
    if session is None:
        return None
    return session.status_of(cell_key)


def no_response(store: AvailabilityStore, counts: StatusCounts) -> frozenset[str]:
    responded = {normalize_name(n) for s in PREFERENCE_ORDER for n in counts.users(s)}
    return frozenset(
        store.display_name(uid) for uid in store.user_ids() if uid not in responded
    )


@dataclass(frozen=True)
class CellView:
    cell_key: str
    dominant_status: AvailabilityStatus | None
    counts: StatusCounts
    is_selected_by_editor: bool = False
    editor_status: AvailabilityStatus | None = None


def cell_view(
    store: AvailabilityStore, cell_key: str, session: EditSession | None = None
) -> CellView:
    if session is not None and session.editing:
        counts = preview_counts(store, cell_key, session)
    else:
        counts = status_counts(store, cell_key)
    editor_status = effective_status(cell_key, session)
    return CellView(
        cell_key=cell_key,
        dominant_status=dominant_status(counts),
        counts=counts,
        is_selected_by_editor=editor_status is not None,
        editor_status=editor_status,
    )
