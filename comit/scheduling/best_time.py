"""Ranking of contiguous meeting windows.

Every start position on every grid date is tried; a candidate covers
``ceil(duration / 15)`` consecutive cells and must lie entirely inside the
organizer's windows. Each participant is classified once for the whole
candidate; a single unavailable cell makes them unavailable for all of it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date as Date

from comit.errors import ValidationError
from comit.scheduling.grid import SLOT_MINUTES, TimeCell, TimeGrid
from comit.scheduling.status import AvailabilityStatus
from comit.scheduling.store import AvailabilityStore

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 5
AVAILABLE_WEIGHT = 10
IF_NEEDED_WEIGHT = 5
UNAVAILABLE_WEIGHT = -20


@dataclass(frozen=True)
class BestTimeFilters:
    start_date: str | None = None
    start_hour: int | None = None
    start_minute: int | None = None

    def __post_init__(self) -> None:
        if self.start_date is not None:
            try:
                object.__setattr__(self, "start_date", Date.fromisoformat(self.start_date).isoformat())
            except (TypeError, ValueError):
                raise ValidationError(detail=f"Invalid start date: {self.start_date!r}", field="start_date") from None
        if self.start_minute is not None and self.start_hour is None:
            raise ValidationError(detail="start_minute requires start_hour", field="start_minute")
        if self.start_hour is not None and not 0 <= self.start_hour <= 23:
            raise ValidationError(detail=f"Invalid start hour: {self.start_hour}", field="start_hour")
        if self.start_minute is not None and not 0 <= self.start_minute <= 59:
            raise ValidationError(detail=f"Invalid start minute: {self.start_minute}", field="start_minute")

    @property
    def time_floor(self) -> int | None:
        if self.start_hour is None:
            return None
        return self.start_hour * 60 + (self.start_minute or 0)

    def admits_date(self, date: str) -> bool:
        return self.start_date is None or Date.fromisoformat(date) >= Date.fromisoformat(self.start_date)

    def admits(self, cell: TimeCell) -> bool:
        if not self.admits_date(cell.date):
            return False
        floor = self.time_floor
        if floor is None:
            return True
        # With a date the time is one absolute floor; later dates are unrestricted.
        if self.start_date is not None and cell.date != self.start_date:
            return True
        return cell.minute_of_day >= floor


@dataclass(frozen=True)
class BestTimeCandidate:
    date: str
    start_hour: int
    start_minute: int
    score: int
    available_users: frozenset[str] = field(default_factory=frozenset)
    if_needed_users: frozenset[str] = field(default_factory=frozenset)
    unavailable_users: frozenset[str] = field(default_factory=frozenset)
    duration_minutes: int = SLOT_MINUTES
    cell_keys: tuple[str, ...] = ()

    @property
    def end_time(self) -> tuple[int, int]:
        end = self.start_hour * 60 + self.start_minute + len(self.cell_keys) * SLOT_MINUTES
        return end // 60, end % 60

    @property
    def sort_key(self) -> tuple:
        return (-self.score, Date.fromisoformat(self.date), self.start_hour, self.start_minute)


def classify(statuses: list[AvailabilityStatus | None]) -> AvailabilityStatus | None:
    """One participant's verdict for a whole window, given their status per cell.

    Any unavailable cell makes the participant unavailable for the window.
    Otherwise they are if-needed only when they never marked a cell available,
    and available only when every cell is available. Someone who mixes
    available and if-needed cells, or marked only part of the window available,
    matches neither rule and counts as no-response.
    """
    if AvailabilityStatus.UNAVAILABLE in statuses:
        return AvailabilityStatus.UNAVAILABLE
    if AvailabilityStatus.IF_NEEDED in statuses and AvailabilityStatus.AVAILABLE not in statuses:
        return AvailabilityStatus.IF_NEEDED
    if statuses and all(s is AvailabilityStatus.AVAILABLE for s in statuses):
        return AvailabilityStatus.AVAILABLE
    return None


def score(available: int, if_needed: int, unavailable: int) -> int:
    return AVAILABLE_WEIGHT * available + IF_NEEDED_WEIGHT * if_needed + UNAVAILABLE_WEIGHT * unavailable


def slots_needed(duration_minutes: int) -> int:
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes <= 0:
        raise ValidationError(
            detail="Meeting duration must be a positive number of minutes",
            field="duration_minutes",
        )
    return math.ceil(duration_minutes / SLOT_MINUTES)


def _evaluate(
    grid: TimeGrid, store: AvailabilityStore, start: TimeCell, needed: int, duration_minutes: int
) -> BestTimeCandidate | None:
    cells = [start.shifted(i) for i in range(needed)]
    keys = [c.key for c in cells]
    if not all(grid.is_valid(k) for k in keys):
        return None

    per_cell = [store.statuses_at(k) for k in keys]
    groups: dict[AvailabilityStatus, set[str]] = {
        AvailabilityStatus.AVAILABLE: set(),
        AvailabilityStatus.IF_NEEDED: set(),
        AvailabilityStatus.UNAVAILABLE: set(),
    }
    user_ids = store.user_ids()
    for uid in user_ids:
        verdict = classify([statuses.get(uid) for statuses in per_cell])
        if verdict is not None:
            groups[verdict].add(store.display_name(uid))

    available = groups[AvailabilityStatus.AVAILABLE]
    if_needed = groups[AvailabilityStatus.IF_NEEDED]
    unavailable = groups[AvailabilityStatus.UNAVAILABLE]
    if len(unavailable) == len(user_ids):
        return None
    if not available and not if_needed:
        return None

    return BestTimeCandidate(
        date=start.date,
        start_hour=start.hour,
        start_minute=start.minute,
        score=score(len(available), len(if_needed), len(unavailable)),
        available_users=frozenset(available),
        if_needed_users=frozenset(if_needed),
        unavailable_users=frozenset(unavailable),
        duration_minutes=duration_minutes,
        cell_keys=tuple(keys),
    )


def find_best_times(
    grid: TimeGrid,
    store: AvailabilityStore,
    duration_minutes: int,
    filters: BestTimeFilters | None = None,
    limit: int = MAX_CANDIDATES,
) -> list[BestTimeCandidate]:
    needed = slots_needed(duration_minutes)
    if not len(store):
        return []
    filters = filters or BestTimeFilters()

    candidates = []
    for date in grid.dates:
        if not filters.admits_date(date):
            continue
        for hour, minute in grid.slots:
            start = TimeCell(date, hour, minute)
            if not filters.admits(start):
                continue
            candidate = _evaluate(grid, store, start, needed, duration_minutes)
            if candidate is not None:
                candidates.append(candidate)

    candidates.sort(key=lambda c: c.sort_key)
    logger.debug(
        "Scored %d candidate windows for %d minutes across %d dates",
        len(candidates),
        duration_minutes,
        len(grid.dates),
    )
    return candidates[:limit]
