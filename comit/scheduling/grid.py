"""Discretization of an event into 15-minute time cells.

An event is configured as a set of windows, each a date plus an hour range.
Every window yields one cell per 15-minute step in ``[start_hour, end_hour)``;
a cell is valid iff some window covers it. Cells are identified everywhere by
the canonical key ``YYYY-MM-DD-H-M`` with unpadded hour and minute, e.g.
``2025-01-06-9-0``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date as Date
from datetime import datetime
from typing import Iterable, Iterator

from comit.errors import ValidationError

SLOT_MINUTES = 15


def cell_key(date: str, hour: int, minute: int) -> str:
    return f"{date}-{hour}-{minute}"


def _check_date(value: str) -> str:
    try:
        return Date.fromisoformat(value).isoformat()
    except (TypeError, ValueError):
        raise ValidationError(detail=f"Invalid date: {value!r}", field="date") from None


@dataclass(frozen=True, order=True)
class TimeCell:
    date: str
    hour: int
    minute: int

    @property
    def key(self) -> str:
        return cell_key(self.date, self.hour, self.minute)

    @property
    def minute_of_day(self) -> int:
        return self.hour * 60 + self.minute

    @classmethod
    def from_key(cls, key: str) -> TimeCell:
        try:
            date, hour, minute = key.rsplit("-", 2)
            cell = cls(_check_date(date), int(hour), int(minute))
        except (AttributeError, ValueError, ValidationError):
            raise ValidationError(detail=f"Invalid cell key: {key!r}", field="cell_key") from None
        if not 0 <= cell.hour < 24 or cell.minute % SLOT_MINUTES or not 0 <= cell.minute < 60:
            raise ValidationError(detail=f"Invalid cell key: {key!r}", field="cell_key")
        return cell

    def shifted(self, steps: int) -> TimeCell:
        """Move ``steps`` cells forward on the same date; minutes roll into hours."""
        total = self.minute_of_day + steps * SLOT_MINUTES
        return TimeCell(self.date, total // 60, total % 60)


@dataclass(frozen=True)
class EventWindow:
    date: str
    start_hour: int
    end_hour: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", _check_date(self.date))
        if not (0 <= self.start_hour < self.end_hour <= 24):
            raise ValidationError(
                detail=f"Invalid hour range [{self.start_hour}, {self.end_hour}) for {self.date}",
                field="hours",
            )

    @classmethod
    def from_timestamps(cls, start: datetime, end: datetime) -> EventWindow:
        """Build a window from stored timestamps, read in the host's local wall clock.

        Aware timestamps are converted to local time first so a window saved at
        local midnight does not shift to the previous day. An end falling on
        local midnight of the next day is treated as hour 24.
        """
        if start.tzinfo is not None:
            start = start.astimezone()
        if end.tzinfo is not None:
            end = end.astimezone()
        end_hour = end.hour
        if end.date() > start.date() and end.hour == 0:
            end_hour = 24
        return cls(start.date().isoformat(), start.hour, end_hour)

    def cells(self) -> Iterator[TimeCell]:
        for t in range(self.start_hour * 60, self.end_hour * 60, SLOT_MINUTES):
            yield TimeCell(self.date, t // 60, t % 60)


def valid_cells(windows: Iterable[EventWindow]) -> frozenset[str]:
    return frozenset(cell.key for w in windows for cell in w.cells())


def dates_of(windows: Iterable[EventWindow]) -> list[str]:
    return sorted({w.date for w in windows}, key=Date.fromisoformat)


def time_slots_of_day(windows: Iterable[EventWindow]) -> list[tuple[int, int]]:
    """All (hour, minute) rows spanning the union of the windows' hour ranges.

    A day whose window covers only part of that range still gets every row;
    the cells outside its window are simply invalid.
    """
    windows = list(windows)
    if not windows:
        return []
    first = min(w.start_hour for w in windows) * 60
    last = max(w.end_hour for w in windows) * 60
    return [(t // 60, t % 60) for t in range(first, last, SLOT_MINUTES)]


@dataclass(frozen=True)
class TimeGrid:
    """Immutable snapshot of an event's layout, rebuilt on every load."""

    windows: tuple[EventWindow, ...] = ()
    dates: tuple[str, ...] = ()
    slots: tuple[tuple[int, int], ...] = ()
    valid: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_windows(cls, windows: Iterable[EventWindow]) -> TimeGrid:
        windows = tuple(windows)
        return cls(
            windows=windows,
            dates=tuple(dates_of(windows)),
            slots=tuple(time_slots_of_day(windows)),
            valid=valid_cells(windows),
        )

    def is_valid(self, key: str) -> bool:
        return key in self.valid

    def rows(self) -> Iterator[list[str]]:
        """Cell keys laid out row by row (one time of day per row, one date per column)."""
        for hour, minute in self.slots:
            yield [cell_key(d, hour, minute) for d in self.dates]
