"""In-memory projection of every participant's per-cell status.

Raw rows come from the persistence collaborator, one row per participant,
embedding either a legacy list of plain cell ids or a list of
``{"cell_id", "status"}`` entries. ``load_records`` flattens both shapes into
``AvailabilityRecord`` values; ``AvailabilityStore`` indexes them by
participant and by cell.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from comit.errors import DataIntegrityWarning
from comit.scheduling.status import AvailabilityStatus

logger = logging.getLogger(__name__)

_NAME_FIELDS = ("user_name", "userName", "participant_name")
_SLOT_FIELDS = ("slots", "cells", "available_slots")
_CELL_FIELDS = ("cell_id", "cellId", "time_slot_id")


def normalize_name(name: str) -> str:
    """Participant identity: names differing only in case or padding are one person."""
    return name.strip().lower()


@dataclass(frozen=True)
class AvailabilityRecord:
    user_name: str
    cell_key: str
    status: AvailabilityStatus = AvailabilityStatus.AVAILABLE

    @property
    def user_id(self) -> str:
        return normalize_name(self.user_name)


def _first(row: Mapping[str, Any], fields: tuple[str, ...], default: Any = None) -> Any:
    for f in fields:
        if f in row and row[f] is not None:
            return row[f]
    return default


def _parse_row(
    row: Mapping[str, Any], problems: list[DataIntegrityWarning]
) -> Iterable[AvailabilityRecord]:
    if not isinstance(row, Mapping):
        problems.append(DataIntegrityWarning("", "", f"row is not a mapping: {type(row).__name__}"))
        return
    user_name = _first(row, _NAME_FIELDS)
    user_name = user_name.strip() if isinstance(user_name, str) else ""
    if not user_name:
        problems.append(DataIntegrityWarning("", "", "row without a participant name"))
        return
    slots = _first(row, _SLOT_FIELDS, ())
    if not isinstance(slots, (list, tuple)):
        problems.append(DataIntegrityWarning(user_name, "", f"slot list is a {type(slots).__name__}"))
        return
    for entry in slots:
        if isinstance(entry, str):
            yield AvailabilityRecord(user_name, entry)
            continue
        if not isinstance(entry, Mapping):
            problems.append(DataIntegrityWarning(user_name, "", f"slot entry is a {type(entry).__name__}"))
            continue
        key = _first(entry, _CELL_FIELDS)
        if not isinstance(key, str) or not key:
            problems.append(DataIntegrityWarning(user_name, "", "slot without a cell id"))
            continue
        try:
            status = AvailabilityStatus.parse(entry.get("status"))
        except ValueError:
            problems.append(DataIntegrityWarning(user_name, key, f"unknown status {entry.get('status')!r}"))
            continue
        yield AvailabilityRecord(user_name, key, status)


def load_records(
    raw_rows: Iterable[Mapping[str, Any]],
    problems: list[DataIntegrityWarning] | None = None,
) -> list[AvailabilityRecord]:
    """Flatten raw participant rows into records, one per (participant, cell).

    A later entry for the same participant and cell replaces the earlier one.
    Unparseable entries are appended to ``problems`` when given and skipped.
    """
    if problems is None:
        problems = []
    merged: dict[tuple[str, str], AvailabilityRecord] = {}
    for row in raw_rows:
        for record in _parse_row(row, problems):
            merged[(record.user_id, record.cell_key)] = record
    return list(merged.values())


class AvailabilityStore:
    def __init__(
        self,
        records: Iterable[AvailabilityRecord] = (),
        valid_cells: frozenset[str] | None = None,
        problems: Iterable[DataIntegrityWarning] = (),
    ) -> None:
        self.valid_cells = valid_cells
        self.dropped: list[DataIntegrityWarning] = list(problems)
        self._names: dict[str, str] = {}
        self._cells: dict[str, dict[str, AvailabilityStatus]] = {}
        self._by_cell: dict[str, dict[str, AvailabilityStatus]] = {}
        for record in records:
            if valid_cells is not None and record.cell_key not in valid_cells:
                self.dropped.append(
                    DataIntegrityWarning(record.user_name, record.cell_key, "cell outside event windows")
                )
                continue
            self._add(record)
        if self.dropped:
            logger.warning("Dropped %d stale or malformed availability entries", len(self.dropped))

    @classmethod
    def from_raw(
        cls, raw_rows: Iterable[Mapping[str, Any]], valid_cells: frozenset[str] | None = None
    ) -> AvailabilityStore:
        problems: list[DataIntegrityWarning] = []
        records = load_records(raw_rows, problems)
        return cls(records, valid_cells, problems)

    def _add(self, record: AvailabilityRecord) -> None:
        uid = record.user_id
        self._names.setdefault(uid, record.user_name.strip())
        self._cells.setdefault(uid, {})[record.cell_key] = record.status
        self._by_cell.setdefault(record.cell_key, {})[uid] = record.status

    def _discard_user(self, uid: str) -> None:
        for key in self._cells.pop(uid, {}):
            statuses = self._by_cell[key]
            del statuses[uid]
            if not statuses:
                del self._by_cell[key]
        self._names.pop(uid, None)

    @property
    def records(self) -> list[AvailabilityRecord]:
        return [
            AvailabilityRecord(self._names[uid], key, status)
            for uid, cells in self._cells.items()
            for key, status in cells.items()
        ]

    def distinct_users(self) -> list[str]:
        return list(self._names.values())

    def user_ids(self) -> list[str]:
        return list(self._names)

    def display_name(self, user_id: str) -> str:
        return self._names[user_id]

    def has_user(self, user_name: str) -> bool:
        return normalize_name(user_name) in self._names

    def cells_for(self, user_name: str) -> dict[str, AvailabilityStatus]:
        return dict(self._cells.get(normalize_name(user_name), {}))

    def statuses_at(self, cell_key: str) -> dict[str, AvailabilityStatus]:
        """Participant id to status for one cell; participants without a record are absent."""
        return dict(self._by_cell.get(cell_key, {}))

    def replace_user(self, user_name: str, cells: Mapping[str, AvailabilityStatus]) -> None:
        """Swap one participant's whole record set for ``cells``."""
        uid = normalize_name(user_name)
        display = self._names.get(uid, user_name.strip())
        self._discard_user(uid)
        for key, status in cells.items():
            self._add(AvailabilityRecord(display, key, AvailabilityStatus.parse(status)))

    def __len__(self) -> int:
        return len(self._names)
