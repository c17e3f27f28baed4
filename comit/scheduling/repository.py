"""Persistence collaborator contract and an in-memory implementation."""

from __future__ import annotations

import copy
import secrets
import string
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Mapping, Protocol

from comit.errors import NotFoundError
from comit.scheduling.grid import EventWindow
from comit.scheduling.status import AvailabilityStatus
from comit.scheduling.store import normalize_name


def generate_event_id(length: int = 10) -> str:
    chars = string.ascii_lowercase + string.digits
    return "".join(secrets.choice(chars) for _ in range(length))


def serialize_cells(cells: Mapping[str, AvailabilityStatus]) -> list[dict[str, str]]:
    return [
        {"cell_id": key, "status": AvailabilityStatus(status).value}
        for key, status in sorted(cells.items())
    ]


@dataclass
class Event:
    id: str
    title: str
    description: str | None = None
    windows: list[EventWindow] = field(default_factory=list)
    created_at: str = ""


class AvailabilityRepository(Protocol):
    async def create_event(
        self, title: str, windows: list[EventWindow], description: str | None = None
    ) -> Event: ...

    async def get_event(self, event_id: str) -> Event | None: ...

    async def fetch_windows(self, event_id: str) -> list[EventWindow]: ...

    async def fetch_availability(self, event_id: str) -> list[dict[str, Any]]: ...

    async def save_availability(
        self, event_id: str, user_name: str, cells: Mapping[str, AvailabilityStatus]
    ) -> dict[str, Any]: ...


class InMemoryRepository:
    """Dict-backed repository. Rows are copied on the way in and out."""

    def __init__(self) -> None:
        self._events: dict[str, Event] = {}
        self._rows: dict[str, dict[str, dict[str, Any]]] = {}

    async def create_event(
        self, title: str, windows: list[EventWindow], description: str | None = None
    ) -> Event:
        event_id = generate_event_id()
        while event_id in self._events:
            event_id = generate_event_id()
        event = Event(
            id=event_id,
            title=title,
            description=description,
            windows=list(windows),
            created_at=datetime.now(UTC).isoformat(),
        )
        self._events[event_id] = event
        self._rows[event_id] = {}
        return copy.deepcopy(event)

    async def get_event(self, event_id: str) -> Event | None:
        event = self._events.get(event_id)
        return copy.deepcopy(event) if event else None

    def _require(self, event_id: str) -> dict[str, dict[str, Any]]:
        if event_id not in self._events:
            raise NotFoundError(detail="Event not found", event_id=event_id)
        return self._rows[event_id]

    async def fetch_windows(self, event_id: str) -> list[EventWindow]:
        self._require(event_id)
        return list(self._events[event_id].windows)

    async def fetch_availability(self, event_id: str) -> list[dict[str, Any]]:
        return copy.deepcopy(list(self._require(event_id).values()))

    async def save_availability(
        self, event_id: str, user_name: str, cells: Mapping[str, AvailabilityStatus]
    ) -> dict[str, Any]:
        rows = self._require(event_id)
        now = datetime.now(UTC).isoformat()
        key = normalize_name(user_name)
        previous = rows.get(key)
        row = {
            "user_name": previous["user_name"] if previous else user_name.strip(),
            "slots": serialize_cells(cells),
            "created_at": previous["created_at"] if previous else now,
            "updated_at": now,
        }
        rows[key] = row
        return copy.deepcopy(row)
