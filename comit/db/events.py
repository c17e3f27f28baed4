from datetime import UTC, date, datetime
from typing import Any, Mapping

import psycopg
from psycopg import errors as pg_errors
from psycopg.types.json import Json

from comit.db.core import _get_connection
from comit.errors import DatabaseError, NotFoundError
from comit.scheduling.grid import EventWindow
from comit.scheduling.repository import Event, generate_event_id, serialize_cells
from comit.scheduling.status import AvailabilityStatus
from comit.scheduling.store import normalize_name


async def events_create(
    title: str,
    windows: list[EventWindow],
    description: str | None = None,
) -> dict[str, Any]:
    now = datetime.now(UTC)
    async with _get_connection() as conn:
        for _ in range(10):
            event_id = generate_event_id()
            try:
                async with conn.transaction():
                    await conn.execute(
                        "INSERT INTO comit_events (id, title, description, created_at) VALUES (%s, %s, %s, %s)",
                        (event_id, title, description, now),
                    )
                    for w in windows:
                        await conn.execute(
                            """INSERT INTO comit_event_windows (event_id, date, start_hour, end_hour)
                               VALUES (%s, %s, %s, %s)""",
                            (event_id, date.fromisoformat(w.date), w.start_hour, w.end_hour),
                        )
                return {
                    "id": event_id,
                    "title": title,
                    "description": description,
                    "windows": windows,
                    "created_at": now.isoformat(),
                }
            except pg_errors.UniqueViolation:
                continue
        raise RuntimeError("Failed to generate unique event ID")


async def events_get(event_id: str) -> dict[str, Any] | None:
    async with _get_connection() as conn:
        rows = await conn.execute(
            "SELECT id, title, description, created_at FROM comit_events WHERE id = %s",
            (event_id,),
        )
        row = await rows.fetchone()
        if not row:
            return None
        return {
            "id": row[0],
            "title": row[1],
            "description": row[2],
            "created_at": row[3].astimezone(UTC).isoformat(),
        }


async def events_get_windows(event_id: str) -> list[EventWindow]:
    async with _get_connection() as conn:
        rows = await conn.execute(
            """SELECT date, start_hour, end_hour FROM comit_event_windows
               WHERE event_id = %s ORDER BY date, start_hour""",
            (event_id,),
        )
        result = []
        async for row in rows:
            result.append(EventWindow(row[0].isoformat(), row[1], row[2]))
        return result


async def events_get_availabilities(event_id: str) -> list[dict[str, Any]]:
    async with _get_connection() as conn:
        rows = await conn.execute(
            """SELECT user_name, slots, created_at, updated_at FROM comit_availabilities
               WHERE event_id = %s ORDER BY created_at""",
            (event_id,),
        )
        result = []
        async for row in rows:
            result.append(
                {
                    "user_name": row[0],
                    "slots": row[1],
                    "created_at": row[2].astimezone(UTC).isoformat(),
                    "updated_at": row[3].astimezone(UTC).isoformat(),
                }
            )
        return result


async def events_replace_availability(
    event_id: str,
    user_name: str,
    cells: Mapping[str, AvailabilityStatus],
) -> dict[str, Any]:
    """Delete the participant's previous row and insert the new one in one transaction."""
    now = datetime.now(UTC)
    user_key = normalize_name(user_name)
    slots = serialize_cells(cells)
    async with _get_connection() as conn:
        async with conn.transaction():
            rows = await conn.execute(
                """DELETE FROM comit_availabilities WHERE event_id = %s AND user_key = %s
                   RETURNING user_name, created_at""",
                (event_id, user_key),
            )
            previous = await rows.fetchone()
            display = previous[0] if previous else user_name.strip()
            created_at = previous[1] if previous else now
            await conn.execute(
                """INSERT INTO comit_availabilities (event_id, user_key, user_name, slots, created_at, updated_at)
                   VALUES (%s, %s, %s, %s, %s, %s)""",
                (event_id, user_key, display, Json(slots), created_at, now),
            )
    return {
        "event_id": event_id,
        "user_name": display,
        "slots": slots,
        "updated_at": now.isoformat(),
    }


class PostgresRepository:
    """``AvailabilityRepository`` backed by the comit_* tables."""

    async def create_event(
        self, title: str, windows: list[EventWindow], description: str | None = None
    ) -> Event:
        try:
            row = await events_create(title, windows, description)
        except psycopg.Error as e:
            raise DatabaseError(detail=f"Failed to create event: {e}") from e
        return Event(**row)

    async def get_event(self, event_id: str) -> Event | None:
        try:
            row = await events_get(event_id)
            if row is None:
                return None
            windows = await events_get_windows(event_id)
        except psycopg.Error as e:
            raise DatabaseError(detail=f"Failed to read event: {e}") from e
        return Event(windows=windows, **row)

    async def fetch_windows(self, event_id: str) -> list[EventWindow]:
        try:
            if await events_get(event_id) is None:
                raise NotFoundError(detail="Event not found", event_id=event_id)
            return await events_get_windows(event_id)
        except psycopg.Error as e:
            raise DatabaseError(detail=f"Failed to read event windows: {e}") from e

    async def fetch_availability(self, event_id: str) -> list[dict[str, Any]]:
        try:
            return await events_get_availabilities(event_id)
        except psycopg.Error as e:
            raise DatabaseError(detail=f"Failed to read availability: {e}") from e

    async def save_availability(
        self, event_id: str, user_name: str, cells: Mapping[str, AvailabilityStatus]
    ) -> dict[str, Any]:
        try:
            return await events_replace_availability(event_id, user_name, cells)
        except pg_errors.ForeignKeyViolation:
            raise NotFoundError(detail="Event not found", event_id=event_id) from None
        except psycopg.Error as e:
            raise DatabaseError(detail=f"Failed to save availability: {e}") from e
