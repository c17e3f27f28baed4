import logging
import re
from typing import Dict, List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, field_validator, model_validator

from comit.config import get_settings
from comit.dependencies import Repository
from comit.errors import NotFoundError
from comit.models.events import (
    AvailabilityResponse,
    BestTimesResponse,
    Candidate,
    CellViewResponse,
    EventModel,
    EventResponse,
    Grid,
    PreviewResponse,
    Record,
    SaveResponse,
    SessionResponse,
)
from comit.scheduling import (
    AvailabilityStatus,
    BestTimeFilters,
    EditSession,
    EventScheduler,
    EventWindow,
    SessionMode,
)

logger = logging.getLogger("comit.events")
router = APIRouter(prefix="/events", tags=["events"])

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class CreateEventRequest(BaseModel):
    title: str
    description: Optional[str] = None
    dates: List[str]
    start_hour: int = 9
    end_hour: int = 17

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        limit = get_settings().events.max_title_length
        if not v or len(v) > limit:
            raise ValueError(f"title must be 1-{limit} characters")
        return v

    @field_validator("dates")
    @classmethod
    def validate_dates(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("dates must not be empty")
        if len(v) > get_settings().events.max_dates:
            raise ValueError(f"at most {get_settings().events.max_dates} dates allowed")
        for d in v:
            if not DATE_RE.match(d):
                raise ValueError(f"invalid date format: {d}")
        return sorted(set(v))

    @model_validator(mode="after")
    def validate_hours(self) -> "CreateEventRequest":
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValueError("hours must satisfy 0 <= start_hour < end_hour <= 24")
        return self


class AvailabilityRequest(BaseModel):
    participant_name: str
    cells: Dict[str, AvailabilityStatus]

    @field_validator("participant_name")
    @classmethod
    def validate_participant_name(cls, v: str) -> str:
        v = v.strip()
        limit = get_settings().events.max_name_length
        if not v or len(v) > limit:
            raise ValueError(f"participant_name must be 1-{limit} characters")
        return v


async def _load(event_id: str, repository: Repository) -> EventScheduler:
    scheduler = EventScheduler(event_id, repository)
    await scheduler.load()
    return scheduler


def _session_payload(session: EditSession) -> dict:
    return {
        "user_name": session.user_name,
        "mode": session.mode.value,
        "has_existing_data": session.has_existing_data,
        "cells": dict(sorted(session.cells.items())),
    }


def _staged(scheduler: EventScheduler, req: AvailabilityRequest) -> EditSession:
    session = scheduler.begin_editing(req.participant_name)
    session.set_mode(SessionMode.EDIT)
    session.replace_cells(req.cells)
    return session


@router.post("", status_code=201, response_model=EventModel)
async def create_event(req: CreateEventRequest, repository: Repository) -> EventModel:
    logger.info("POST /events title=%s dates=%d hours=%d-%d", req.title, len(req.dates), req.start_hour, req.end_hour)
    windows = [EventWindow(d, req.start_hour, req.end_hour) for d in req.dates]
    event = await repository.create_event(req.title, windows, req.description)
    logger.info("Created event id=%s", event.id)
    return EventModel.from_event(event)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: str, repository: Repository) -> EventResponse:
    logger.info("GET /events/%s", event_id)
    event = await repository.get_event(event_id)
    if not event:
        logger.warning("Event not found: %s", event_id)
        raise NotFoundError(detail="Event not found", event_id=event_id)
    scheduler = await _load(event_id, repository)
    return EventResponse(event=EventModel.from_event(event), grid=Grid.from_view(scheduler.get_grid()))


@router.get("/{event_id}/availability", response_model=AvailabilityResponse)
async def get_availability(event_id: str, repository: Repository) -> AvailabilityResponse:
    logger.info("GET /events/%s/availability", event_id)
    scheduler = await _load(event_id, repository)
    store = scheduler.store
    return AvailabilityResponse(
        participants=store.distinct_users(),
        records=[Record(user_name=r.user_name, cell_key=r.cell_key, status=r.status) for r in store.records],
        dropped=len(store.dropped),
    )


@router.get("/{event_id}/participants/{participant_name}", response_model=SessionResponse)
async def begin_editing(event_id: str, participant_name: str, repository: Repository) -> SessionResponse:
    logger.info("GET /events/%s/participants/%s", event_id, participant_name)
    scheduler = await _load(event_id, repository)
    session = scheduler.begin_editing(participant_name)
    return SessionResponse(**_session_payload(session))


@router.put("/{event_id}/availability", response_model=SaveResponse)
async def save_availability(event_id: str, req: AvailabilityRequest, repository: Repository) -> SaveResponse:
    logger.info("PUT /events/%s/availability participant=%s cells=%d", event_id, req.participant_name, len(req.cells))
    scheduler = await _load(event_id, repository)
    session = _staged(scheduler, req)
    await scheduler.save()
    logger.info("Saved availability for %s on event %s", session.user_name, event_id)
    return SaveResponse(event_id=event_id, **_session_payload(session))


@router.post("/{event_id}/preview", response_model=PreviewResponse)
async def preview_availability(event_id: str, req: AvailabilityRequest, repository: Repository) -> PreviewResponse:
    logger.info("POST /events/%s/preview participant=%s cells=%d", event_id, req.participant_name, len(req.cells))
    scheduler = await _load(event_id, repository)
    session = _staged(scheduler, req)
    grid = scheduler.grid
    cells = [
        CellViewResponse.from_view(scheduler.get_cell_view(k))
        for row in grid.rows()
        for k in row
        if grid.is_valid(k)
    ]
    return PreviewResponse(user_name=session.user_name, cells=cells)


@router.get("/{event_id}/cells/{key}", response_model=CellViewResponse)
async def get_cell(
    event_id: str,
    key: str,
    repository: Repository,
    participant_name: Optional[str] = Query(None, description="Participant whose own selection is highlighted"),
) -> CellViewResponse:
    logger.info("GET /events/%s/cells/%s", event_id, key)
    scheduler = await _load(event_id, repository)
    if participant_name:
        scheduler.begin_editing(participant_name)
    return CellViewResponse.from_view(scheduler.get_cell_view(key))


@router.get("/{event_id}/best-times", response_model=BestTimesResponse)
async def best_times(
    event_id: str,
    repository: Repository,
    duration_minutes: int = Query(..., description="Requested meeting length in minutes"),
    start_date: Optional[str] = Query(None, description="Earliest date, YYYY-MM-DD"),
    start_hour: Optional[int] = Query(None, description="Earliest start hour"),
    start_minute: Optional[int] = Query(None, description="Earliest start minute"),
) -> BestTimesResponse:
    logger.info("GET /events/%s/best-times duration=%d start_date=%s", event_id, duration_minutes, start_date)
    filters = BestTimeFilters(start_date=start_date, start_hour=start_hour, start_minute=start_minute)
    scheduler = await _load(event_id, repository)
    candidates = scheduler.find_best_times(duration_minutes, filters)
    logger.info("Returning %d best-time candidates for event %s", len(candidates), event_id)
    return BestTimesResponse(
        duration_minutes=duration_minutes,
        candidates=[Candidate.from_candidate(c) for c in candidates],
    )
