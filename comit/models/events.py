from pydantic import BaseModel

from comit.scheduling.aggregation import CellView
from comit.scheduling.best_time import BestTimeCandidate
from comit.scheduling.repository import Event
from comit.scheduling.service import GridView
from comit.scheduling.status import AvailabilityStatus


class Window(BaseModel):
    date: str
    start_hour: int
    end_hour: int


class EventModel(BaseModel):
    id: str
    title: str
    description: str | None = None
    windows: list[Window]
    created_at: str

    @classmethod
    def from_event(cls, event: Event) -> "EventModel":
        return cls(
            id=event.id,
            title=event.title,
            description=event.description,
            windows=[Window(date=w.date, start_hour=w.start_hour, end_hour=w.end_hour) for w in event.windows],
            created_at=event.created_at,
        )


class Grid(BaseModel):
    dates: list[str]
    time_slots_of_day: list[tuple[int, int]]
    valid_cells: list[str]

    @classmethod
    def from_view(cls, grid: GridView) -> "Grid":
        return cls(
            dates=grid.dates,
            time_slots_of_day=grid.time_slots_of_day,
            valid_cells=sorted(grid.valid_cells),
        )


class EventResponse(BaseModel):
    event: EventModel
    grid: Grid


class Record(BaseModel):
    user_name: str
    cell_key: str
    status: AvailabilityStatus


class AvailabilityResponse(BaseModel):
    participants: list[str]
    records: list[Record]
    dropped: int


class SessionResponse(BaseModel):
    user_name: str
    mode: str
    has_existing_data: bool
    cells: dict[str, AvailabilityStatus]


class SaveResponse(SessionResponse):
    event_id: str


class StatusUsers(BaseModel):
    available: list[str]
    if_needed: list[str]
    unavailable: list[str]


class CellViewResponse(BaseModel):
    cell_key: str
    dominant_status: AvailabilityStatus | None = None
    counts: dict[str, int]
    users: StatusUsers
    is_selected_by_editor: bool = False
    editor_status: AvailabilityStatus | None = None

    @classmethod
    def from_view(cls, view: CellView) -> "CellViewResponse":
        return cls(
            cell_key=view.cell_key,
            dominant_status=view.dominant_status,
            counts=view.counts.as_dict(),
            users=StatusUsers(
                available=sorted(view.counts.available),
                if_needed=sorted(view.counts.if_needed),
                unavailable=sorted(view.counts.unavailable),
            ),
            is_selected_by_editor=view.is_selected_by_editor,
            editor_status=view.editor_status,
        )


class PreviewResponse(BaseModel):
    user_name: str
    cells: list[CellViewResponse]


class Candidate(BaseModel):
    date: str
    start_hour: int
    start_minute: int
    end_hour: int
    end_minute: int
    duration_minutes: int
    score: int
    available_users: list[str]
    if_needed_users: list[str]
    unavailable_users: list[str]

    @classmethod
    def from_candidate(cls, c: BestTimeCandidate) -> "Candidate":
        end_hour, end_minute = c.end_time
        return cls(
            date=c.date,
            start_hour=c.start_hour,
            start_minute=c.start_minute,
            end_hour=end_hour,
            end_minute=end_minute,
            duration_minutes=c.duration_minutes,
            score=c.score,
            available_users=sorted(c.available_users),
            if_needed_users=sorted(c.if_needed_users),
            unavailable_users=sorted(c.unavailable_users),
        )


class BestTimesResponse(BaseModel):
    duration_minutes: int
    candidates: list[Candidate]
