from comit.scheduling.aggregation import (
    CellView,
    StatusCounts,
    cell_view,
    dominant_status,
    effective_status,
    preview_counts,
    status_counts,
)
from comit.scheduling.best_time import (
    MAX_CANDIDATES,
    BestTimeCandidate,
    BestTimeFilters,
    find_best_times,
)
from comit.scheduling.grid import (
    SLOT_MINUTES,
    EventWindow,
    TimeCell,
    TimeGrid,
    cell_key,
    dates_of,
    time_slots_of_day,
    valid_cells,
)
from comit.scheduling.repository import AvailabilityRepository, Event, InMemoryRepository
from comit.scheduling.service import EventScheduler, GridView
from comit.scheduling.session import EditSession, SessionMode
from comit.scheduling.status import AvailabilityStatus
from comit.scheduling.store import AvailabilityRecord, AvailabilityStore, load_records

__all__ = [
    "MAX_CANDIDATES",
    "SLOT_MINUTES",
    "AvailabilityRecord",
    "AvailabilityRepository",
    "AvailabilityStatus",
    "AvailabilityStore",
    "BestTimeCandidate",
    "BestTimeFilters",
    "CellView",
    "EditSession",
    "Event",
    "EventScheduler",
    "EventWindow",
    "GridView",
    "InMemoryRepository",
    "SessionMode",
    "StatusCounts",
    "TimeCell",
    "TimeGrid",
    "cell_key",
    "cell_view",
    "dates_of",
    "dominant_status",
    "effective_status",
    "find_best_times",
    "load_records",
    "preview_counts",
    "status_counts",
    "time_slots_of_day",
    "valid_cells",
]
