"""One event's scheduling state bound to a persistence collaborator."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from comit.errors import APIError, PersistenceError, ValidationError
from comit.scheduling.aggregation import CellView, cell_view
from comit.scheduling.best_time import BestTimeCandidate, BestTimeFilters, find_best_times
from comit.scheduling.grid import TimeCell, TimeGrid
from comit.scheduling.repository import AvailabilityRepository
from comit.scheduling.session import EditSession, SessionMode
from comit.scheduling.status import AvailabilityStatus
from comit.scheduling.store import AvailabilityStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridView:
    dates: list[str]
    time_slots_of_day: list[tuple[int, int]]
    valid_cells: frozenset[str]


class EventScheduler:
    def __init__(self, event_id: str, repository: AvailabilityRepository) -> None:
        self.event_id = event_id
        self.repository = repository
        self.grid = TimeGrid()
        self.store = AvailabilityStore()
        self.session: EditSession | None = None

    async def load(self) -> None:
        """Refetch windows and availability; on failure the previous state stays."""
        try:
            windows = await self.repository.fetch_windows(self.event_id)
            rows = await self.repository.fetch_availability(self.event_id)
        except APIError:
            raise
        except Exception as e:
            logger.exception("Failed to load event %s", self.event_id)
            raise PersistenceError(detail=f"Failed to load event: {e}", event_id=self.event_id) from e
        grid = TimeGrid.from_windows(windows)
        self.store = AvailabilityStore.from_raw(rows, grid.valid)
        self.grid = grid
        logger.info(
            "Loaded event %s: %d dates, %d valid cells, %d participants",
            self.event_id,
            len(grid.dates),
            len(grid.valid),
            len(self.store),
        )

    def get_grid(self) -> GridView:
        return GridView(
            dates=list(self.grid.dates),
            time_slots_of_day=list(self.grid.slots),
            valid_cells=self.grid.valid,
        )

    def get_cell_view(self, cell_key: str) -> CellView:
        TimeCell.from_key(cell_key)
        return cell_view(self.store, cell_key, self.session)

    def find_best_times(
        self, duration_minutes: int, filters: BestTimeFilters | None = None
    ) -> list[BestTimeCandidate]:
        return find_best_times(self.grid, self.store, duration_minutes, filters)

    def begin_editing(self, user_name: str) -> EditSession:
        self.session = EditSession.begin(self.store, user_name)
        return self.session

    def _require_session(self) -> EditSession:
        if self.session is None:
            raise ValidationError(detail="Please enter your name", field="user_name")
        return self.session

    def paint_cell(self, cell_key: str, gesture_start: bool = False) -> AvailabilityStatus | None:
        return self._require_session().paint_cell(cell_key, gesture_start)

    def set_mode(self, mode: SessionMode | str) -> None:
        self._require_session().set_mode(mode)

    def cancel(self) -> None:
        self._require_session().cancel()

    async def _persist(self, user_name: str, cells: dict[str, AvailabilityStatus]) -> None:
        await self.repository.save_availability(self.event_id, user_name, cells)

    async def save(self) -> dict[str, AvailabilityStatus]:
        session = self._require_session()
        saved = await session.save(self._persist)
        self.store.replace_user(session.user_name, saved)
        return saved
