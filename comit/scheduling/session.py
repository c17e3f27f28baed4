"""Per-participant editing state.

Pointer input reaches the session as an ordered stream of
``(cell_key, is_gesture_start)`` events. A gesture start paints the cell and
begins a drag; every later event paints a cell at most once per drag. The drag
ends on pointer-up or when the pointer leaves the grid.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Awaitable, Callable, Iterable, Mapping

from comit.errors import APIError, PersistenceError, SaveInProgressError, ValidationError
from comit.scheduling.status import AvailabilityStatus
from comit.scheduling.store import AvailabilityStore

logger = logging.getLogger(__name__)

Persist = Callable[[str, dict[str, AvailabilityStatus]], Awaitable[object]]


class SessionMode(str, Enum):
    EDIT = "edit"
    VIEW = "view"


class EditSession:
    def __init__(
        self,
        user_name: str,
        cells: Mapping[str, AvailabilityStatus] | None = None,
        *,
        has_existing_data: bool = False,
        valid_cells: frozenset[str] | None = None,
    ) -> None:
        self.user_name = user_name.strip()
        self.cells: dict[str, AvailabilityStatus] = dict(cells or {})
        self._saved: dict[str, AvailabilityStatus] = dict(self.cells) if has_existing_data else {}
        self.has_existing_data = has_existing_data
        self.mode = SessionMode.VIEW if has_existing_data else SessionMode.EDIT
        self.paint_status = AvailabilityStatus.AVAILABLE
        self.valid_cells = valid_cells
        self.saving = False
        self._dragging = False
        self._touched: set[str] = set()

    @classmethod
    def begin(cls, store: AvailabilityStore, user_name: str) -> EditSession:
        if not user_name or not user_name.strip():
            raise ValidationError(detail="Please enter your name", field="user_name")
        if store.has_user(user_name):
            return cls(
                user_name,
                store.cells_for(user_name),
                has_existing_data=True,
                valid_cells=store.valid_cells,
            )
        return cls(user_name, valid_cells=store.valid_cells)

    @property
    def editing(self) -> bool:
        return self.mode is SessionMode.EDIT

    @property
    def dragging(self) -> bool:
        return self._dragging

    def set_mode(self, mode: SessionMode | str) -> None:
        self.mode = SessionMode(mode)
        if not self.editing:
            self.end_gesture()

    def set_paint_status(self, status: AvailabilityStatus | str) -> None:
        self.paint_status = AvailabilityStatus(status)

    def status_of(self, cell_key: str) -> AvailabilityStatus | None:
        return self.cells.get(cell_key)

    def _apply(self, cell_key: str) -> AvailabilityStatus | None:
        current = self.cells.get(cell_key)
        if current is self.paint_status:
            del self.cells[cell_key]
            return None
        self.cells[cell_key] = self.paint_status
        return self.paint_status

    def _paintable(self, cell_key: str) -> bool:
        if not self.editing:
            return False
        return self.valid_cells is None or cell_key in self.valid_cells

    def pointer_down(self, cell_key: str) -> AvailabilityStatus | None:
        self._dragging = True
        self._touched = {cell_key}
        if not self._paintable(cell_key):
            return self.cells.get(cell_key)
        return self._apply(cell_key)

    def pointer_enter(self, cell_key: str) -> AvailabilityStatus | None:
        if not self._dragging or cell_key in self._touched:
            return self.cells.get(cell_key)
        self._touched.add(cell_key)
        if not self._paintable(cell_key):
            return self.cells.get(cell_key)
        return self._apply(cell_key)

    def end_gesture(self) -> None:
        self._dragging = False
        self._touched = set()

    pointer_up = end_gesture
    pointer_leave = end_gesture

    def paint_cell(self, cell_key: str, gesture_start: bool = False) -> AvailabilityStatus | None:
        """Apply one input event and return the cell's resulting status."""
        if gesture_start:
            return self.pointer_down(cell_key)
        return self.pointer_enter(cell_key)

    def apply_gesture(self, events: Iterable[tuple[str, bool]]) -> None:
        """Replay one complete gesture, then release the pointer."""
        try:
            for cell_key, gesture_start in events:
                self.paint_cell(cell_key, gesture_start)
        finally:
            self.end_gesture()

    def replace_cells(self, cells: Mapping[str, AvailabilityStatus | str]) -> None:
        if self.valid_cells is not None:
            for key in cells:
                if key not in self.valid_cells:
                    raise ValidationError(detail=f"Invalid slot: {key}", field="cells")
        self.cells = {key: AvailabilityStatus(status) for key, status in cells.items()}

    def cancel(self) -> None:
        """Discard unsaved edits and return to view mode.

        A returning participant gets their last saved cells back; a participant
        who never saved ends up with an empty map.
        """
        self.cells = dict(self._saved)
        self.mode = SessionMode.VIEW
        self.end_gesture()

    async def save(self, persist: Persist) -> dict[str, AvailabilityStatus]:
        """Hand the pending map to ``persist`` and switch to view mode on success."""
        if not self.user_name:
            raise ValidationError(detail="Please enter your name", field="user_name")
        if not self.cells:
            raise ValidationError(detail="Please select at least one time slot", field="cells")
        if self.saving:
            raise SaveInProgressError(user_name=self.user_name)
        self.saving = True
        snapshot = dict(self.cells)
        try:
            await persist(self.user_name, snapshot)
        except APIError:
            raise
        except Exception as e:
            logger.exception("Saving availability for %s failed", self.user_name)
            raise PersistenceError(detail=f"Failed to save availability: {e}") from e
        finally:
            self.saving = False
        self._saved = dict(snapshot)
        self.mode = SessionMode.VIEW
        self.has_existing_data = True
        self.end_gesture()
        logger.info("Saved %d cells for %s", len(snapshot), self.user_name)
        return snapshot
