"""Tests for per-cell aggregation."""

from comit.scheduling import (
    AvailabilityStore,
    EditSession,
    StatusCounts,
    cell_view,
    dominant_status,
    effective_status,
    preview_counts,
    status_counts,
)
from comit.scheduling.aggregation import no_response
from comit.tests.factories import A, M, U, key, row


def _store():
    return AvailabilityStore.from_raw([
        row("Alice", {key(9, 0): A, key(9, 15): A}),
        row("Bob", {key(9, 0): M, key(9, 15): U}),
        row("Carol", {key(9, 0): A}),
        row("dave", {key(10, 0): U}),
    ])


def test_status_counts_per_cell():
    counts = status_counts(_store(), key(9, 0))
    assert counts.available == {"Alice", "Carol"}
    assert counts.if_needed == {"Bob"}
    assert counts.unavailable == set()
    assert counts.as_dict() == {"available": 2, "if-needed": 1, "unavailable": 0}


def test_counts_plus_no_response_equal_known_users():
    store = _store()
    for cell in (key(9, 0), key(9, 15), key(10, 0), key(16, 45)):
        counts = status_counts(store, cell)
        assert counts.total + len(no_response(store, counts)) == len(store.distinct_users())


def test_exclude_user_is_case_insensitive():
    counts = status_counts(_store(), key(9, 0), exclude_user="ALICE")
    assert counts.available == {"Carol"}


def test_dominant_status_and_ties():
    assert dominant_status(StatusCounts()) is None
    assert dominant_status(StatusCounts(available=frozenset({"a"}), unavailable=frozenset({"b", "c"}))) is U
    assert dominant_status(StatusCounts(available=frozenset({"a"}), if_needed=frozenset({"b"}))) is A
    assert dominant_status(StatusCounts(if_needed=frozenset({"a"}), unavailable=frozenset({"b"}))) is M


def test_preview_replaces_editor_stored_answer():
    store = _store()
    session = EditSession.begin(store, "alice")
    session.set_mode("edit")
    session.set_paint_status(U)
    session.paint_cell(key(9, 0), gesture_start=True)
    counts = preview_counts(store, key(9, 0), session)
    assert counts.available == {"Carol"}
    assert counts.unavailable == {"Alice"}
    # stored data is untouched
    assert status_counts(store, key(9, 0)).available == {"Alice", "Carol"}


def test_preview_uses_stored_casing_for_returning_editor():
    store = _store()
    session = EditSession.begin(store, "DAVE")
    session.set_mode("edit")
    session.paint_cell(key(10, 0), gesture_start=True)
    assert preview_counts(store, key(10, 0), session).available == {"dave"}
    assert cell_view(store, key(10, 0), session).counts.available == {"dave"}

    newcomer = EditSession.begin(store, " Eve ")
    newcomer.paint_cell(key(10, 0), gesture_start=True)
    assert preview_counts(store, key(10, 0), newcomer).available == {"Eve"}


def test_cell_view_for_editor():
    store = _store()
    session = EditSession.begin(store, "Eve")
    session.paint_cell(key(9, 15), gesture_start=True)
    view = cell_view(store, key(9, 15), session)
    assert view.is_selected_by_editor is True
    assert view.editor_status is A
    assert view.counts.available == {"Alice", "Eve"}
    assert view.dominant_status is A
    assert effective_status(key(9, 30), session) is None


def test_cell_view_without_session():
    view = cell_view(_store(), key(10, 0))
    assert view.dominant_status is U
    assert view.is_selected_by_editor is False
    assert effective_status(key(10, 0), None) is None
