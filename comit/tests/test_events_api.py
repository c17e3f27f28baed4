from comit.tests.factories import DAY, key


def _create(client, **overrides):
    payload = {"title": "Team sync", "dates": ["2025-01-07", DAY], "start_hour": 9, "end_hour": 12}
    payload.update(overrides)
    res = client.post("/events", json=payload)
    assert res.status_code == 201, res.text
    return res.json()


def _save(client, event_id, name, cells):
    return client.put(f"/events/{event_id}/availability", json={"participant_name": name, "cells": cells})


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok", "storage": "memory"}


def test_create_and_get_event(client):
    event = _create(client, description="weekly")
    assert len(event["id"]) == 10
    assert [w["date"] for w in event["windows"]] == [DAY, "2025-01-07"]

    res = client.get(f"/events/{event['id']}")
    assert res.status_code == 200
    body = res.json()
    assert body["event"]["title"] == "Team sync"
    assert body["grid"]["dates"] == [DAY, "2025-01-07"]
    assert body["grid"]["time_slots_of_day"][0] == [9, 0]
    assert len(body["grid"]["valid_cells"]) == 24


def test_create_event_validation(client):
    assert client.post("/events", json={"title": " ", "dates": [DAY]}).status_code == 422
    assert client.post("/events", json={"title": "x", "dates": []}).status_code == 422
    assert client.post("/events", json={"title": "x", "dates": [DAY], "start_hour": 17, "end_hour": 9}).status_code == 422


def test_unknown_event(client):
    res = client.get("/events/nope")
    assert res.status_code == 404
    assert res.json()["error"] == "not_found"


def test_save_and_begin_editing(client):
    event = _create(client)
    res = _save(client, event["id"], "Alice", {key(9, 0): "available", key(9, 15): "if-needed"})
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["mode"] == "view"
    assert body["has_existing_data"] is True

    res = client.get(f"/events/{event['id']}/participants/alice")
    assert res.status_code == 200
    body = res.json()
    assert body["mode"] == "view"
    assert body["cells"] == {key(9, 0): "available", key(9, 15): "if-needed"}

    res = client.get(f"/events/{event['id']}/participants/Carol")
    assert res.json()["mode"] == "edit"
    assert res.json()["has_existing_data"] is False


def test_save_rejects_empty_selection_and_foreign_cells(client):
    event = _create(client)
    res = _save(client, event["id"], "Alice", {})
    assert res.status_code == 400
    assert res.json()["error"] == "validation_error"

    res = _save(client, event["id"], "Alice", {key(20, 0): "available"})
    assert res.status_code == 400

    res = _save(client, event["id"], "Alice", {key(9, 0): "maybe"})
    assert res.status_code == 422


def test_availability_listing(client):
    event = _create(client)
    _save(client, event["id"], "Alice", {key(9, 0): "available"})
    _save(client, event["id"], "Bob", {key(9, 0): "unavailable"})
    res = client.get(f"/events/{event['id']}/availability")
    assert res.status_code == 200
    body = res.json()
    assert body["participants"] == ["Alice", "Bob"]
    assert len(body["records"]) == 2
    assert body["dropped"] == 0


def test_cell_view_and_preview(client):
    event = _create(client)
    _save(client, event["id"], "Alice", {key(9, 0): "available"})
    _save(client, event["id"], "Bob", {key(9, 0): "unavailable"})

    res = client.get(f"/events/{event['id']}/cells/{key(9, 0)}", params={"participant_name": "bob"})
    body = res.json()
    assert body["counts"] == {"available": 1, "if-needed": 0, "unavailable": 1}
    assert body["dominant_status"] == "available"
    assert body["is_selected_by_editor"] is True
    assert body["editor_status"] == "unavailable"

    res = client.post(
        f"/events/{event['id']}/preview",
        json={"participant_name": "Bob", "cells": {key(9, 0): "available"}},
    )
    assert res.status_code == 200
    cells = {c["cell_key"]: c for c in res.json()["cells"]}
    assert len(cells) == 24
    assert cells[key(9, 0)]["users"]["available"] == ["Alice", "Bob"]
    # the preview is not persisted
    res = client.get(f"/events/{event['id']}/cells/{key(9, 0)}")
    assert res.json()["users"]["unavailable"] == ["Bob"]

    assert client.get(f"/events/{event['id']}/cells/bad-key").status_code == 400


def test_best_times(client):
    event = _create(client)
    _save(client, event["id"], "Alice", {key(9, 0): "available", key(9, 15): "available"})
    _save(client, event["id"], "Bob", {key(9, 0): "available", key(9, 15): "unavailable"})

    res = client.get(f"/events/{event['id']}/best-times", params={"duration_minutes": 30})
    assert res.status_code == 200
    body = res.json()
    assert len(body["candidates"]) == 1
    candidate = body["candidates"][0]
    assert candidate["score"] == -10
    assert candidate["available_users"] == ["Alice"]
    assert candidate["unavailable_users"] == ["Bob"]
    assert (candidate["end_hour"], candidate["end_minute"]) == (9, 30)

    res = client.get(f"/events/{event['id']}/best-times", params={"duration_minutes": 15, "start_date": "2025-01-07"})
    assert res.json()["candidates"] == []


def test_best_times_rejects_zero_duration(client):
    event = _create(client)
    res = client.get(f"/events/{event['id']}/best-times", params={"duration_minutes": 0})
    assert res.status_code == 400
    assert res.json()["error"] == "validation_error"
