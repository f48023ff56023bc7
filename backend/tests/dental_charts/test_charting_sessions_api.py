import pytest
from sqlalchemy.exc import OperationalError

from pedident.routers import charting_sessions
from pedident.services import chart_store
from pedident.services.charting_registry import ChartingSessionRegistry


def _open(api_client, **payload):
    res = api_client.post("/charting-sessions", json=payload)
    assert res.status_code == 201, res.text
    return res.json()


def test_open_session_without_patient(api_client):
    session = _open(api_client)
    assert session["current_tooth"] == "55"
    assert session["dentition"] == "deciduous"
    assert session["mode"] == "whole-tooth"
    assert session["progress"] == 1
    assert session["total_teeth"] == 52

    fetched = api_client.get(f"/charting-sessions/{session['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["id"] == session["id"]


def test_commands_drive_the_session(api_client):
    session = _open(api_client)
    url = f"/charting-sessions/{session['id']}/commands"
    res = api_client.post(url, json={"command": "record", "state": "carious"})
    assert res.status_code == 200, res.text
    data = res.json()
    assert data["result"] == "advanced"
    assert data["current_tooth"] == "54"
    assert data["tooth_states"] == {"55": {"state": "carious"}}

    data = api_client.post(url, json={"command": "toggle_granularity"}).json()
    assert data["mode"] == "per-surface"
    data = api_client.post(url, json={"command": "select_surface", "surface": "occlusal"}).json()
    assert data["selected_surfaces"] == ["occlusal"]
    data = api_client.post(url, json={"command": "confirm_surfaces"}).json()
    assert data["tooth_states"]["54"] == {"state": "sound", "surfaces": {"occlusal": "carious"}}
    assert data["current_tooth"] == "53"


def test_bad_command_arguments_are_rejected(api_client):
    session = _open(api_client)
    url = f"/charting-sessions/{session['id']}/commands"
    assert api_client.post(url, json={"command": "jump_to", "tooth": "99"}).status_code == 400
    assert api_client.post(url, json={"command": "record"}).status_code == 400
    assert api_client.post(url, json={"command": "explode"}).status_code == 422


def test_keys_use_legacy_bindings(api_client):
    session = _open(api_client)
    url = f"/charting-sessions/{session['id']}/keys"
    data = api_client.post(url, json={"key": "5"}).json()
    assert data["tooth_states"] == {"55": {"state": "carious"}}
    assert data["result"] == "record"
    data = api_client.post(url, json={"key": "1"}).json()
    assert data["current_tooth"] == "18"
    data = api_client.post(url, json={"key": "z"}).json()
    assert data["result"] is None


def test_finishing_saves_chart_for_patient(api_client, patient):
    session = _open(api_client, patient_id=patient["id"])
    assert session["chart_id"] is None
    keys = f"/charting-sessions/{session['id']}/keys"
    api_client.post(keys, json={"key": "4"})
    api_client.post(keys, json={"key": "1"})
    data = api_client.post(keys, json={"key": "1"}).json()
    assert data["completed"] is True
    assert data["chart_id"]

    chart = api_client.get(f"/dental-charts/patient/{patient['id']}").json()
    assert chart["id"] == data["chart_id"]
    assert chart["tooth_states"] == {"55": {"state": "missing"}}
    assert chart["is_completed"] is True


def test_session_resumes_from_stored_chart(api_client, patient):
    created = api_client.post(
        "/dental-charts",
        json={"patient_id": patient["id"], "tooth_states": {"16": {"state": "prosthesis"}}},
    ).json()
    session = _open(api_client, patient_id=patient["id"])
    assert session["chart_id"] == created["id"]
    assert session["tooth_states"] == {"16": {"state": "prosthesis"}}

    url = f"/charting-sessions/{session['id']}/commands"
    api_client.post(url, json={"command": "jump_to", "tooth": "48"})
    data = api_client.post(url, json={"command": "record", "state": "sound"}).json()
    assert data["result"] == "completed"

    chart = api_client.get(f"/dental-charts/{created['id']}").json()
    assert chart["tooth_states"] == {"16": {"state": "prosthesis"}, "48": {"state": "sound"}}
    assert chart["is_completed"] is True


def test_session_for_unknown_patient_and_closed_sessions(api_client):
    assert api_client.post("/charting-sessions", json={"patient_id": "ghost"}).status_code == 404
    session = _open(api_client)
    assert api_client.delete(f"/charting-sessions/{session['id']}").status_code == 204
    assert api_client.get(f"/charting-sessions/{session['id']}").status_code == 404
    assert api_client.delete(f"/charting-sessions/{session['id']}").status_code == 404


def test_failed_save_is_retried_on_the_next_command(db_session, monkeypatch):
    patient = chart_store.create_patient(
        db_session, name="Hafiz Bin Osman", ic_number="160202-14-5678", dentist="Dr Tan"
    )
    entry = ChartingSessionRegistry().open(patient_id=patient.id)
    entry.session.record_whole_tooth("carious")
    entry.session.finish()

    def _fail(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(chart_store, "save_chart_for_patient", _fail)
    with pytest.raises(OperationalError):
        charting_sessions._save_if_finished(db_session, entry)
    assert entry.has_unsaved_finish is True
    assert entry.chart_id is None

    monkeypatch.undo()
    charting_sessions._save_if_finished(db_session, entry)
    assert entry.has_unsaved_finish is False
    chart = chart_store.get_chart_by_patient(db_session, patient.id)
    assert chart.id == entry.chart_id
    assert chart.tooth_states == {"55": {"state": "carious"}}
    assert chart.is_completed is True
