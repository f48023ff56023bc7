import pytest

from pedident.services import chart_store


def _patient(db, ic_number="100101-01-0001"):
    return chart_store.create_patient(db, name="Test Patient", ic_number=ic_number, dentist="Dr A")


def test_create_patient_rejects_duplicate_ic_number(db_session):
    _patient(db_session)
    with pytest.raises(chart_store.PatientConflictError):
        _patient(db_session)


def test_patient_lookups(db_session):
    patient = _patient(db_session)
    assert chart_store.get_patient(db_session, patient.id).ic_number == "100101-01-0001"
    assert chart_store.get_patient_by_ic_number(db_session, "100101-01-0001").id == patient.id
    assert chart_store.get_patient(db_session, "missing") is None
    assert chart_store.get_patient_by_ic_number(db_session, "missing") is None


def test_chart_lifecycle(db_session):
    patient = _patient(db_session)
    chart = chart_store.create_chart(db_session, patient_id=patient.id)
    assert chart.tooth_states == {}
    assert chart_store.get_chart_by_patient(db_session, patient.id).id == chart.id

    records = {"26": {"state": "sound", "surfaces": {"distal": "prosthesis"}}}
    updated = chart_store.update_chart(db_session, chart.id, tooth_states=records)
    assert updated.tooth_states == records
    assert updated.is_completed is False
    assert chart_store.get_chart(db_session, chart.id).tooth_states == records


def test_update_missing_chart_raises(db_session):
    with pytest.raises(chart_store.ChartNotFoundError):
        chart_store.update_chart(db_session, "missing", is_completed=True)


def test_create_chart_for_unknown_patient_raises(db_session):
    with pytest.raises(chart_store.PatientNotFoundError):
        chart_store.create_chart(db_session, patient_id="missing")


def test_stored_records_must_be_in_catalog(db_session):
    patient = _patient(db_session)
    with pytest.raises(ValueError):
        chart_store.create_chart(
            db_session, patient_id=patient.id, tooth_states={"11": {"state": "broken"}}
        )


def test_save_chart_for_patient_creates_then_updates(db_session):
    patient = _patient(db_session)
    first = chart_store.save_chart_for_patient(
        db_session, patient.id, {"11": {"state": "sound"}}, is_completed=False
    )
    second = chart_store.save_chart_for_patient(
        db_session, patient.id, {"11": {"state": "missing"}}, is_completed=True
    )
    assert first.id == second.id
    assert second.tooth_states == {"11": {"state": "missing"}}
    assert second.is_completed is True
