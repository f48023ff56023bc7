def test_create_patient_defaults_location(api_client):
    res = api_client.post(
        "/patients",
        json={"name": "Hafiz Ismail", "ic_number": "120304-14-5555", "dentist": "Dr Tan"},
    )
    assert res.status_code == 201, res.text
    data = res.json()
    assert data["location"] == "Faculty"
    assert data["ic_number"] == "120304-14-5555"
    assert data["id"]
    assert data["created_at"]


def test_duplicate_ic_number_is_rejected(api_client, patient):
    res = api_client.post(
        "/patients",
        json={"name": "Someone Else", "ic_number": patient["ic_number"], "dentist": "Dr Lee"},
    )
    assert res.status_code == 409
    assert res.json()["detail"] == "Patient with this IC number already exists"


def test_get_patient_by_id_and_ic_number(api_client, patient):
    by_id = api_client.get(f"/patients/{patient['id']}")
    assert by_id.status_code == 200
    assert by_id.json() == patient

    by_ic = api_client.get(f"/patients/ic/{patient['ic_number']}")
    assert by_ic.status_code == 200
    assert by_ic.json()["id"] == patient["id"]


def test_unknown_patient_returns_404(api_client):
    assert api_client.get("/patients/does-not-exist").status_code == 404
    assert api_client.get("/patients/ic/000000-00-0000").status_code == 404


def test_blank_required_fields_are_rejected(api_client):
    res = api_client.post("/patients", json={"name": "  ", "ic_number": "1", "dentist": "Dr X"})
    assert res.status_code == 422
