"""
Integration tests for prescriptions: creation after a completed visit, the
per-appointment upsert, status changes and the PDF download.
"""

import pytest

from cureconnect.domain.prescriptions import DUPLICATE_MESSAGE

MEDICATIONS = [
    {
        "name": "Aspirin",
        "dosage": "100mg",
        "frequency": "Once daily",
        "duration": "30 days",
    }
]


@pytest.fixture
def visit(api, client, next_monday):
    """A completed appointment plus the tokens of everyone involved."""
    doctor_id, doctor_token = api.active_doctor()
    patient_id, patient_token = api.register_patient()
    appointment_id = api.book(patient_token, doctor_id, next_monday).get_json()["data"][
        "id"
    ]
    client.put(
        f"/api/appointments/{appointment_id}/status",
        json={"status": "confirmed"},
        headers=api.headers(doctor_token),
    )
    response = client.put(
        f"/api/appointments/{appointment_id}/complete",
        headers=api.headers(doctor_token),
    )
    assert response.status_code == 200, response.get_json()
    return {
        "appointment_id": appointment_id,
        "doctor_id": doctor_id,
        "doctor_token": doctor_token,
        "patient_id": patient_id,
        "patient_token": patient_token,
    }


def _create(client, api, token, appointment_id, **extra):
    payload = {"appointment_id": appointment_id, "medications": MEDICATIONS}
    payload.update(extra)
    return client.post("/api/prescriptions", json=payload, headers=api.headers(token))


@pytest.mark.integration
class TestPrescriptionCreation:
    def test_create_and_list(self, api, client, visit, response_helper):
        body = response_helper.assert_json_response(
            _create(
                client,
                api,
                visit["doctor_token"],
                visit["appointment_id"],
                notes="After meals",
                follow_up_date="2030-01-15",
            ),
            201,
        )
        prescription = body["data"]
        assert prescription["status"] == "active"
        assert prescription["patient_id"] == visit["patient_id"]
        assert prescription["medications"] == MEDICATIONS
        assert prescription["follow_up_date"] == "2030-01-15"

        listed = response_helper.assert_json_response(
            client.get("/api/prescriptions", headers=api.headers(visit["patient_token"]))
        )
        assert [p["id"] for p in listed["data"]] == [prescription["id"]]

    def test_second_prescription_is_a_conflict(self, api, client, visit, response_helper):
        _create(client, api, visit["doctor_token"], visit["appointment_id"])

        body = response_helper.assert_error(
            _create(client, api, visit["doctor_token"], visit["appointment_id"]), 409
        )
        assert body["message"] == DUPLICATE_MESSAGE

    def test_upsert_creates_then_replaces(self, api, client, visit, response_helper):
        url = f"/api/prescriptions/appointment/{visit['appointment_id']}"
        headers = api.headers(visit["doctor_token"])

        created = response_helper.assert_json_response(
            client.put(url, json={"medications": MEDICATIONS}, headers=headers), 201
        )
        replacement = [{**MEDICATIONS[0], "dosage": "200mg"}]
        updated = response_helper.assert_json_response(
            client.put(url, json={"medications": replacement}, headers=headers), 200
        )

        assert updated["data"]["id"] == created["data"]["id"]
        assert updated["data"]["medications"][0]["dosage"] == "200mg"

    def test_needs_completed_appointment(
        self, api, client, next_monday, response_helper
    ):
        doctor_id, doctor_token = api.active_doctor()
        _, patient_token = api.register_patient()
        appointment_id = api.book(patient_token, doctor_id, next_monday).get_json()[
            "data"
        ]["id"]

        response_helper.assert_error(
            _create(client, api, doctor_token, appointment_id), 409
        )

    def test_needs_a_medication(self, api, client, visit, response_helper):
        response_helper.assert_error(
            client.post(
                "/api/prescriptions",
                json={"appointment_id": visit["appointment_id"], "medications": []},
                headers=api.headers(visit["doctor_token"]),
            ),
            400,
        )

    def test_incomplete_medication(self, api, client, visit, response_helper):
        response_helper.assert_error(
            client.post(
                "/api/prescriptions",
                json={
                    "appointment_id": visit["appointment_id"],
                    "medications": [{"name": "Aspirin"}],
                },
                headers=api.headers(visit["doctor_token"]),
            ),
            400,
        )

    def test_patients_cannot_prescribe(self, api, client, visit, response_helper):
        response_helper.assert_error(
            _create(client, api, visit["patient_token"], visit["appointment_id"]), 403
        )

    def test_other_doctor_cannot_prescribe(self, api, client, visit, response_helper):
        _, other_token = api.active_doctor("James Wilson", "wilson@example.com")

        response_helper.assert_error(
            _create(client, api, other_token, visit["appointment_id"]), 403
        )

    def test_suspended_doctor_cannot_prescribe(
        self, api, client, visit, response_helper
    ):
        api.set_doctor_status(visit["doctor_id"], "suspended")

        response_helper.assert_error(
            _create(client, api, visit["doctor_token"], visit["appointment_id"]), 403
        )


@pytest.mark.integration
class TestPrescriptionLifecycle:
    def _prescription_id(self, client, api, visit):
        response = _create(client, api, visit["doctor_token"], visit["appointment_id"])
        assert response.status_code == 201, response.get_json()
        return response.get_json()["data"]["id"]

    def test_expire_sets_expiry_date(self, api, client, visit, response_helper):
        prescription_id = self._prescription_id(client, api, visit)

        body = response_helper.assert_json_response(
            client.put(
                f"/api/prescriptions/{prescription_id}/status",
                json={"status": "expired"},
                headers=api.headers(visit["doctor_token"]),
            )
        )

        assert body["data"]["status"] == "expired"
        assert body["data"]["expiry_date"] is not None

    def test_filter_by_status(self, api, client, visit, response_helper):
        self._prescription_id(client, api, visit)

        body = response_helper.assert_json_response(
            client.get(
                "/api/prescriptions?status=expired",
                headers=api.headers(visit["patient_token"]),
            )
        )

        assert body["data"] == []

    def test_patient_cannot_modify(self, api, client, visit, response_helper):
        prescription_id = self._prescription_id(client, api, visit)

        response_helper.assert_error(
            client.delete(
                f"/api/prescriptions/{prescription_id}",
                headers=api.headers(visit["patient_token"]),
            ),
            403,
        )

    def test_download_pdf(self, api, client, visit):
        prescription_id = self._prescription_id(client, api, visit)

        response = client.get(
            f"/api/prescriptions/{prescription_id}/download",
            headers=api.headers(visit["patient_token"]),
        )

        assert response.status_code == 200
        assert response.mimetype == "application/pdf"
        assert response.data.startswith(b"%PDF")
        assert f"prescription_{prescription_id}.pdf" in response.headers[
            "Content-Disposition"
        ]

    def test_other_patient_cannot_download(self, api, client, visit, response_helper):
        prescription_id = self._prescription_id(client, api, visit)
        _, other_token = api.register_patient("John Patient", "john@example.com")

        response_helper.assert_error(
            client.get(
                f"/api/prescriptions/{prescription_id}/download",
                headers=api.headers(other_token),
            ),
            403,
        )

    def test_delete(self, api, client, visit, response_helper):
        prescription_id = self._prescription_id(client, api, visit)

        response_helper.assert_json_response(
            client.delete(
                f"/api/prescriptions/{prescription_id}",
                headers=api.headers(visit["doctor_token"]),
            )
        )

        response_helper.assert_error(
            client.get(
                f"/api/prescriptions/{prescription_id}",
                headers=api.headers(visit["doctor_token"]),
            ),
            404,
        )
