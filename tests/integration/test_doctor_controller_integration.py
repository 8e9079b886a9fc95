"""
Integration tests for the doctor directory and admin doctor management,
including what a suspension does to the doctor's appointments.
"""

import pytest

from cureconnect.domain.lifecycle import SUSPENDED_MESSAGE
from cureconnect.services.appointment_service import DOCTOR_UNAVAILABLE_MESSAGE


@pytest.mark.integration
@pytest.mark.controllers
class TestDirectory:
    def test_public_list_shows_active_doctors_only(self, api, client, response_helper):
        api.register_doctor("Lisa Cuddy", "cuddy@example.com")
        active_id, _ = api.active_doctor()

        body = response_helper.assert_json_response(client.get("/api/doctors"))

        assert [d["id"] for d in body["data"]] == [active_id]

    def test_admin_filters_by_status(self, api, client, response_helper):
        pending_id = api.register_doctor("Lisa Cuddy", "cuddy@example.com")
        api.active_doctor()

        body = response_helper.assert_json_response(
            client.get(
                "/api/doctors?status=pending", headers=api.headers(api.admin_token())
            )
        )

        assert [d["id"] for d in body["data"]] == [pending_id]

    def test_filter_by_specialization(self, api, client, response_helper):
        api.active_doctor()
        api.active_doctor(
            "James Wilson", "wilson@example.com", specialization="Oncology"
        )

        body = response_helper.assert_json_response(
            client.get("/api/doctors/search?specialization=Oncology")
        )

        assert [d["name"] for d in body["data"]] == ["James Wilson"]

    def test_pending_doctor_profile_is_hidden(self, api, client, response_helper):
        pending_id = api.register_doctor()

        response_helper.assert_error(client.get(f"/api/doctors/{pending_id}"), 404)

    def test_doctor_edits_own_profile_only(self, api, client, response_helper):
        doctor_id, token = api.active_doctor()
        other_id, _ = api.active_doctor("James Wilson", "wilson@example.com")

        body = response_helper.assert_json_response(
            client.put(
                f"/api/doctors/{doctor_id}",
                json={"bio": "Diagnostician", "fees": 200},
                headers=api.headers(token),
            )
        )
        assert body["data"]["bio"] == "Diagnostician"
        assert body["data"]["email"] == "house@example.com"

        response_helper.assert_error(
            client.put(
                f"/api/doctors/{other_id}",
                json={"bio": "Not mine"},
                headers=api.headers(token),
            ),
            403,
        )

    def test_invalid_working_day(self, api, client, response_helper):
        doctor_id, token = api.active_doctor()

        response_helper.assert_error(
            client.patch(
                f"/api/doctors/{doctor_id}/availability",
                json={"available_days": ["Funday"]},
                headers=api.headers(token),
            ),
            400,
        )


@pytest.mark.integration
@pytest.mark.controllers
class TestDoctorStatus:
    def test_only_admin_changes_status(self, api, client, response_helper):
        doctor_id = api.register_doctor()
        _, patient_token = api.register_patient()

        response_helper.assert_error(
            client.patch(
                f"/api/doctors/{doctor_id}/status",
                json={"status": "active"},
                headers=api.headers(patient_token),
            ),
            403,
        )

    def test_invalid_status(self, api, response_helper):
        doctor_id = api.register_doctor()

        response_helper.assert_error(api.set_doctor_status(doctor_id, "retired"), 400)

    def test_suspension_cancels_open_appointments(
        self, api, client, next_monday, response_helper
    ):
        doctor_id, doctor_token = api.active_doctor()
        _, patient_token = api.register_patient()
        pending = api.book(patient_token, doctor_id, next_monday, "9:00 AM")
        confirmed = api.book(patient_token, doctor_id, next_monday, "9:30 AM")
        confirmed_id = confirmed.get_json()["data"]["id"]
        client.put(
            f"/api/appointments/{confirmed_id}/status",
            json={"status": "confirmed"},
            headers=api.headers(doctor_token),
        )

        body = response_helper.assert_json_response(
            api.set_doctor_status(doctor_id, "suspended", reason="License review")
        )
        assert body["data"]["status"] == "suspended"

        listed = response_helper.assert_json_response(
            client.get("/api/appointments", headers=api.headers(patient_token))
        )
        by_id = {a["id"]: a for a in listed["data"]}
        for appointment_id in (pending.get_json()["data"]["id"], confirmed_id):
            assert by_id[appointment_id]["status"] == "cancelled"
            assert "License review" in by_id[appointment_id]["notes"]

    def test_suspended_doctor_is_read_only(
        self, api, client, next_monday, response_helper
    ):
        doctor_id, doctor_token = api.active_doctor()
        _, patient_token = api.register_patient()
        api.set_doctor_status(doctor_id, "suspended")
        doctor_token = api.token_for("house@example.com")

        response_helper.assert_json_response(
            client.get("/api/appointments", headers=api.headers(doctor_token))
        )
        body = response_helper.assert_error(
            client.patch(
                f"/api/doctors/{doctor_id}/availability",
                json={"available_days": ["Monday"]},
                headers=api.headers(doctor_token),
            ),
            403,
        )
        assert body["message"] == SUSPENDED_MESSAGE

        body = response_helper.assert_error(
            api.book(patient_token, doctor_id, next_monday), 409, "conflict"
        )
        assert body["message"] == DOCTOR_UNAVAILABLE_MESSAGE

    def test_existing_token_sees_suspension(
        self, api, client, next_monday, response_helper
    ):
        doctor_id, doctor_token = api.active_doctor()
        _, patient_token = api.register_patient()
        appointment_id = api.book(patient_token, doctor_id, next_monday).get_json()[
            "data"
        ]["id"]
        api.set_doctor_status(doctor_id, "suspended")

        for path, method in (
            (f"/api/appointments/{appointment_id}/status", client.put),
            (f"/api/appointments/{appointment_id}/complete", client.put),
        ):
            body = response_helper.assert_error(
                method(path, json={"status": "confirmed"}, headers=api.headers(doctor_token)),
                403,
            )
            assert body["message"] == SUSPENDED_MESSAGE

    def test_delete_doctor(self, api, client, response_helper):
        doctor_id, _ = api.active_doctor()

        response_helper.assert_json_response(
            client.delete(
                f"/api/doctors/{doctor_id}", headers=api.headers(api.admin_token())
            )
        )

        response_helper.assert_error(client.get(f"/api/doctors/{doctor_id}"), 404)
