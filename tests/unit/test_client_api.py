"""
Unit tests for the requests-based API client and its session handling.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest
import requests

from cureconnect.client.api import SESSION_EXPIRED_MESSAGE, ApiError, CureConnectAPI
from cureconnect.client.session import ClientSession

BASE_URL = "http://api.test"


def _response(status_code=200, body=None, content=b""):
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.content = content
    if body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


def _ok(data=None, message="OK"):
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return _response(200, body)


AUTH_DATA = {
    "token": "tok-123",
    "user": {
        "id": "doc-1",
        "name": "Gregory House",
        "email": "house@example.com",
        "role": "doctor",
        "status": "suspended",
    },
    "expires_in": 3600,
}

APPOINTMENT_JSON = {
    "id": "appt-1",
    "patient_id": "p1",
    "doctor_id": "doc-1",
    "patient_name": "Jane Patient",
    "doctor_name": "Gregory House",
    "date": "2030-01-14",
    "time": "9:30 AM",
    "status": "pending",
    "follow_up": False,
    "feedback": None,
}


@pytest.fixture
def http():
    return Mock(spec=requests.Session)


@pytest.fixture
def api(http):
    return CureConnectAPI(BASE_URL, timeout=3, http=http)


@pytest.mark.unit
class TestClientSession:
    def test_from_auth_payload(self):
        now = datetime(2030, 1, 1, tzinfo=timezone.utc)

        session = ClientSession.from_auth_payload(AUTH_DATA, now=now)

        assert session.token == "tok-123"
        assert session.is_doctor
        assert session.is_suspended
        assert session.expires_at == now + timedelta(hours=1)
        assert not session.is_expired(now)
        assert session.is_expired(now + timedelta(hours=2))
        assert session.auth_headers() == {"Authorization": "Bearer tok-123"}

    def test_only_doctors_are_suspended(self):
        data = {**AUTH_DATA, "user": {**AUTH_DATA["user"], "role": "patient"}}

        assert not ClientSession.from_auth_payload(data).is_suspended


@pytest.mark.unit
class TestTransport:
    def test_login_stores_session_and_sends_bearer(self, api, http):
        http.request.side_effect = [_ok(AUTH_DATA), _ok([APPOINTMENT_JSON])]

        session = api.login("house@example.com", "secret123")
        appointments = api.list_appointments(on_date="2030-01-14")

        assert api.session is session
        login_call, list_call = http.request.call_args_list
        assert login_call.args == ("POST", f"{BASE_URL}/api/auth/login")
        assert "Authorization" not in login_call.kwargs["headers"]
        assert list_call.kwargs["headers"]["Authorization"] == "Bearer tok-123"
        assert list_call.kwargs["params"] == {"date": "2030-01-14"}
        assert list_call.kwargs["timeout"] == 3
        assert appointments[0].time == "9:30 AM"
        assert appointments[0].date.isoformat() == "2030-01-14"

    def test_network_failure_becomes_network_error(self, api, http):
        http.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(ApiError) as exc_info:
            api.list_time_slots()

        assert exc_info.value.is_network
        assert exc_info.value.status_code is None

    @pytest.mark.parametrize(
        "status,kind",
        [
            (400, "validation"),
            (401, "unauthorized"),
            (403, "forbidden"),
            (404, "not_found"),
            (409, "conflict"),
            (429, "rate_limited"),
            (500, "server"),
        ],
    )
    def test_http_errors_keep_server_message(self, api, http, status, kind):
        http.request.return_value = _response(
            status, {"success": False, "message": "Nope", "error": kind}
        )

        with pytest.raises(ApiError) as exc_info:
            api.list_doctors()

        assert exc_info.value.kind == kind
        assert exc_info.value.message == "Nope"
        assert exc_info.value.status_code == status

    def test_error_without_json_body(self, api, http):
        http.request.return_value = _response(502)

        with pytest.raises(ApiError) as exc_info:
            api.list_doctors()

        assert exc_info.value.message == "Request failed (502)"

    def test_logout_clears_session_even_on_failure(self, api, http):
        http.request.side_effect = [_ok(AUTH_DATA), requests.Timeout("slow")]
        api.login("house@example.com", "secret123")

        with pytest.raises(ApiError):
            api.logout()

        assert api.session is None

    def test_expired_session_is_dropped_before_sending(self, api, http):
        api.session = ClientSession(
            token="tok-old",
            user_id="doc-1",
            role="doctor",
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
        )

        with pytest.raises(ApiError) as exc_info:
            api.list_appointments()

        assert exc_info.value.kind == "unauthorized"
        assert exc_info.value.message == SESSION_EXPIRED_MESSAGE
        assert api.session is None
        http.request.assert_not_called()

    def test_logout_of_expired_session_skips_server(self, api, http):
        api.session = ClientSession(
            token="tok-old",
            user_id="doc-1",
            role="doctor",
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
        )

        api.logout()

        assert api.session is None
        http.request.assert_not_called()

    def test_public_calls_ignore_expired_session(self, api, http):
        http.request.return_value = _ok(["9:00 AM"])
        api.session = ClientSession(
            token="tok-old",
            user_id="doc-1",
            role="doctor",
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
        )

        assert api.list_time_slots() == ["9:00 AM"]

    def test_download_returns_raw_bytes(self, api, http):
        http.request.return_value = _response(200, content=b"%PDF-1.4 ...")

        assert api.download_prescription("rx-1") == b"%PDF-1.4 ..."
        assert http.request.call_args.args == (
            "GET",
            f"{BASE_URL}/api/prescriptions/rx-1/download",
        )

    def test_availability_passes_exclude_id(self, api, http):
        http.request.return_value = _ok({"available_slots": ["9:00 AM"]})

        api.get_availability("doc-1", "2030-01-14", exclude_id="appt-1")

        assert http.request.call_args.kwargs["params"] == {
            "doctor_id": "doc-1",
            "date": "2030-01-14",
            "exclude_id": "appt-1",
        }
