"""
HTTP client for the CureConnect API.

Wraps ``requests`` with the bearer-token session, unwraps the
``{"success", "message", "data"}`` envelope and turns every failure into an
``ApiError``. Transport problems (connection refused, timeouts) become
``ApiError(kind="network")``; HTTP error responses keep the server's message.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from cureconnect.core.config import get_client_timeout
from cureconnect.domain.entities import Appointment, Medication, Prescription
from cureconnect.domain.scheduling import parse_iso_day

from .session import ClientSession

logger = logging.getLogger(__name__)

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."

_KIND_BY_STATUS = {
    400: "validation",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    409: "conflict",
    429: "rate_limited",
}


class ApiError(Exception):
    """A failed API call.

    Attributes:
        kind: ``network``, ``validation``, ``unauthorized``, ``forbidden``,
            ``not_found``, ``conflict``, ``rate_limited`` or ``server``
        message: Human-readable description (the server's when it sent one)
        status_code: HTTP status, None for network failures
    """

    def __init__(self, kind: str, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code

    @property
    def is_network(self) -> bool:
        return self.kind == "network"

    @classmethod
    def from_response(cls, response) -> "ApiError":
        try:
            body = response.json()
        except ValueError:
            body = {}
        message = ""
        if isinstance(body, dict):
            message = body.get("message") or ""
        kind = _KIND_BY_STATUS.get(response.status_code, "server")
        message = message or f"Request failed ({response.status_code})"
        return cls(kind, message, response.status_code)


def appointment_from_json(data: Dict[str, Any]) -> Appointment:
    """Rebuild a domain Appointment from its API representation."""
    feedback = data.get("feedback") or {}
    return Appointment(
        id=data.get("id"),
        patient_id=data.get("patient_id", ""),
        doctor_id=data.get("doctor_id", ""),
        patient_name=data.get("patient_name", ""),
        doctor_name=data.get("doctor_name", ""),
        date=parse_iso_day(data["date"]),
        time=data.get("time", ""),
        symptoms=data.get("symptoms"),
        notes=data.get("notes"),
        status=data.get("status", "pending"),
        follow_up=bool(data.get("follow_up")),
        meeting_link=data.get("meeting_link"),
        feedback_rating=feedback.get("rating"),
        feedback_comment=feedback.get("comment"),
    )


def prescription_from_json(data: Dict[str, Any]) -> Prescription:
    return Prescription(
        id=data.get("id"),
        appointment_id=data.get("appointment_id", ""),
        patient_id=data.get("patient_id", ""),
        doctor_id=data.get("doctor_id", ""),
        patient_name=data.get("patient_name", ""),
        doctor_name=data.get("doctor_name", ""),
        medications=[Medication(**m) for m in data.get("medications") or []],
        notes=data.get("notes"),
        status=data.get("status", "active"),
        follow_up_date=(
            parse_iso_day(data["follow_up_date"]) if data.get("follow_up_date") else None
        ),
        expiry_date=(
            parse_iso_day(data["expiry_date"]) if data.get("expiry_date") else None
        ),
    )


class CureConnectAPI:
    """Thin client over the JSON API.

    Usage:
        api = CureConnectAPI("http://localhost:5000")
        session = api.login("jane@example.com", "secret1")
        appointments = api.list_appointments()
        api.logout()
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else get_client_timeout()
        self.http = http or requests.Session()
        self.session: Optional[ClientSession] = None

    # ---- transport -------------------------------------------------------

    def _send(self, method: str, path: str, auth: bool = True, **kwargs):
        headers = kwargs.pop("headers", {})
        if auth and self.session is not None:
            if self.session.is_expired():
                self.session = None
                raise ApiError("unauthorized", SESSION_EXPIRED_MESSAGE)
            headers.update(self.session.auth_headers())

        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(
                method, url, headers=headers, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            logger.warning(
                "API request failed",
                extra={"context": {"method": method, "path": path, "error": str(e)}},
            )
            raise ApiError("network", "Network error. Please try again.") from e

        if response.status_code >= 400:
            error = ApiError.from_response(response)
            logger.info(
                "API request rejected",
                extra={
                    "context": {
                        "method": method,
                        "path": path,
                        "status_code": response.status_code,
                        "kind": error.kind,
                    }
                },
            )
            raise error
        return response

    def _request(self, method: str, path: str, auth: bool = True, **kwargs) -> Any:
        response = self._send(method, path, auth=auth, **kwargs)
        try:
            body = response.json()
        except ValueError:
            raise ApiError(
                "server", "Unexpected response from server", response.status_code
            ) from None
        return body.get("data") if isinstance(body, dict) else None

    # ---- auth ------------------------------------------------------------

    def register(
        self, name: str, email: str, password: str, role: str = "patient", **profile
    ) -> ClientSession:
        payload = {"name": name, "email": email, "password": password, "role": role}
        payload.update(profile)
        data = self._request("POST", "/api/auth/register", auth=False, json=payload)
        self.session = ClientSession.from_auth_payload(data)
        return self.session

    def login(self, email: str, password: str) -> ClientSession:
        data = self._request(
            "POST",
            "/api/auth/login",
            auth=False,
            json={"email": email, "password": password},
        )
        self.session = ClientSession.from_auth_payload(data)
        return self.session

    def logout(self) -> None:
        """Revoke the token server-side and forget the session either way."""
        if self.session is None:
            return
        if self.session.is_expired():
            self.session = None
            return
        try:
            self._request("POST", "/api/auth/logout")
        finally:
            self.session = None

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/api/auth/me")

    # ---- appointments ----------------------------------------------------

    def list_time_slots(self) -> List[str]:
        return self._request("GET", "/api/appointments/slots", auth=False)

    def list_appointments(
        self,
        doctor_id: Optional[str] = None,
        on_date: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Appointment]:
        params = {"doctor_id": doctor_id, "date": on_date, "status": status}
        data = self._request(
            "GET",
            "/api/appointments",
            params={k: v for k, v in params.items() if v},
        )
        return [appointment_from_json(item) for item in data or []]

    def get_availability(
        self, doctor_id: str, on_date: str, exclude_id: Optional[str] = None
    ) -> Dict[str, Any]:
        params = {"doctor_id": doctor_id, "date": on_date}
        if exclude_id:
            params["exclude_id"] = exclude_id
        return self._request("GET", "/api/appointments/availability", params=params)

    def book_appointment(
        self,
        doctor_id: str,
        on_date: str,
        time: str,
        symptoms: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Appointment:
        payload = {"doctor_id": doctor_id, "date": on_date, "time": time}
        if symptoms:
            payload["symptoms"] = symptoms
        if notes:
            payload["notes"] = notes
        data = self._request("POST", "/api/appointments", json=payload)
        return appointment_from_json(data)

    def reschedule_appointment(
        self, appointment_id: str, on_date: str, time: str
    ) -> Appointment:
        data = self._request(
            "PUT",
            f"/api/appointments/{appointment_id}/reschedule",
            json={"date": on_date, "time": time},
        )
        return appointment_from_json(data)

    def update_appointment_status(self, appointment_id: str, status: str) -> Appointment:
        data = self._request(
            "PUT", f"/api/appointments/{appointment_id}/status", json={"status": status}
        )
        return appointment_from_json(data)

    def complete_appointment(self, appointment_id: str) -> Appointment:
        data = self._request("PUT", f"/api/appointments/{appointment_id}/complete")
        return appointment_from_json(data)

    def update_appointment_details(self, appointment_id: str, **fields) -> Appointment:
        data = self._request(
            "PUT", f"/api/appointments/{appointment_id}/details", json=fields
        )
        return appointment_from_json(data)

    def submit_feedback(
        self, appointment_id: str, rating: int, comment: str
    ) -> Appointment:
        data = self._request(
            "POST",
            f"/api/appointments/{appointment_id}/feedback",
            json={"rating": rating, "comment": comment},
        )
        return appointment_from_json(data)

    def delete_appointment(self, appointment_id: str) -> None:
        self._request("DELETE", f"/api/appointments/{appointment_id}")

    # ---- doctors and patients --------------------------------------------

    def list_doctors(self, **filters) -> List[Dict[str, Any]]:
        params = {k: v for k, v in filters.items() if v is not None}
        return self._request("GET", "/api/doctors", params=params)

    def get_doctor(self, doctor_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/doctors/{doctor_id}")

    def update_doctor_status(
        self, doctor_id: str, status: str, reason: Optional[str] = None
    ) -> Dict[str, Any]:
        payload = {"status": status}
        if reason:
            payload["reason"] = reason
        return self._request("PATCH", f"/api/doctors/{doctor_id}/status", json=payload)

    def delete_doctor(self, doctor_id: str) -> None:
        self._request("DELETE", f"/api/doctors/{doctor_id}")

    def list_patients(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"status": status} if status else {}
        return self._request("GET", "/api/patients", params=params)

    # ---- prescriptions ---------------------------------------------------

    def list_prescriptions(self, **filters) -> List[Prescription]:
        params = {k: v for k, v in filters.items() if v}
        data = self._request("GET", "/api/prescriptions", params=params)
        return [prescription_from_json(item) for item in data or []]

    def create_prescription(
        self, appointment_id: str, medications: List[Dict[str, str]], **fields
    ) -> Prescription:
        payload = {"appointment_id": appointment_id, "medications": medications}
        payload.update(fields)
        data = self._request("POST", "/api/prescriptions", json=payload)
        return prescription_from_json(data)

    def update_prescription(self, prescription_id: str, **fields) -> Prescription:
        data = self._request("PUT", f"/api/prescriptions/{prescription_id}", json=fields)
        return prescription_from_json(data)

    def download_prescription(self, prescription_id: str) -> bytes:
        response = self._send("GET", f"/api/prescriptions/{prescription_id}/download")
        return response.content

    # ---- reviews and reports ---------------------------------------------

    def list_reviews(self, **filters) -> List[Dict[str, Any]]:
        params = {k: v for k, v in filters.items() if v}
        return self._request("GET", "/api/reviews", params=params)

    def create_review(
        self, appointment_id: str, rating: int, comment: str = ""
    ) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/api/reviews",
            json={"appointment_id": appointment_id, "rating": rating, "comment": comment},
        )

    def moderate_review(self, review_id: str, status: str) -> Dict[str, Any]:
        return self._request(
            "PATCH", f"/api/reviews/{review_id}/status", json={"status": status}
        )

    def list_reports(self, patient_id: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"patient_id": patient_id} if patient_id else {}
        return self._request("GET", "/api/reports", params=params)

    def create_report(self, **fields) -> Dict[str, Any]:
        return self._request("POST", "/api/reports", json=fields)

    def delete_report(self, report_id: str) -> None:
        self._request("DELETE", f"/api/reports/{report_id}")
