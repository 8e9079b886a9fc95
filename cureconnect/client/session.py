"""
The signed-in state of a client.

A ``ClientSession`` is issued by ``CureConnectAPI.login`` and passed
explicitly to whatever needs the caller's identity; ``logout`` clears it.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ClientSession:
    token: str
    user_id: str
    role: str
    name: str = ""
    email: str = ""
    status: Optional[str] = None
    expires_at: Optional[datetime] = None

    @classmethod
    def from_auth_payload(
        cls, data: Dict[str, Any], now: Optional[datetime] = None
    ) -> "ClientSession":
        """Build a session from the ``data`` of a login/register response."""
        user = data.get("user") or {}
        expires_in = data.get("expires_in")
        expires_at = None
        if expires_in:
            expires_at = (now or datetime.now(timezone.utc)) + timedelta(
                seconds=int(expires_in)
            )
        return cls(
            token=data["token"],
            user_id=user.get("id", ""),
            role=user.get("role", ""),
            name=user.get("name", ""),
            email=user.get("email", ""),
            status=user.get("status"),
            expires_at=expires_at,
        )

    @property
    def is_doctor(self) -> bool:
        return self.role == "doctor"

    @property
    def is_suspended(self) -> bool:
        return self.is_doctor and self.status == "suspended"

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) >= self.expires_at

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}
