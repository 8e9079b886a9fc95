from datetime import datetime

from cureconnect.db.base import RevokedToken
from cureconnect.domain.interfaces import IRevokedTokenRepository


class RevokedTokenRepository(IRevokedTokenRepository):
    """Denylist of logged-out access tokens."""

    def __init__(self, db_session) -> None:
        self.db = db_session

    def revoke(self, jti: str, user_id: str, expires_at: datetime) -> None:
        if self.db.get(RevokedToken, jti) is not None:
            return
        self.db.add(RevokedToken(jti=jti, user_id=user_id, expires_at=expires_at))
        self.db.commit()

    def is_revoked(self, jti: str) -> bool:
        return self.db.get(RevokedToken, jti) is not None

    def purge_expired(self, now: datetime) -> int:
        deleted = (
            self.db.query(RevokedToken)
            .filter(RevokedToken.expires_at < now)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted
