from typing import List, Optional

from cureconnect.db.base import User as DbUser
from cureconnect.domain.entities import User as DomainUser
from cureconnect.domain.interfaces import IUserRepository


class UserRepository(IUserRepository):
    """Repository for User persistence operations.

    Maps between ``cureconnect.db.base.User`` rows and domain ``User``
    entities. Emails are stored lowercased.
    """

    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_id(self, user_id: str) -> Optional[DomainUser]:
        """Get user by ID, returning domain entity."""
        db_user = self.db.get(DbUser, user_id)
        return self._to_domain(db_user) if db_user else None

    def get_by_email(self, email: str) -> Optional[DomainUser]:
        """Get user by email, returning domain entity."""
        db_user = self.db.query(DbUser).filter_by(email=email.strip().lower()).first()
        return self._to_domain(db_user) if db_user else None

    def get_password_hash(self, user_id: str) -> Optional[str]:
        db_user = self.db.get(DbUser, user_id)
        return db_user.password_hash if db_user else None

    def list_by_role(self, role: str) -> List[DomainUser]:
        db_users = self.db.query(DbUser).filter_by(role=role).order_by(DbUser.name).all()
        return [self._to_domain(db_user) for db_user in db_users]

    def create(self, user: DomainUser, password_hash: Optional[str]) -> DomainUser:
        """Create a new user from domain entity."""
        db_user = DbUser(
            name=user.name.strip(),
            email=user.email.strip().lower(),
            role=user.role,
            profile_image=user.profile_image,
            password_hash=password_hash,
        )
        if user.id:
            db_user.id = user.id

        self.db.add(db_user)
        self.db.commit()
        self.db.refresh(db_user)
        return self._to_domain(db_user)

    def update(self, user: DomainUser) -> DomainUser:
        """Update an existing user from domain entity."""
        if not user.id:
            raise ValueError("User ID is required for update")

        db_user = self.db.get(DbUser, user.id)
        if not db_user:
            raise ValueError(f"User with ID {user.id} not found")

        db_user.name = user.name.strip()
        db_user.email = user.email.strip().lower()
        db_user.profile_image = user.profile_image

        self.db.commit()
        self.db.refresh(db_user)
        return self._to_domain(db_user)

    def set_password(self, user_id: str, password_hash: str) -> bool:
        """Set the password hash for a user."""
        db_user = self.db.get(DbUser, user_id)
        if not db_user:
            return False

        db_user.password_hash = password_hash
        self.db.commit()
        return True

    def delete(self, user_id: str) -> bool:
        """Delete a user by ID."""
        db_user = self.db.get(DbUser, user_id)
        if not db_user:
            return False

        self.db.delete(db_user)
        self.db.commit()
        return True

    def _to_domain(self, db_user: DbUser) -> DomainUser:
        """Convert database model to domain entity."""
        return DomainUser(
            id=db_user.id,
            name=db_user.name,
            email=db_user.email,
            role=db_user.role,
            profile_image=db_user.profile_image,
            created_at=db_user.created_at,
            updated_at=db_user.updated_at,
        )
