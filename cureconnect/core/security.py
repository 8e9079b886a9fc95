import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from cureconnect.core.config import JWT_EXPIRATION_HOURS, get_bcrypt_rounds

# Password hashing configuration
pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=get_bcrypt_rounds()
)

MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        Hashed password string
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a password against its hash.

    Returns False for accounts without a usable hash instead of raising.
    """
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Malformed or foreign hash stored for this account
        return False


def get_jwt_secret_key():
    """Get JWT secret key with production validation.

    In production (FLASK_ENV=production) JWT_SECRET_KEY must be set, must not
    be a known development default and must be at least 32 characters long.

    Raises:
        ValueError: If production deployment uses weak or missing JWT secret
    """
    secret = os.getenv("JWT_SECRET_KEY", "dev-jwt-secret-change-me")
    is_production = os.getenv("FLASK_ENV") == "production"

    if is_production:
        weak_secrets = ["dev-jwt-secret-change-me", "dev-secret-change-me", "secret123"]
        if secret in weak_secrets or len(secret) < 32:
            raise ValueError(
                "Production deployment requires strong JWT_SECRET_KEY (min 32 chars). "
                "Set JWT_SECRET_KEY environment variable."
            )

    return secret


JWT_ALGORITHM = "HS256"


def create_access_token(
    data: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT access token.

    Args:
        data: Payload data to encode in the token
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=JWT_EXPIRATION_HOURS))
    to_encode.update({"exp": expire, "iat": now})
    to_encode.setdefault("jti", uuid.uuid4().hex)

    return jwt.encode(to_encode, get_jwt_secret_key(), algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and validate a JWT access token.

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jwt.decode(token, get_jwt_secret_key(), algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None


def create_user_token(user_id: str, role: str) -> str:
    """Create an access token for a user.

    The token carries the user id (``sub``), the role and a unique ``jti``
    so it can be revoked on logout.
    """
    token_data = {"sub": str(user_id), "role": role, "type": "access"}
    return create_access_token(token_data)


def get_token_claims(token: str) -> Optional[Dict[str, Any]]:
    """Extract the claims the application relies on from a token.

    Returns:
        ``{"user_id", "role", "jti", "expires_at"}`` or None when the token is
        invalid, expired or missing a required claim.
    """
    payload = decode_access_token(token)
    if payload is None:
        return None

    user_id = payload.get("sub")
    role = payload.get("role")
    jti = payload.get("jti")
    exp = payload.get("exp")
    if not user_id or not role or not jti or exp is None:
        return None

    return {
        "user_id": str(user_id),
        "role": role,
        "jti": jti,
        "expires_at": datetime.fromtimestamp(int(exp), tz=timezone.utc),
    }


def extract_bearer_token(auth_header: Optional[str]) -> Optional[str]:
    """Return the token part of an ``Authorization: Bearer <token>`` header."""
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None
