import logging
from datetime import UTC, datetime, timedelta

import bcrypt
from jose import JWTError, jwt
from sqlmodel import Session, select

from socialsync.config import settings
from socialsync.models.user import User

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def create_access_token(user_id: int, username: str, role: str) -> str:
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    return jwt.encode(
        {"sub": str(user_id), "username": username, "role": role, "type": "access", "exp": expire},
        settings.secret_key,
        algorithm="HS256",
    )


def create_refresh_token(user_id: int) -> str:
    expire = datetime.now(UTC) + timedelta(days=settings.refresh_token_expire_days)
    return jwt.encode(
        {"sub": str(user_id), "exp": expire, "type": "refresh"},
        settings.secret_key,
        algorithm="HS256",
    )


def decode_token(token: str, expected_type: str) -> dict:
    """Decode a signed token and check it was issued for `expected_type` use.

    Access and refresh tokens share a key, so the `type` claim is what stops a
    long-lived refresh token from authenticating API calls.
    """
    payload = jwt.decode(token, settings.secret_key, algorithms=["HS256"])
    if payload.get("type") != expected_type:
        raise JWTError(f"Expected a {expected_type} token")
    return payload


def ensure_admin_user(session: Session) -> User:
    """Create the configured admin account on first start."""
    admin = session.exec(select(User).where(User.username == settings.admin_username)).first()
    if admin:
        return admin
    admin = User(
        username=settings.admin_username,
        password_hash=hash_password(settings.admin_password),
        role="admin",
    )
    session.add(admin)
    session.commit()
    session.refresh(admin)
    logger.info(f"Created admin user '{admin.username}'")
    return admin
