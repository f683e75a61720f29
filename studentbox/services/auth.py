"""Password hashing, JWT access tokens and the authenticated-user dependency.

Every import endpoint runs as a user; that user's email is stamped on the
students an import creates and their id owns the import batch record.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Annotated

from beanie import PydanticObjectId
from bson.errors import InvalidId
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pwdlib import PasswordHash
from pwdlib.hashers.argon2 import Argon2Hasher

from studentbox.config import settings
from studentbox.models.user import User

# Login attempts go to their own logger so they can be routed separately
security_logger = logging.getLogger("studentbox.security")

password_hash = PasswordHash((Argon2Hasher(),))

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)

ALGORITHM = "HS256"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return password_hash.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return password_hash.hash(password)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Sign a JWT carrying ``data`` plus an expiry and a unique token id."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        **data,
        "exp": datetime.now(timezone.utc) + expires_delta,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


async def get_user_by_email(email: str) -> User | None:
    return await User.find_one(User.email == email)


async def authenticate_user(
    email: str,
    password: str,
    ip_address: str | None = None,
) -> User | None:
    """Check an email and password.

    Returns:
        The user, or None for an unknown email, a wrong password or a
        disabled account. The reason is only written to the security log.
    """
    ip = ip_address or "unknown"
    user = await get_user_by_email(email)

    if user is None:
        reason = f"user not found: email={email}"
    elif not verify_password(password, user.hashed_password):
        reason = f"invalid password: user_id={user.id}"
    elif not user.is_active:
        reason = f"inactive account: user_id={user.id}"
    else:
        security_logger.info("Successful login: user_id=%s, ip=%s", user.id, ip)
        return user

    security_logger.warning("Failed login - %s, ip=%s", reason, ip)
    return None


async def _user_for_subject(subject: str) -> User | None:
    """Resolve a token subject, which is an email or a user id."""
    user = await get_user_by_email(subject)
    if user is not None:
        return user
    try:
        return await User.get(PydanticObjectId(subject))
    except InvalidId:
        return None


async def get_current_user(
    token: Annotated[str | None, Depends(oauth2_scheme)],
) -> User | None:
    """The active user named by the bearer token, if any."""
    if not token:
        return None

    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None

    subject = payload.get("sub")
    if not subject:
        return None

    user = await _user_for_subject(subject)
    if user is None or not user.is_active:
        return None
    return user


async def require_auth(
    user: Annotated[User | None, Depends(get_current_user)],
) -> User:
    """Dependency that rejects requests without a valid token (401)."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


RequireAuth = Annotated[User, Depends(require_auth)]
