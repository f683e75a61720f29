"""Login and current-user endpoints."""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel
from slowapi import Limiter
from slowapi.util import get_remote_address

from studentbox.config import settings
from studentbox.models.user import User
from studentbox.services.auth import RequireAuth, authenticate_user, create_access_token

router = APIRouter()

# Stricter than the upload limit: this is where passwords get guessed
limiter = Limiter(key_func=get_remote_address)


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: str | None
    is_active: bool
    is_admin: bool
    created_at: datetime
    last_login: datetime | None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=str(user.id),
            email=user.email,
            full_name=user.full_name,
            is_active=user.is_active,
            is_admin=user.is_admin,
            created_at=user.created_at,
            last_login=user.last_login,
        )


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


@router.post("/token", response_model=Token)
@limiter.limit(lambda: f"{settings.auth_rate_limit_per_minute}/minute")
async def login_token(
    request: Request,  # Required for rate limiting
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
) -> Token:
    """Exchange an email and password for a bearer token.

    The OAuth2 form calls the field ``username``; it holds the email.
    """
    user = await authenticate_user(
        form_data.username, form_data.password, get_remote_address(request)
    )
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user.last_login = datetime.now(timezone.utc)
    await user.save()

    return Token(
        access_token=create_access_token(data={"sub": user.email}),
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: RequireAuth) -> UserResponse:
    """The user the bearer token belongs to."""
    return UserResponse.from_user(current_user)
