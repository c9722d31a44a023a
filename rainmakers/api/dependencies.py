"""FastAPI dependencies for identity and access."""
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from rainmakers.config import Settings, get_settings
from rainmakers.database import get_db
from rainmakers.models.domain import User
from rainmakers.services.authorization import Actor, is_admin_email
from rainmakers.services.exceptions import AccessDeniedError, AuthenticationError, NotFoundError
from rainmakers.services.tokens import decode_session_token, validate_edit_token, verify_admin_token
from rainmakers.services.users import get_or_create_user

ADMIN_COOKIE = "admin-session"

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
) -> Optional[User]:
    """The signed-in user, or None when no bearer token was sent."""
    if credentials is None:
        return None
    claims = decode_session_token(credentials.credentials, settings)
    return get_or_create_user(db, claims["sub"], claims["email"])


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise AuthenticationError("Authentication required")
    return user


def get_admin_session_email(
    admin_session: Optional[str] = Cookie(None, alias=ADMIN_COOKIE),
    settings: Settings = Depends(get_settings)
) -> Optional[str]:
    return verify_admin_token(admin_session, settings)


def get_actor(
    user: Optional[User] = Depends(get_optional_user),
    admin_email: Optional[str] = Depends(get_admin_session_email),
    settings: Settings = Depends(get_settings)
) -> Actor:
    """
    Resolve who the request acts as.

    A signed-in user is an admin when their email is on the allow-list or
    they also hold an admin session. A request with only an admin session
    acts as that admin with no user id.
    """
    if user is not None:
        admin = is_admin_email(user.email, settings.admin_emails) or admin_email is not None
        return Actor(user_id=user.id, email=user.email, is_admin=admin)
    if admin_email is not None:
        return Actor(user_id=None, email=admin_email, is_admin=True)
    raise AuthenticationError("Authentication required")


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_admin:
        raise AccessDeniedError("Admin access required")
    return actor


def get_edit_token_user(
    token: Optional[str] = Query(None),
    db: Session = Depends(get_db)
) -> User:
    """The user a magic-link token belongs to."""
    if not token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Token is required")

    user_id = validate_edit_token(db, token)
    if user_id is None:
        raise AuthenticationError("Invalid or expired token")

    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def get_edit_token_actor(user: User = Depends(get_edit_token_user)) -> Actor:
    # Magic-link sessions are always self-service, never admin
    return Actor(user_id=user.id, email=user.email, is_admin=False)
