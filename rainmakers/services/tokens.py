"""
Session and magic-link tokens.

User sessions come from the identity provider as HS256 JWTs signed with the
shared secret; admin sessions are minted here after a password check. Edit
tokens for "manage my data" links are random strings kept in the
verification_tokens table until they expire.
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from sqlalchemy.orm import Session

from rainmakers.config import Settings
from rainmakers.models.domain import VerificationToken
from rainmakers.services.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ADMIN_ROLE = "admin"
EDIT_TOKEN_PREFIX = "edit:"


def _encode(claims: dict, settings: Settings, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {**claims, "iat": now, "exp": now + lifetime}
    return jwt.encode(payload, settings.auth_secret, algorithm=ALGORITHM)


def create_session_token(
    user_id: str,
    email: str,
    settings: Settings,
    lifetime: timedelta = timedelta(days=30)
) -> str:
    """Mint a user session token the way the identity provider does."""
    return _encode({"sub": user_id, "email": email}, settings, lifetime)


def decode_session_token(token: str, settings: Settings) -> dict:
    """
    Validate a user session token and return its claims.

    Raises:
        AuthenticationError: If the token is expired, tampered with or
            missing the ``sub``/``email`` claims.
    """
    try:
        claims = jwt.decode(token, settings.auth_secret, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Session has expired")
    except jwt.PyJWTError as e:
        logger.warning("Session token validation failed: %s", e)
        raise AuthenticationError("Invalid session")

    if not claims.get("sub") or not claims.get("email"):
        raise AuthenticationError("Invalid session")
    return claims


def create_admin_token(email: str, settings: Settings) -> str:
    return _encode(
        {"email": email, "role": ADMIN_ROLE},
        settings,
        timedelta(hours=settings.admin_session_hours)
    )


def verify_admin_token(token: Optional[str], settings: Settings) -> Optional[str]:
    """Return the admin email for a valid admin session token, else None."""
    if not token:
        return None
    try:
        claims = jwt.decode(token, settings.auth_secret, algorithms=[ALGORITHM])
    except jwt.PyJWTError:
        return None
    if claims.get("role") != ADMIN_ROLE:
        return None
    return claims.get("email")


def create_edit_token(db: Session, user_id: str, settings: Settings) -> str:
    token = secrets.token_urlsafe(32)
    db.add(VerificationToken(
        token=token,
        identifier=f"{EDIT_TOKEN_PREFIX}{user_id}",
        expires=datetime.utcnow() + timedelta(hours=settings.edit_token_hours)
    ))
    db.commit()
    return token


def validate_edit_token(db: Session, token: str) -> Optional[str]:
    """
    Resolve a magic-link token to a user id.

    Unknown tokens give None. Expired ones also give None and are removed.
    The token stays valid until expiry so the manage page can reuse it.
    """
    row = db.get(VerificationToken, token)
    if row is None or not row.identifier.startswith(EDIT_TOKEN_PREFIX):
        return None

    if row.expires < datetime.utcnow():
        db.delete(row)
        db.commit()
        return None

    return row.identifier[len(EDIT_TOKEN_PREFIX):]
