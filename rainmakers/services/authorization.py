"""
Authorization gate for pledges and submissions.

A pure predicate: the actor may read, update or delete a record when they
are an admin or when their user id matches the record's owner. The admin
allow-list is handed in by the caller rather than read from settings here.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from rainmakers.services.exceptions import AccessDeniedError


@dataclass(frozen=True)
class Actor:
    """The identity a request acts as."""
    user_id: Optional[str]
    email: Optional[str]
    is_admin: bool = False


def is_admin_email(email: Optional[str], admin_emails: Iterable[str]) -> bool:
    """Case-insensitive membership test against the configured allow-list."""
    if not email:
        return False
    return email.strip().lower() in {e.lower() for e in admin_emails}


def can_access(actor: Actor, owner_user_id: Optional[str]) -> bool:
    if actor.is_admin:
        return True
    # Ownerless legacy rows are admin-only
    return actor.user_id is not None and actor.user_id == owner_user_id


def ensure_can_access(actor: Actor, owner_user_id: Optional[str]) -> None:
    """Raise AccessDeniedError unless :func:`can_access` allows the actor."""
    if not can_access(actor, owner_user_id):
        raise AccessDeniedError()
