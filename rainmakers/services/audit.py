"""
Audit recorder for admin-initiated mutations.

Entries are written after the primary change has committed, in their own
transaction. A failed write is logged and swallowed so it never undoes or
fails the change it describes.
"""
import enum
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rainmakers.models.audit import AuditLog
from rainmakers.models.enums import AuditAction, TargetKind
from rainmakers.services.authorization import Actor

logger = logging.getLogger(__name__)

# Callers needing more must page through date ranges themselves
AUDIT_QUERY_LIMIT = 1000


def _jsonable(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def snapshot(row) -> Dict[str, Any]:
    """Column values of an ORM row as a JSON-safe dict."""
    return {
        column.key: _jsonable(getattr(row, column.key))
        for column in row.__table__.columns
    }


class AuditRecorder:
    """Appends AuditLog rows. Never updates or deletes them."""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        actor: Actor,
        action: AuditAction,
        target_kind: TargetKind,
        target_id: str,
        before: Dict[str, Any],
        after: Optional[Dict[str, Any]] = None
    ) -> Optional[AuditLog]:
        """
        Write one audit entry; returns None if the write failed.

        ``after`` is left empty for deletions.
        """
        entry = AuditLog(
            actor_id=actor.user_id,
            actor_email=actor.email,
            action=action.value,
            target_id=target_id,
            target_kind=target_kind.value,
            before=before,
            after=after
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(
                "Failed to write audit log: action=%s target=%s:%s actor=%s",
                action.value, target_kind.value, target_id, actor.email
            )
            return None

        logger.info(
            "Audit: %s %s:%s by %s", action.value, target_kind.value, target_id, actor.email
        )
        return entry


def query_audit_logs(
    db: Session,
    action: Optional[str] = None,
    target_kind: Optional[str] = None,
    actor_email: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    limit: int = AUDIT_QUERY_LIMIT
) -> List[AuditLog]:
    """
    Filtered audit entries, most recent first.

    ``actor_email`` is a case-insensitive substring match; the date bounds
    are inclusive. At most ``limit`` rows (capped at AUDIT_QUERY_LIMIT).
    """
    query = db.query(AuditLog)

    if action:
        query = query.filter(AuditLog.action == action)
    if target_kind:
        query = query.filter(AuditLog.target_kind == target_kind)
    if actor_email:
        query = query.filter(
            func.lower(AuditLog.actor_email).contains(actor_email.lower(), autoescape=True)
        )
    if start_date:
        query = query.filter(AuditLog.created_at >= start_date)
    if end_date:
        query = query.filter(AuditLog.created_at <= end_date)

    return query.order_by(
        AuditLog.created_at.desc(), AuditLog.id.desc()
    ).limit(min(limit, AUDIT_QUERY_LIMIT)).all()
