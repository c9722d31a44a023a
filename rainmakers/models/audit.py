"""
Audit logging model for admin-initiated changes.

Rows are written by the audit recorder whenever an admin updates or deletes
a pledge or submission. Self-service edits by owners are never recorded.
"""
from datetime import datetime

from sqlalchemy import Column, String, Integer, DateTime, JSON

from rainmakers.database import Base


class AuditLog(Base):
    """
    Immutable before/after snapshot of an admin mutation.

    Invariants:
    - Once written, never edited or deleted
    - Append-only
    - after is empty for deletions
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    actor_id = Column(String, nullable=True)  # Null for password-only admin sessions
    actor_email = Column(String, nullable=True, index=True)
    action = Column(String, nullable=False, index=True)  # e.g. "UPDATE_PLEDGE"
    target_id = Column(String, nullable=False, index=True)
    target_kind = Column(String, nullable=False)  # "PLEDGE" or "SUBMISSION"
    before = Column(JSON, nullable=True)
    after = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
