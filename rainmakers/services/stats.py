"""
Event statistics, recomputed from the tables on every call.

A rainmaker is a distinct geocaching username seen on any pledge or
submission.
"""
from typing import Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from rainmakers.models.domain import Pledge, Submission, User


def _key(value) -> str:
    return getattr(value, "value", value)


def _counts(db: Session, column) -> Dict[str, int]:
    rows = db.query(column, func.count()).group_by(column).all()
    return {_key(value): count for value, count in rows}


def count_rainmakers(db: Session) -> int:
    usernames = db.query(Pledge.gc_username).union(db.query(Submission.gc_username))
    return usernames.count()


def public_stats(db: Session) -> dict:
    """Totals plus submission breakdowns by state and type, and pledges by size."""
    return {
        "total_pledged": db.query(Pledge).count(),
        "total_submissions": db.query(Submission).count(),
        "rainmakers": count_rainmakers(db),
        "by_state": _counts(db, Submission.state),
        "by_type": _counts(db, Submission.type),
        # Submissions don't record a size
        "by_size": _counts(db, Pledge.cache_size),
    }


def admin_stats(db: Session) -> dict:
    """Dashboard variant with pledge and submission counts side by side."""
    pledgers = db.query(User.id).filter(
        User.pledges.any() | User.submissions.any()
    ).count()

    state_breakdown: Dict[str, Dict[str, int]] = {}
    for state, count in _counts(db, Pledge.approx_state).items():
        state_breakdown.setdefault(state, {"pledges": 0, "submissions": 0})["pledges"] = count
    for state, count in _counts(db, Submission.state).items():
        state_breakdown.setdefault(state, {"pledges": 0, "submissions": 0})["submissions"] = count

    type_breakdown: Dict[str, Dict[str, int]] = {}
    for cache_type, count in _counts(db, Pledge.cache_type).items():
        type_breakdown.setdefault(cache_type, {"pledged": 0, "confirmed": 0})["pledged"] = count
    for cache_type, count in _counts(db, Submission.type).items():
        type_breakdown.setdefault(cache_type, {"pledged": 0, "confirmed": 0})["confirmed"] = count

    size_breakdown = {
        size: {"pledged": count} for size, count in _counts(db, Pledge.cache_size).items()
    }

    return {
        "total_pledges": db.query(Pledge).count(),
        "total_submissions": db.query(Submission).count(),
        "total_pledgers": pledgers,
        "rainmakers": count_rainmakers(db),
        "state_breakdown": state_breakdown,
        "type_breakdown": type_breakdown,
        "size_breakdown": size_breakdown,
    }
