"""Admin listing queries with the dashboard filters."""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from rainmakers.models.domain import Pledge, Submission
from rainmakers.models.enums import AustralianState, CacheType


@dataclass
class ListingFilters:
    """Dashboard filters. Text filters are case-insensitive substring matches."""
    state: Optional[AustralianState] = None
    cache_type: Optional[CacheType] = None
    gc_username: Optional[str] = None
    search: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


def _icontains(column, text: str):
    return func.lower(column).contains(text.lower(), autoescape=True)


def list_pledges(db: Session, filters: ListingFilters) -> List[Pledge]:
    query = db.query(Pledge).options(
        selectinload(Pledge.user), selectinload(Pledge.submission)
    )

    if filters.state:
        query = query.filter(Pledge.approx_state == filters.state)
    if filters.cache_type:
        query = query.filter(Pledge.cache_type == filters.cache_type)
    if filters.gc_username:
        query = query.filter(_icontains(Pledge.gc_username, filters.gc_username))
    if filters.search:
        query = query.filter(or_(
            _icontains(Pledge.gc_username, filters.search),
            _icontains(Pledge.title, filters.search),
            _icontains(Pledge.approx_suburb, filters.search),
            _icontains(Pledge.concept_notes, filters.search),
        ))
    if filters.start_date:
        query = query.filter(Pledge.created_at >= filters.start_date)
    if filters.end_date:
        query = query.filter(Pledge.created_at <= filters.end_date)

    return query.order_by(Pledge.created_at.desc()).all()


def list_submissions(db: Session, filters: ListingFilters) -> List[Submission]:
    query = db.query(Submission).options(
        selectinload(Submission.user), selectinload(Submission.pledge)
    )

    if filters.state:
        query = query.filter(Submission.state == filters.state)
    if filters.cache_type:
        query = query.filter(Submission.type == filters.cache_type)
    if filters.gc_username:
        query = query.filter(_icontains(Submission.gc_username, filters.gc_username))
    if filters.search:
        query = query.filter(or_(
            _icontains(Submission.gc_username, filters.search),
            _icontains(Submission.gc_code, filters.search),
            _icontains(Submission.cache_name, filters.search),
            _icontains(Submission.suburb, filters.search),
            _icontains(Submission.notes, filters.search),
        ))
    if filters.start_date:
        query = query.filter(Submission.created_at >= filters.start_date)
    if filters.end_date:
        query = query.filter(Submission.created_at <= filters.end_date)

    return query.order_by(Submission.created_at.desc()).all()
