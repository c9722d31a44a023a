"""API routes for the admin dashboard."""
import logging
import secrets
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from rainmakers.api.dependencies import ADMIN_COOKIE, get_admin_session_email, require_admin
from rainmakers.api.schemas import (
    AdminLogin,
    AdminPledgeResponse,
    AdminSessionResponse,
    AdminStats,
    AdminSubmissionResponse,
    AuditLogResponse,
    GalleryImage,
    MessageResponse,
)
from rainmakers.config import Settings, get_settings
from rainmakers.database import get_db
from rainmakers.models.enums import AustralianState, CacheType
from rainmakers.services.audit import query_audit_logs
from rainmakers.services.authorization import Actor, is_admin_email
from rainmakers.services.export import confirmations_csv, export_filename, pledges_csv, submissions_csv
from rainmakers.services.gallery import gallery_images
from rainmakers.services.listing import ListingFilters, list_pledges, list_submissions
from rainmakers.services.stats import admin_stats
from rainmakers.services.tokens import create_admin_token

logger = logging.getLogger(__name__)

router = APIRouter()


def listing_filters(
    state: Optional[AustralianState] = None,
    cache_type: Optional[CacheType] = None,
    gc_username: Optional[str] = None,
    search: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None
) -> ListingFilters:
    return ListingFilters(
        state=state,
        cache_type=cache_type,
        gc_username=gc_username,
        search=search,
        start_date=start_date,
        end_date=end_date
    )


# Session endpoints
@router.post("/login", response_model=MessageResponse)
def admin_login(data: AdminLogin, response: Response, settings: Settings = Depends(get_settings)):
    """Check the shared admin password and start a cookie session."""
    if not settings.admin_password:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Admin password not configured"
        )

    password_ok = secrets.compare_digest(data.password.encode(), settings.admin_password.encode())
    if not password_ok or not is_admin_email(data.email, settings.admin_emails):
        logger.warning("Rejected admin login for %s", data.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    response.set_cookie(
        ADMIN_COOKIE,
        create_admin_token(data.email, settings),
        max_age=settings.admin_session_hours * 3600,
        httponly=True,
        secure=settings.app_url.startswith("https://"),
        samesite="lax",
        path="/"
    )
    logger.info("Admin session started for %s", data.email)
    return MessageResponse(message="Login successful")


@router.post("/logout", response_model=MessageResponse)
def admin_logout(response: Response):
    response.delete_cookie(ADMIN_COOKIE, path="/")
    return MessageResponse(message="Logged out")


@router.get("/session", response_model=AdminSessionResponse)
def admin_session(admin_email: Optional[str] = Depends(get_admin_session_email)):
    return AdminSessionResponse(authenticated=admin_email is not None, email=admin_email)


# Listing endpoints
@router.get("/pledges", response_model=List[AdminPledgeResponse])
def admin_list_pledges(
    filters: ListingFilters = Depends(listing_filters),
    _: Actor = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return list_pledges(db, filters)


@router.get("/submissions", response_model=List[AdminSubmissionResponse])
def admin_list_submissions(
    filters: ListingFilters = Depends(listing_filters),
    _: Actor = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return list_submissions(db, filters)


# Export endpoints
@router.get("/export/pledges")
def export_pledges(
    filters: ListingFilters = Depends(listing_filters),
    _: Actor = Depends(require_admin),
    db: Session = Depends(get_db)
):
    filters.start_date = filters.end_date = None
    return Response(
        content=pledges_csv(list_pledges(db, filters)),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename("pledges")}"'}
    )


@router.get("/export/submissions")
def export_submissions(
    filters: ListingFilters = Depends(listing_filters),
    _: Actor = Depends(require_admin),
    db: Session = Depends(get_db)
):
    filters.start_date = filters.end_date = None
    return Response(
        content=submissions_csv(list_submissions(db, filters)),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename("submissions")}"'}
    )


@router.get("/export/confirmations")
def export_confirmations(_: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    return Response(
        content=confirmations_csv(list_submissions(db, ListingFilters())),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename("confirmations")}"'}
    )


# Audit, stats and gallery
@router.get("/audit", response_model=List[AuditLogResponse])
def admin_audit_log(
    action: Optional[str] = None,
    target_kind: Optional[str] = None,
    actor_email: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    _: Actor = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Audit entries, most recent first, capped at 1000.
    Page through older entries by narrowing the date range.
    """
    return query_audit_logs(
        db,
        action=action,
        target_kind=target_kind,
        actor_email=actor_email,
        start_date=start_date,
        end_date=end_date
    )


@router.get("/stats", response_model=AdminStats)
def get_admin_stats(_: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    return admin_stats(db)


@router.get("/images", response_model=List[GalleryImage])
def get_gallery(_: Actor = Depends(require_admin), db: Session = Depends(get_db)):
    return gallery_images(db)
