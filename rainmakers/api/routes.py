"""API routes for signed-in participants and the public stats page."""
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.orm import Session

from rainmakers.api.dependencies import get_actor, get_current_user
from rainmakers.api.schemas import (
    MessageResponse,
    PledgeCreate,
    PledgeResponse,
    PledgeUpdate,
    PledgeWithSubmission,
    PublicStats,
    SubmissionCreate,
    SubmissionResponse,
    SubmissionUpdate,
    SubmissionWithPledge,
    UserResponse,
    UserUpdate,
)
from rainmakers.config import Settings, get_settings
from rainmakers.database import get_db
from rainmakers.models.domain import User
from rainmakers.services import notifications
from rainmakers.services.authorization import Actor
from rainmakers.services.lifecycle import PledgeLifecycle
from rainmakers.services.stats import public_stats
from rainmakers.services.users import update_gc_username

router = APIRouter()


# Profile endpoints
@router.get("/user/me", response_model=UserResponse)
def get_me(user: User = Depends(get_current_user)):
    return user


@router.patch("/user/me", response_model=UserResponse)
def update_me(data: UserUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Change the geocaching username used for future pledges."""
    return update_gc_username(db, user, data.gc_username)


# Pledge endpoints
@router.post("/pledges", response_model=PledgeResponse, status_code=status.HTTP_201_CREATED)
def create_pledge(
    data: PledgeCreate,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """Create a new pledge in CONCEPT status and email a confirmation."""
    pledge = PledgeLifecycle(db).create_pledge(user, data.model_dump())
    background_tasks.add_task(notifications.send_pledge_confirmation, settings, user.email, pledge.id)
    return pledge


@router.get("/pledges/me", response_model=List[PledgeWithSubmission])
def list_my_pledges(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return PledgeLifecycle(db).list_pledges_for_user(user.id)


@router.get("/pledges/{pledge_id}", response_model=PledgeWithSubmission)
def get_pledge(pledge_id: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return PledgeLifecycle(db).get_pledge(pledge_id, actor)


@router.patch("/pledges/{pledge_id}", response_model=PledgeResponse)
def update_pledge(
    pledge_id: str,
    data: PledgeUpdate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db)
):
    """Edit a pledge. Owner or admin; admin edits are audited."""
    return PledgeLifecycle(db).update_pledge(pledge_id, data.model_dump(exclude_unset=True), actor)


@router.delete("/pledges/{pledge_id}", response_model=MessageResponse)
def delete_pledge(pledge_id: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    """Delete a pledge and any submission confirmed against it."""
    PledgeLifecycle(db).delete_pledge(pledge_id, actor)
    return MessageResponse(message="Pledge deleted")


# Submission endpoints
@router.post("/submissions", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
def create_submission(
    data: SubmissionCreate,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """
    Confirm a pledge as a published cache.

    WILL REFUSE if:
    - The pledge doesn't exist (404)
    - The pledge already has a submission (409)
    - The pledge belongs to someone else (403)
    """
    submission = PledgeLifecycle(db).confirm(
        data.pledge_id, data.model_dump(exclude={"pledge_id"}), actor
    )
    background_tasks.add_task(
        notifications.send_submission_confirmation, settings, user.email, submission.id
    )
    return submission


@router.get("/submissions/me", response_model=List[SubmissionWithPledge])
def list_my_submissions(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return PledgeLifecycle(db).list_submissions_for_user(user.id)


@router.get("/submissions/{submission_id}", response_model=SubmissionWithPledge)
def get_submission(submission_id: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return PledgeLifecycle(db).get_submission(submission_id, actor)


@router.patch("/submissions/{submission_id}", response_model=SubmissionResponse)
def update_submission(
    submission_id: str,
    data: SubmissionUpdate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db)
):
    return PledgeLifecycle(db).update_submission(
        submission_id, data.model_dump(exclude_unset=True), actor
    )


@router.delete("/submissions/{submission_id}", response_model=MessageResponse)
def delete_submission(submission_id: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    """
    Un-confirm a cache.
    Side effect: the pledge goes back to CONCEPT (its images are not restored).
    """
    PledgeLifecycle(db).delete_submission(submission_id, actor)
    return MessageResponse(message="Submission deleted")


# Public endpoints
@router.get("/stats", response_model=PublicStats)
def get_stats(db: Session = Depends(get_db)):
    """Totals and breakdowns for the public home page."""
    return public_stats(db)


@router.post("/pledge", status_code=status.HTTP_410_GONE)
def legacy_create_pledge():
    """Anonymous pledging was retired in favour of signed-in pledges."""
    raise HTTPException(
        status_code=status.HTTP_410_GONE,
        detail="This endpoint is deprecated. Please use /api/pledges with authentication."
    )
