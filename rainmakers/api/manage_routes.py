"""API routes behind the emailed "manage my data" magic link."""
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from rainmakers.api.dependencies import get_edit_token_actor, get_edit_token_user
from rainmakers.api.schemas import (
    EditTokenRequest,
    ManageResponse,
    MessageResponse,
    PledgeResponse,
    PledgeUpdate,
    SubmissionResponse,
    SubmissionUpdate,
)
from rainmakers.config import Settings, get_settings
from rainmakers.database import get_db
from rainmakers.models.domain import User
from rainmakers.services import notifications
from rainmakers.services.authorization import Actor
from rainmakers.services.exceptions import NotFoundError
from rainmakers.services.lifecycle import PledgeLifecycle
from rainmakers.services.tokens import create_edit_token

router = APIRouter()


@router.post("/edit-token", response_model=MessageResponse)
def request_edit_link(
    data: EditTokenRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """Email a magic link for managing the pledges of an existing account."""
    user = db.query(User).filter(User.email == data.email).first()
    if user is None:
        raise NotFoundError("User", data.email)

    token = create_edit_token(db, user.id, settings)
    background_tasks.add_task(notifications.send_magic_link, settings, user.email, token)
    return MessageResponse(message="Magic link sent to your email")


@router.get("/manage", response_model=ManageResponse)
def get_manage_data(token: Optional[str] = None, user: User = Depends(get_edit_token_user), db: Session = Depends(get_db)):
    """Everything the link's owner has pledged and confirmed."""
    lifecycle = PledgeLifecycle(db)
    return {
        "user": user,
        "pledges": lifecycle.list_pledges_for_user(user.id),
        "submissions": lifecycle.list_submissions_for_user(user.id),
        "token": token,
    }


@router.put("/manage/pledges/{pledge_id}", response_model=PledgeResponse)
def manage_update_pledge(
    pledge_id: str,
    data: PledgeUpdate,
    actor: Actor = Depends(get_edit_token_actor),
    db: Session = Depends(get_db)
):
    return PledgeLifecycle(db).update_pledge(pledge_id, data.model_dump(exclude_unset=True), actor)


@router.delete("/manage/pledges/{pledge_id}", response_model=MessageResponse)
def manage_delete_pledge(
    pledge_id: str,
    actor: Actor = Depends(get_edit_token_actor),
    db: Session = Depends(get_db)
):
    PledgeLifecycle(db).delete_pledge(pledge_id, actor)
    return MessageResponse(message="Pledge deleted successfully")


@router.put("/manage/submissions/{submission_id}", response_model=SubmissionResponse)
def manage_update_submission(
    submission_id: str,
    data: SubmissionUpdate,
    actor: Actor = Depends(get_edit_token_actor),
    db: Session = Depends(get_db)
):
    return PledgeLifecycle(db).update_submission(
        submission_id, data.model_dump(exclude_unset=True), actor
    )


@router.delete("/manage/submissions/{submission_id}", response_model=MessageResponse)
def manage_delete_submission(
    submission_id: str,
    actor: Actor = Depends(get_edit_token_actor),
    db: Session = Depends(get_db)
):
    """Un-confirm a cache; the pledge goes back to CONCEPT."""
    PledgeLifecycle(db).delete_submission(submission_id, actor)
    return MessageResponse(message="Submission deleted successfully")
