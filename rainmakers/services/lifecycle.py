"""
Lifecycle engine for pledges and their submissions.

Every create, edit, confirm and delete goes through here, so the ownership
gate, the CONCEPT/HIDDEN transition and the admin audit trail are applied
the same way whichever route (signed-in user, magic link, admin) is used.
"""
import logging
from datetime import date, datetime
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rainmakers.models.domain import Pledge, Submission, User
from rainmakers.models.enums import AuditAction, PledgeStatus, TargetKind
from rainmakers.services.audit import AuditRecorder, snapshot
from rainmakers.services.authorization import Actor, ensure_can_access
from rainmakers.services.exceptions import (
    AccessDeniedError,
    DuplicateSubmissionError,
    NotFoundError,
)
from rainmakers.services.images import normalize_images

logger = logging.getLogger(__name__)

PLEDGE_FIELDS = (
    "gc_username", "title", "cache_type", "cache_size",
    "approx_suburb", "approx_state", "concept_notes", "images",
)
SUBMISSION_FIELDS = (
    "gc_code", "cache_name", "suburb", "state", "difficulty",
    "terrain", "type", "hidden_date", "notes", "images",
)
# Only these may be cleared with an explicit null; nulls elsewhere are ignored
NULLABLE_FIELDS = {"title", "concept_notes", "notes", "images"}


def _as_datetime(value):
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return value


def _apply_changes(row, changes: Dict[str, Any], allowed) -> None:
    for field in allowed:
        if field not in changes:
            continue
        value = changes[field]
        if value is None and field not in NULLABLE_FIELDS:
            continue
        if field == "images":
            value = normalize_images(value) if value is not None else None
        elif field == "hidden_date":
            value = _as_datetime(value)
        elif field == "gc_username" and not value:
            continue
        setattr(row, field, value)


class PledgeLifecycle:
    """Enforces ownership, the pledge state transitions and admin auditing."""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditRecorder(db)

    # Pledges

    def create_pledge(self, user: User, data: Dict[str, Any]) -> Pledge:
        """
        Create a CONCEPT pledge owned by ``user``.

        The username given on the form also becomes the user's profile
        username, and is snapshotted onto the pledge.
        """
        user.gc_username = data["gc_username"]
        pledge = Pledge(
            user_id=user.id,
            gc_username=data["gc_username"],
            title=data.get("title"),
            cache_type=data["cache_type"],
            cache_size=data["cache_size"],
            approx_suburb=data["approx_suburb"],
            approx_state=data["approx_state"],
            concept_notes=data.get("concept_notes"),
            images=normalize_images(data.get("images") or []),
            status=PledgeStatus.CONCEPT
        )
        self.db.add(pledge)
        self.db.commit()
        self.db.refresh(pledge)

        logger.info("Pledge %s created by user %s", pledge.id, user.id)
        return pledge

    def get_pledge(self, pledge_id: str, actor: Actor) -> Pledge:
        pledge = self.db.get(Pledge, pledge_id)
        if pledge is None:
            raise NotFoundError("Pledge", pledge_id)
        ensure_can_access(actor, pledge.user_id)
        return pledge

    def list_pledges_for_user(self, user_id: str) -> List[Pledge]:
        return self.db.query(Pledge).filter(
            Pledge.user_id == user_id
        ).order_by(Pledge.created_at.desc()).all()

    def update_pledge(self, pledge_id: str, changes: Dict[str, Any], actor: Actor) -> Pledge:
        """Apply a partial edit. Admin edits are audited with before and after."""
        pledge = self.get_pledge(pledge_id, actor)
        before = snapshot(pledge)

        _apply_changes(pledge, changes, PLEDGE_FIELDS)
        self.db.commit()
        self.db.refresh(pledge)

        if actor.is_admin:
            self.audit.record(
                actor, AuditAction.UPDATE_PLEDGE, TargetKind.PLEDGE,
                pledge.id, before, snapshot(pledge)
            )
        return pledge

    def delete_pledge(self, pledge_id: str, actor: Actor) -> None:
        """Delete a pledge; its submission, if any, goes with it."""
        pledge = self.get_pledge(pledge_id, actor)
        before = snapshot(pledge)

        self.db.delete(pledge)
        self.db.commit()
        logger.info("Pledge %s deleted by %s", pledge_id, actor.email or actor.user_id)

        if actor.is_admin:
            self.audit.record(
                actor, AuditAction.DELETE_PLEDGE, TargetKind.PLEDGE, pledge_id, before
            )

    # Submissions

    def confirm(self, pledge_id: str, data: Dict[str, Any], actor: Actor) -> Submission:
        """
        Confirm a pledge as a published cache.

        Preconditions, checked in order:
        - the pledge exists
        - the pledge has no submission yet
        - the actor owns the pledge (admins are not exempt)

        The submission is created and the pledge flipped to HIDDEN with its
        images moved across in a single commit. If a concurrent confirm
        wins the race, the unique constraint on pledge_id rejects this one.
        """
        pledge = self.db.get(Pledge, pledge_id)
        if pledge is None:
            raise NotFoundError("Pledge", pledge_id)

        if pledge.submission is not None:
            raise DuplicateSubmissionError(pledge_id)

        if actor.user_id is None or pledge.user_id != actor.user_id:
            raise AccessDeniedError()

        images = normalize_images(pledge.images)

        submission = Submission(
            pledge_id=pledge.id,
            user_id=actor.user_id,
            gc_username=pledge.gc_username,
            gc_code=data["gc_code"],
            cache_name=data["cache_name"],
            suburb=data["suburb"],
            state=data["state"],
            difficulty=data["difficulty"],
            terrain=data["terrain"],
            type=data["type"],
            hidden_date=_as_datetime(data["hidden_date"]),
            notes=data.get("notes"),
            images=images
        )
        self.db.add(submission)

        # Images are moved, not copied
        pledge.status = PledgeStatus.HIDDEN
        pledge.images = None

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning("Lost confirm race for pledge %s", pledge_id)
            raise DuplicateSubmissionError(pledge_id)

        self.db.refresh(submission)
        logger.info("Pledge %s confirmed as %s (submission %s)", pledge_id, submission.gc_code, submission.id)
        return submission

    def get_submission(self, submission_id: str, actor: Actor) -> Submission:
        submission = self.db.get(Submission, submission_id)
        if submission is None:
            raise NotFoundError("Submission", submission_id)
        ensure_can_access(actor, submission.user_id)
        return submission

    def list_submissions_for_user(self, user_id: str) -> List[Submission]:
        return self.db.query(Submission).filter(
            Submission.user_id == user_id
        ).order_by(Submission.created_at.desc()).all()

    def update_submission(self, submission_id: str, changes: Dict[str, Any], actor: Actor) -> Submission:
        """Apply a partial edit. The pledge link itself cannot be changed."""
        submission = self.get_submission(submission_id, actor)
        before = snapshot(submission)

        _apply_changes(submission, changes, SUBMISSION_FIELDS)
        self.db.commit()
        self.db.refresh(submission)

        if actor.is_admin:
            self.audit.record(
                actor, AuditAction.UPDATE_SUBMISSION, TargetKind.SUBMISSION,
                submission.id, before, snapshot(submission)
            )
        return submission

    def delete_submission(self, submission_id: str, actor: Actor) -> Pledge:
        """
        Un-confirm: delete the submission and put its pledge back to CONCEPT.

        The images that moved to the submission are not given back to the
        pledge; they are lost with the submission.
        """
        submission = self.get_submission(submission_id, actor)
        before = snapshot(submission)
        pledge = submission.pledge

        self.db.delete(submission)
        pledge.status = PledgeStatus.CONCEPT
        self.db.commit()
        self.db.refresh(pledge)
        logger.info("Submission %s deleted; pledge %s back to CONCEPT", submission_id, pledge.id)

        if actor.is_admin:
            self.audit.record(
                actor, AuditAction.DELETE_SUBMISSION, TargetKind.SUBMISSION,
                submission_id, before
            )
        return pledge
