"""User accounts as seen by this service."""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rainmakers.models.domain import User

logger = logging.getLogger(__name__)


def get_or_create_user(db: Session, user_id: str, email: str) -> User:
    """
    Get the signed-in user, creating the row on first sign-in.

    Handles the race where two first requests insert the same user: the
    loser rolls back and reads the winner's row.
    """
    user = db.get(User, user_id)
    if user is None:
        user = db.query(User).filter(User.email == email).first()

    if user is None:
        user = User(id=user_id, email=email)
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            user = db.get(User, user_id) or db.query(User).filter(User.email == email).one()
        else:
            logger.info("Created user %s on first sign-in", user_id)

    return user


def update_gc_username(db: Session, user: User, gc_username: str) -> User:
    user.gc_username = gc_username
    db.commit()
    db.refresh(user)
    return user
