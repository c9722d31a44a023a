"""Domain models - participants, their pledges and the confirmed submissions."""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Float, DateTime, ForeignKey, Enum as SQLEnum, JSON, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from rainmakers.database import Base
from rainmakers.models.enums import PledgeStatus, CacheType, CacheSize, AustralianState


def new_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    """
    A participant, created the first time they sign in.

    The geocaching username is editable from the profile page and is also
    snapshotted onto every pledge and submission at creation time.
    """
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_id)
    email = Column(String, nullable=False, unique=True, index=True)
    gc_username = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    pledges = relationship("Pledge", back_populates="user")
    submissions = relationship("Submission", back_populates="user")


class Pledge(Base):
    """
    A stated intent to hide a cache.

    Invariants:
    - At most one Submission per Pledge (unique submissions.pledge_id)
    - Status is HIDDEN exactly while a Submission is attached
    - Images live here until the pledge is confirmed, then move to the Submission
    """
    __tablename__ = "pledges"

    id = Column(String, primary_key=True, default=new_id)
    # Nullable for legacy anonymous pledges
    user_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    gc_username = Column(String, nullable=False)

    title = Column(String, nullable=True)
    cache_type = Column(SQLEnum(CacheType), nullable=False)
    cache_size = Column(SQLEnum(CacheSize), nullable=False)
    approx_suburb = Column(String, nullable=False)
    approx_state = Column(SQLEnum(AustralianState), nullable=False)
    concept_notes = Column(Text, nullable=True)
    # Raw JSON; legacy rows may hold a list, an encoded string or {"urls": [...]}
    images = Column(JSON, nullable=True)

    status = Column(SQLEnum(PledgeStatus), nullable=False, default=PledgeStatus.CONCEPT)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    user = relationship("User", back_populates="pledges")
    submission = relationship(
        "Submission",
        back_populates="pledge",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Submission(Base):
    """
    A published cache confirmed against exactly one Pledge.

    Invariants:
    - pledge_id is unique, which is what finally stops a double confirm
    - gc_username and images are inherited from the pledge when created
    """
    __tablename__ = "submissions"
    __table_args__ = (UniqueConstraint("pledge_id", name="uq_submissions_pledge_id"),)

    id = Column(String, primary_key=True, default=new_id)
    pledge_id = Column(String, ForeignKey("pledges.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    gc_username = Column(String, nullable=False)

    gc_code = Column(String, nullable=False)
    cache_name = Column(String, nullable=False)
    suburb = Column(String, nullable=False)
    state = Column(SQLEnum(AustralianState), nullable=False)
    difficulty = Column(Float, nullable=False)
    terrain = Column(Float, nullable=False)
    type = Column(SQLEnum(CacheType), nullable=False)
    hidden_date = Column(DateTime, nullable=False)
    notes = Column(Text, nullable=True)
    images = Column(JSON, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    pledge = relationship("Pledge", back_populates="submission")
    user = relationship("User", back_populates="submissions")


class VerificationToken(Base):
    """Random token backing a magic link; looked up by value, expires on its own."""
    __tablename__ = "verification_tokens"

    token = Column(String, primary_key=True)
    identifier = Column(String, nullable=False, index=True)
    expires = Column(DateTime, nullable=False)
