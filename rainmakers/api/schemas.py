"""Pydantic schemas for request/response validation."""
from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rainmakers.models.enums import AustralianState, CacheSize, CacheType, PledgeStatus
from rainmakers.services.images import MAX_IMAGES, normalize_images

GC_CODE_PATTERN = r"^GC[A-Z0-9]+$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
RATINGS = [x / 2 for x in range(2, 11)]  # 1.0, 1.5, ... 5.0


def _half_point_rating(value: Optional[float]) -> Optional[float]:
    if value is not None and value not in RATINGS:
        raise ValueError("must be in 0.5 increments from 1.0 to 5.0")
    return value


def _date_only_to_datetime(value):
    if isinstance(value, str) and len(value) == 10:
        return f"{value}T00:00:00"
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    return value


class ImageRef(BaseModel):
    """An uploaded image as returned by the storage service."""
    url: str
    key: Optional[str] = None
    width: Optional[float] = None
    height: Optional[float] = None


class ImageUpload(ImageRef):
    url: str = Field(..., pattern=r"^https?://")


# User schemas
class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    gc_username: Optional[str]
    created_at: datetime


class UserUpdate(BaseModel):
    gc_username: str = Field(..., min_length=1, max_length=100)


class OwnerSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    gc_username: Optional[str]


# Pledge schemas
class PledgeCreate(BaseModel):
    gc_username: str = Field(..., min_length=1, max_length=100)
    title: Optional[str] = Field(None, max_length=200)
    cache_type: CacheType
    cache_size: CacheSize
    approx_suburb: str = Field(..., min_length=1, max_length=200)
    approx_state: AustralianState
    concept_notes: Optional[str] = None
    images: List[ImageUpload] = Field(default_factory=list, max_length=MAX_IMAGES)


class PledgeUpdate(BaseModel):
    """Partial edit; only the fields sent are changed."""
    gc_username: Optional[str] = Field(None, min_length=1, max_length=100)
    title: Optional[str] = Field(None, max_length=200)
    cache_type: Optional[CacheType] = None
    cache_size: Optional[CacheSize] = None
    approx_suburb: Optional[str] = Field(None, min_length=1, max_length=200)
    approx_state: Optional[AustralianState] = None
    concept_notes: Optional[str] = None
    images: Optional[List[ImageUpload]] = Field(None, max_length=MAX_IMAGES)


class SubmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    pledge_id: str
    user_id: Optional[str]
    gc_username: str
    gc_code: str
    cache_name: str
    suburb: str
    state: AustralianState
    difficulty: float
    terrain: float
    type: CacheType
    hidden_date: datetime
    notes: Optional[str]
    images: List[ImageRef]
    created_at: datetime

    @field_validator("images", mode="before")
    @classmethod
    def normalize_stored_images(cls, value):
        return normalize_images(value)


class PledgeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: Optional[str]
    gc_username: str
    title: Optional[str]
    cache_type: CacheType
    cache_size: CacheSize
    approx_suburb: str
    approx_state: AustralianState
    concept_notes: Optional[str]
    images: List[ImageRef]
    status: PledgeStatus
    created_at: datetime

    @field_validator("images", mode="before")
    @classmethod
    def normalize_stored_images(cls, value):
        return normalize_images(value)


class PledgeWithSubmission(PledgeResponse):
    submission: Optional[SubmissionResponse] = None


class SubmissionWithPledge(SubmissionResponse):
    pledge: Optional[PledgeResponse] = None


# Submission schemas
class SubmissionCreate(BaseModel):
    pledge_id: str = Field(..., min_length=1)
    gc_code: str = Field(..., pattern=GC_CODE_PATTERN)
    cache_name: str = Field(..., min_length=1, max_length=200)
    suburb: str = Field(..., min_length=1, max_length=200)
    state: AustralianState
    difficulty: float
    terrain: float
    type: CacheType
    hidden_date: datetime
    notes: Optional[str] = None

    @field_validator("difficulty", "terrain")
    @classmethod
    def check_rating(cls, value):
        return _half_point_rating(value)

    @field_validator("hidden_date", mode="before")
    @classmethod
    def parse_hidden_date(cls, value):
        return _date_only_to_datetime(value)


class SubmissionUpdate(BaseModel):
    """Partial edit; the linked pledge cannot be changed."""
    gc_code: Optional[str] = Field(None, pattern=GC_CODE_PATTERN)
    cache_name: Optional[str] = Field(None, min_length=1, max_length=200)
    suburb: Optional[str] = Field(None, min_length=1, max_length=200)
    state: Optional[AustralianState] = None
    difficulty: Optional[float] = None
    terrain: Optional[float] = None
    type: Optional[CacheType] = None
    hidden_date: Optional[datetime] = None
    notes: Optional[str] = None
    images: Optional[List[ImageUpload]] = Field(None, max_length=MAX_IMAGES)

    @field_validator("difficulty", "terrain")
    @classmethod
    def check_rating(cls, value):
        return _half_point_rating(value)

    @field_validator("hidden_date", mode="before")
    @classmethod
    def parse_hidden_date(cls, value):
        return _date_only_to_datetime(value)


# Admin schemas
class AdminPledgeResponse(PledgeWithSubmission):
    user: Optional[OwnerSummary] = None


class AdminSubmissionResponse(SubmissionWithPledge):
    user: Optional[OwnerSummary] = None


class AdminLogin(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1)


class AdminSessionResponse(BaseModel):
    authenticated: bool
    email: Optional[str] = None


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    actor_id: Optional[str]
    actor_email: Optional[str]
    action: str
    target_id: str
    target_kind: str
    before: Optional[dict]
    after: Optional[dict]
    created_at: datetime


class GalleryImage(BaseModel):
    id: str
    url: str
    source: str
    gc_username: str
    label: str
    created_at: datetime


# Stats schemas
class PublicStats(BaseModel):
    total_pledged: int
    total_submissions: int
    rainmakers: int
    by_state: Dict[str, int]
    by_type: Dict[str, int]
    by_size: Dict[str, int]


class AdminStats(BaseModel):
    total_pledges: int
    total_submissions: int
    total_pledgers: int
    rainmakers: int
    state_breakdown: Dict[str, Dict[str, int]]
    type_breakdown: Dict[str, Dict[str, int]]
    size_breakdown: Dict[str, Dict[str, int]]


# Magic link schemas
class EditTokenRequest(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)


class ManageResponse(BaseModel):
    user: UserResponse
    pledges: List[PledgeWithSubmission]
    submissions: List[SubmissionResponse]
    token: str


class MessageResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
