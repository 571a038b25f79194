import enum
from datetime import datetime
from typing import Optional, Union
from pydantic import BaseModel, Field
from intranet.schema.full_schema import SuggestionStatus


class SuggestionIn(BaseModel):
    # length bounds are checked on the trimmed text by the gate, which reports too_short / too_long
    content: str
    category_id: Union[int, str]
    # honeypot: hidden in the form, only bots fill it
    website: Optional[str] = Field(None, max_length=500)


class SubmissionFailure(str, enum.Enum):
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    INVALID_CATEGORY = "invalid_category"
    RATE_LIMITED = "rate_limited"


class RateLimitStatus(BaseModel):
    allowed: bool
    remaining: int
    limit: int
    reset_at: datetime


class SubmissionResult(BaseModel):
    ok: bool
    failure: Optional[SubmissionFailure] = None
    public_id: Optional[str] = None
    remaining: Optional[int] = None
    reset_at: Optional[datetime] = None
    retry_after_seconds: Optional[int] = None


class StatusUpdateIn(BaseModel):
    status: SuggestionStatus
    notes: Optional[str] = Field(None, max_length=5000)


class NotesIn(BaseModel):
    notes: str = Field(..., max_length=5000)


class CategoryCreateIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)

    model_config = {"extra": "forbid"}


class CategoryUpdateIn(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None
    display_order: Optional[int] = Field(None, ge=0)

    model_config = {"extra": "forbid"}
