import enum
import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class OtpRequestIn(BaseModel):
    phone: str = Field(..., min_length=1, max_length=32)


class OtpVerifyIn(BaseModel):
    phone: str = Field(..., min_length=1, max_length=32)
    code: str = Field(..., min_length=1, max_length=12)


class OtpFailure(str, enum.Enum):
    INVALID_PHONE = "invalid_phone"
    NOT_REGISTERED = "not_registered"
    TOO_SOON = "too_soon"
    EXPIRED = "expired"
    MISMATCH = "mismatch"
    EXHAUSTED = "exhausted"


class CodeRequestResult(BaseModel):
    ok: bool
    failure: Optional[OtpFailure] = None
    phone: Optional[str] = None
    expires_at: Optional[datetime] = None
    retry_after_seconds: Optional[int] = None


class CodeVerifyResult(BaseModel):
    ok: bool
    failure: Optional[OtpFailure] = None
    phone: Optional[str] = None
    attempts_remaining: Optional[int] = None


class CodeStatus(BaseModel):
    has_active_code: bool
    can_resend: bool
    cooldown_remaining_seconds: int = 0
    expires_at: Optional[datetime] = None
    attempts_remaining: Optional[int] = None


class AdminOut(BaseModel):
    public_id: uuid.UUID
    name: str
    phone: str
    email: Optional[str] = None
    role: str
    department: Optional[str] = None
    is_active: bool
    last_login_at: Optional[datetime] = None
