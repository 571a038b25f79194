import enum
import uuid
from datetime import datetime
from typing import Any, Dict, Optional
from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, Text, Uuid
from uuid6 import uuid7
from sqlmodel import Column, SQLModel, Field, String
from intranet.common.utils import now


class AdminRole(str, enum.Enum):
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


class SuggestionStatus(str, enum.Enum):
    NEW = "new"
    REVIEWED = "reviewed"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    ARCHIVED = "archived"


class ActivityAction(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    LOGIN = "login"
    LOGOUT = "logout"


class AdminUser(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(
        default_factory=uuid7,
        sa_column=Column(Uuid, unique=True, index=True, nullable=False)
    )
    phone: str = Field(sa_column=Column(String(20), nullable=False, unique=True, index=True))  # canonical 233XXXXXXXXX
    name: str = Field(sa_column=Column(String(128), nullable=False))
    email: Optional[str] = Field(default=None, sa_column=Column(String(320), nullable=True))
    role: str = Field(default=AdminRole.ADMIN.value, sa_column=Column(String(16), nullable=False, index=True))
    department: Optional[str] = Field(default=None, sa_column=Column(String(128), nullable=True))
    is_active: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True, index=True))
    last_login_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))


class OtpCode(SQLModel, table=True):
    """One live code per phone. Rows are overwritten on re-issue and deleted once consumed or expired."""
    id: Optional[int] = Field(default=None, primary_key=True)
    phone: str = Field(sa_column=Column(String(20), nullable=False, unique=True, index=True))
    code_hash: str = Field(sa_column=Column(String(128), nullable=False))  # never the plaintext code
    attempts_remaining: int = Field(sa_column=Column(Integer, nullable=False))
    issued_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    expires_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False, index=True))


class AdminSession(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(
        default_factory=uuid7,
        sa_column=Column(Uuid, unique=True, index=True, nullable=False)
    )
    # sha256 hex of the opaque cookie token
    session_token_hash: str = Field(sa_column=Column(String(128), nullable=False, unique=True, index=True))
    admin_user_id: int = Field(sa_column=Column(ForeignKey("adminuser.id", ondelete="CASCADE"), index=True, nullable=False))
    role: str = Field(sa_column=Column(String(16), nullable=False))
    issued_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    expires_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))


class SuggestionCategory(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(String(100), nullable=False))
    slug: str = Field(sa_column=Column(String(120), nullable=False, unique=True, index=True))
    description: Optional[str] = Field(default=None, sa_column=Column(String(500), nullable=True))
    is_active: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True, index=True))
    display_order: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))


class Suggestion(SQLModel, table=True):
    """Anonymous by construction: no column derived from the submitter (ip, hash, agent) exists here."""
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(
        default_factory=uuid7,
        sa_column=Column(Uuid, unique=True, index=True, nullable=False)
    )
    content: str = Field(sa_column=Column(Text(), nullable=False))
    category_id: int = Field(sa_column=Column(ForeignKey("suggestioncategory.id", ondelete="RESTRICT"), index=True, nullable=False))
    status: str = Field(default=SuggestionStatus.NEW.value, sa_column=Column(String(16), nullable=False, default=SuggestionStatus.NEW.value))
    admin_notes: Optional[str] = Field(default=None, sa_column=Column(Text(), nullable=True))
    reviewed_by_id: Optional[int] = Field(default=None, sa_column=Column(ForeignKey("adminuser.id", ondelete="SET NULL"), nullable=True))
    reviewed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))

    __table_args__ = (
        Index("ix_suggestion_status_created_at", "status", "created_at"),
        Index("ix_suggestion_category_status", "category_id", "status"),
    )


class ActivityLog(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    admin_user_id: Optional[int] = Field(default=None, sa_column=Column(ForeignKey("adminuser.id", ondelete="SET NULL"), index=True, nullable=True))
    action: str = Field(sa_column=Column(String(16), nullable=False, index=True))
    resource: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    resource_id: Optional[str] = Field(default=None, sa_column=Column(String(64), nullable=True))
    details: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    ip_address: Optional[str] = Field(default=None, sa_column=Column(String(64), nullable=True))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now, index=True))
