"""사용자 계정 SQLAlchemy ORM 모델 정의.

User account SQLAlchemy ORM model definition.
A user is the authenticated identity (JWT ``sub``); HR data lives on
the linked Employee record.

Tables:
    - users: 사용자 계정 (User accounts with org scoping)
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrapp.database import Base, UTCDateTime, utcnow


class User(Base):
    """사용자 모델 — 시스템 사용자 계정 정보.

    User model — System user account information.
    Each user belongs to exactly one organization.
    Username is unique within an organization (not globally).

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        organization_id: 소속 조직 FK (Parent organization foreign key)
        username: 로그인 아이디 (Login username, unique per org)
        email: 이메일 (Email address, optional)
        full_name: 실명 (Full display name)
        is_active: 활성 상태 (Active status, soft-delete pattern)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)

    Constraints:
        uq_user_org_username: 조직 내 사용자명 고유 (Unique username per org)
    """

    __tablename__ = "users"

    # 사용자 고유 식별자 — User unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 소속 조직 FK — Parent organization (CASCADE: 조직 삭제 시 사용자도 삭제)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    # 로그인 아이디 — Login username (조직 내 고유, unique within org)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    # 이메일 — Email address (optional)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # 실명 — User's full display name
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # 활성 상태 — Whether the user account is active
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    # 수정 일시 — Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("organization_id", "username", name="uq_user_org_username"),
    )

    # 관계 — Relationships
    organization = relationship("Organization", back_populates="users")
    employee = relationship("Employee", back_populates="user", uselist=False)
