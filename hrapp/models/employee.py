"""직원 SQLAlchemy ORM 모델 정의.

Employee SQLAlchemy ORM model definition.
An employee is the HR-side record linked to a user account; attendance
records belong to employees, not to users.

Tables:
    - employees: 직원 (Employees with designation/department/status)
"""

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrapp.database import Base, UTCDateTime, utcnow

# 직급 — Employee designations
EMPLOYEE_DESIGNATIONS: tuple[str, ...] = (
    "software_engineer",
    "product_manager",
    "designer",
    "data_scientist",
    "quality_assurance",
    "devops_engineer",
    "system_administrator",
    "business_analyst",
    "project_manager",
    "hr",
    "founder",
)


class Employee(Base):
    """직원 모델 — 조직 내 인사 기록.

    Employee model — HR record of a person within an organization.
    ``designation`` is what the EmployeeDirectory uses to decide whether
    the employee has elevated (HR/admin-equivalent) capability.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        organization_id: 소속 조직 FK (Parent organization)
        user_id: 사용자 계정 FK, 초대 중이면 없음 (Linked user account, null while invited)
        designation: 직급 (Designation, see EMPLOYEE_DESIGNATIONS)
        department: 부서 (Department, e.g. engineering, human_resources)
        status: 재직 상태 (active, invited, terminated, resigned, on_leave)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)
        deleted_at: 삭제 일시, 소프트 삭제 (Soft-delete timestamp)
    """

    __tablename__ = "employees"

    # 직원 고유 식별자 — Employee unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 소속 조직 FK — Parent organization
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    # 사용자 계정 FK — One employee record per user account
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, unique=True)
    # 직급 — Designation (e.g. "hr", "founder", "software_engineer")
    designation: Mapped[str] = mapped_column(String(50), nullable=False)
    # 부서 — Department
    department: Mapped[str] = mapped_column(String(50), nullable=False)
    # 재직 상태 — Employment status
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    # 수정 일시 — Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)
    # 삭제 일시 — Soft-delete timestamp (null = not deleted)
    deleted_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    __table_args__ = (
        Index("ix_employees_org", "organization_id"),
    )

    # 관계 — Relationships
    organization = relationship("Organization", back_populates="employees")
    user = relationship("User", back_populates="employee")
    attendance_records = relationship("AttendanceRecord", back_populates="employee", cascade="all, delete-orphan")
