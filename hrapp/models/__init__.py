"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package ensures all models are registered with the
SQLAlchemy metadata, which is required for Alembic migrations and
relationship resolution.

Modules:
    organization: 조직 (Organization)
    user: 사용자 계정 (User)
    employee: 직원 (Employee)
    attendance: 근태 기록 (AttendanceRecord, AttendanceStatus)
"""

from hrapp.models.organization import Organization
from hrapp.models.user import User
from hrapp.models.employee import Employee
from hrapp.models.attendance import AttendanceRecord, AttendanceStatus

__all__ = [
    "Organization",
    "User",
    "Employee",
    "AttendanceRecord", "AttendanceStatus",
]
