"""직원 디렉터리 서비스 — 사용자 → 직원 매핑 및 권한 수준 판단.

Employee Directory — Maps an authenticated user to an employee record and
is the single source of truth for "is this employee HR/admin-equivalent".
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hrapp.config import settings
from hrapp.models.employee import Employee
from hrapp.repositories.employee_repository import employee_repository
from hrapp.utils.exceptions import NotFoundError


class EmployeeDirectory:
    """직원 디렉터리."""

    async def resolve(self, db: AsyncSession, user_id: UUID) -> Employee:
        """사용자 계정의 직원 기록을 찾습니다.

        Resolve the employee record of an authenticated user.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 사용자 UUID (User UUID)

        Returns:
            Employee: 직원 (Employee with user loaded)

        Raises:
            NotFoundError: 직원 기록이 없을 때 (No employee for this user)
        """
        employee: Employee | None = await employee_repository.get_by_user_id(db, user_id)
        if employee is None:
            raise NotFoundError("Employee record not found")
        return employee

    async def get_in_organization(
        self,
        db: AsyncSession,
        employee_id: UUID,
        organization_id: UUID,
    ) -> Employee:
        """같은 조직의 직원을 찾습니다 — Employee of the given organization, or NotFoundError."""
        employee: Employee | None = await employee_repository.get_in_organization(
            db, employee_id, organization_id
        )
        if employee is None:
            raise NotFoundError("Employee record not found")
        return employee

    def is_elevated(self, employee: Employee) -> bool:
        """HR/관리자 동급 여부 — Whether the employee may view other employees' attendance."""
        return employee.designation in settings.ATTENDANCE_ELEVATED_DESIGNATIONS


# 싱글턴 인스턴스 — Singleton instance
employee_directory: EmployeeDirectory = EmployeeDirectory()
