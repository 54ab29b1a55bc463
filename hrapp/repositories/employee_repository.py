"""직원 레포지토리 — 직원 조회 DB 쿼리 담당.

Employee Repository — Database queries behind the EmployeeDirectory:
user → employee resolution, organization-scoped lookups, and headcounts
for attendance statistics.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrapp.models.employee import Employee
from hrapp.repositories.base import BaseRepository


class EmployeeRepository(BaseRepository[Employee]):
    """직원 레포지토리.

    Employee repository. Soft-deleted employees (``deleted_at`` set) are
    invisible to every lookup here.

    Extends:
        BaseRepository[Employee]
    """

    def __init__(self) -> None:
        super().__init__(Employee)

    async def get_by_user_id(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> Employee | None:
        """사용자 계정에 연결된 직원을 조회합니다 (사용자 정보 포함).

        Retrieve the employee linked to a user account, with the user eager-loaded.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 사용자 UUID (User UUID from the verified token)

        Returns:
            Employee | None: 직원 또는 None (Employee or None)
        """
        query: Select = (
            select(Employee)
            .options(selectinload(Employee.user))
            .where(Employee.user_id == user_id)
            .where(Employee.deleted_at.is_(None))
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_in_organization(
        self,
        db: AsyncSession,
        employee_id: UUID,
        organization_id: UUID,
    ) -> Employee | None:
        """조직 범위 내에서 직원을 조회합니다.

        Retrieve an employee within an organization scope.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            employee_id: 직원 UUID (Employee UUID)
            organization_id: 조직 UUID (Organization UUID)

        Returns:
            Employee | None: 직원 또는 None (Employee or None)
        """
        query: Select = (
            select(Employee)
            .options(selectinload(Employee.user))
            .where(Employee.id == employee_id)
            .where(Employee.organization_id == organization_id)
            .where(Employee.deleted_at.is_(None))
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def count_current(
        self,
        db: AsyncSession,
        organization_id: UUID,
    ) -> int:
        """조직의 현재 직원 수 — Count non-deleted employees of an organization."""
        query: Select = (
            select(func.count())
            .select_from(Employee)
            .where(Employee.organization_id == organization_id)
            .where(Employee.deleted_at.is_(None))
        )
        return (await db.execute(query)).scalar() or 0

    async def count_existing_at(
        self,
        db: AsyncSession,
        organization_id: UUID,
        moment: datetime,
    ) -> int:
        """특정 시점에 재직 중이던 직원 수를 셉니다.

        Count employees that existed at ``moment``: created at or before it
        and not soft-deleted before it.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            organization_id: 조직 UUID (Organization UUID)
            moment: 기준 시각 UTC (Reference instant)

        Returns:
            int: 직원 수 (Employee count)
        """
        query: Select = (
            select(func.count())
            .select_from(Employee)
            .where(Employee.organization_id == organization_id)
            .where(Employee.created_at <= moment)
            .where(or_(Employee.deleted_at.is_(None), Employee.deleted_at > moment))
        )
        return (await db.execute(query)).scalar() or 0


# 싱글턴 인스턴스 — Singleton instance
employee_repository: EmployeeRepository = EmployeeRepository()
