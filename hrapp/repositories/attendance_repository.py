"""근태 기록 레포지토리 — 근태 기록 DB 쿼리 및 원자적 작업 단위 담당.

Attendance Repository — The attendance store.
Owns every attendance database query plus the unit of work that makes a
state transition atomic:

    - find_open_record: 직원의 열린 기록을 잠금 조회 (locking read, FOR UPDATE)
    - create: 삽입, 부분 유니크 인덱스 위반 시 ConflictError
    - update: 부분 갱신, 닫힌 기록 보호 조건 (compare-and-swap on clock_out_time IS NULL)
    - query: 필터/정렬/페이지네이션 (history queries)
    - run_atomic: 커밋/롤백 + 일시적 오류 시 처음부터 재실행 (bounded retry)
"""

from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrapp.config import settings
from hrapp.models.attendance import AttendanceRecord
from hrapp.models.employee import Employee
from hrapp.repositories.base import BaseRepository
from hrapp.utils.exceptions import ConflictError, NotFoundError

T = TypeVar("T")

# 중복 출근 메시지 — Message surfaced for a second open record
ALREADY_CLOCKED_IN: str = "Already clocked in. Please clock out first."

# 재시도 대상 SQLSTATE — serialization_failure, deadlock_detected
_TRANSIENT_SQLSTATES: frozenset[str] = frozenset({"40001", "40P01"})


def is_transient_error(exc: DBAPIError) -> bool:
    """재시도 가능한 일시적 DB 오류인지 판별합니다.

    Decide whether a driver error is transient: lost connection,
    serialization failure, deadlock, or a busy SQLite database.
    Constraint violations are never transient.

    Args:
        exc: SQLAlchemy DBAPI 예외 (Wrapped driver exception)

    Returns:
        bool: 재시도 가능 여부 (Whether re-running the unit of work may succeed)
    """
    if isinstance(exc, IntegrityError):
        return False
    if exc.connection_invalidated:
        return True
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _TRANSIENT_SQLSTATES:
        return True
    return isinstance(exc, OperationalError) and "database is locked" in str(orig)


class AttendanceRepository(BaseRepository[AttendanceRecord]):
    """근태 기록 레포지토리.

    Attendance record repository. The "at most one open record per employee"
    invariant is held here three ways: a locking read of the open record,
    the partial unique index behind ``create``, and the guarded UPDATE
    behind ``update(require_open=True)``.

    Extends:
        BaseRepository[AttendanceRecord]
    """

    def __init__(self) -> None:
        """레포지토리를 초기화합니다.

        Initialize the attendance repository with AttendanceRecord model.
        """
        super().__init__(AttendanceRecord)

    # === 작업 단위 (Unit of Work) ===

    async def run_atomic(
        self,
        db: AsyncSession,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        """작업을 하나의 트랜잭션으로 실행하고 커밋합니다.

        Run ``operation`` and commit it as one transaction. Any failure rolls
        the transaction back before propagating. Transient driver failures
        re-run ``operation`` from scratch (never resumed), up to
        ATTENDANCE_STORE_MAX_ATTEMPTS attempts in total; ``operation`` must
        therefore re-read whatever state it depends on.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            operation: 인자 없는 비동기 작업 (Zero-argument coroutine factory)

        Returns:
            T: 작업 결과 (Result of the committed operation)

        Raises:
            DBAPIError: 재시도 불가 오류 또는 재시도 소진 (Non-transient or exhausted)
        """
        max_attempts: int = max(1, settings.ATTENDANCE_STORE_MAX_ATTEMPTS)
        attempt: int = 0
        while True:
            attempt += 1
            try:
                result: T = await operation()
                await db.commit()
                return result
            except DBAPIError as exc:
                await db.rollback()
                if attempt >= max_attempts or not is_transient_error(exc):
                    raise
            except Exception:
                await db.rollback()
                raise

    # === 상태 전이용 쿼리 (State transition queries) ===

    async def find_open_record(
        self,
        db: AsyncSession,
        employee_id: UUID,
        lock: bool = True,
    ) -> AttendanceRecord | None:
        """직원의 열린(퇴근 전) 근태 기록을 잠금 조회합니다.

        Retrieve the employee's open record (no clock-out). With ``lock`` the
        row is locked (SELECT ... FOR UPDATE) until the unit of work ends.
        Dialects without row locks (SQLite) serialize writers instead.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            employee_id: 직원 UUID (Employee UUID)
            lock: 행 잠금 여부, 상태 조회 시 False (False for read-only status queries)

        Returns:
            AttendanceRecord | None: 열린 기록 또는 None (Open record or None)
        """
        query: Select = (
            select(AttendanceRecord)
            .where(AttendanceRecord.employee_id == employee_id)
            .where(AttendanceRecord.clock_out_time.is_(None))
            .order_by(AttendanceRecord.clock_in_time.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        if lock:
            query = query.with_for_update()
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def create(
        self,
        db: AsyncSession,
        obj_data: dict[str, Any],
    ) -> AttendanceRecord:
        """새 근태 기록을 생성합니다.

        Insert a new attendance record. The partial unique index rejects a
        second open record for the same employee even when two requests
        passed the application check concurrently.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            obj_data: 생성할 기록 데이터 (Record data)

        Returns:
            AttendanceRecord: 생성된 기록 (Created record)

        Raises:
            ConflictError: 이미 열린 기록이 있을 때 (Employee already has an open record)
        """
        try:
            return await super().create(db, obj_data)
        except IntegrityError as exc:
            raise ConflictError(ALREADY_CLOCKED_IN) from exc

    async def update(
        self,
        db: AsyncSession,
        record_id: UUID,
        patch: dict[str, Any],
        require_open: bool = False,
    ) -> AttendanceRecord | None:
        """근태 기록을 부분 갱신합니다.

        Apply a partial update. With ``require_open`` the UPDATE only matches
        while ``clock_out_time IS NULL``, so a record closed by a concurrent
        request is left untouched and None is returned.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            record_id: 기록 UUID (Record UUID)
            patch: 갱신할 필드 딕셔너리 (Fields to update)
            require_open: 열린 기록만 갱신 (Only update while still open)

        Returns:
            AttendanceRecord | None: 갱신된 기록, 조건 불일치 시 None
                                     (Updated record, or None when the guard missed)

        Raises:
            NotFoundError: 기록이 없을 때 (Unknown record id)
        """
        stmt = update(AttendanceRecord).where(AttendanceRecord.id == record_id)
        if require_open:
            stmt = stmt.where(AttendanceRecord.clock_out_time.is_(None))
        stmt = stmt.values(**patch).execution_options(synchronize_session=False)

        result = await db.execute(stmt)
        if result.rowcount == 0:
            existing: AttendanceRecord | None = await self.get_by_id(db, record_id)
            if existing is None:
                raise NotFoundError("Attendance record not found")
            return None

        return await db.get(AttendanceRecord, record_id, populate_existing=True)

    # === 조회 쿼리 (Read queries) ===

    async def query(
        self,
        db: AsyncSession,
        organization_id: UUID | None = None,
        employee_id: UUID | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> tuple[Sequence[AttendanceRecord], int]:
        """필터 조건에 맞는 근태 기록을 조회합니다.

        Retrieve attendance records matching the filters, newest clock-in
        first, with employee and user eager-loaded. Paginated only when both
        ``page`` and ``limit`` are given; otherwise the full matching set.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            organization_id: 조직 UUID 필터 (Organization scope)
            employee_id: 직원 UUID 필터 (Employee filter)
            start_date: 출근 시각 하한, 포함 (clock_in_time >= start_date)
            end_date: 출근 시각 상한, 포함 (clock_in_time <= end_date)
            page: 페이지 번호, 1부터 시작 (Page number, 1-based)
            limit: 페이지당 항목 수 (Items per page)

        Returns:
            tuple[Sequence[AttendanceRecord], int]: (기록 목록, 전체 개수)
        """
        query: Select = select(AttendanceRecord).options(
            selectinload(AttendanceRecord.employee).selectinload(Employee.user)
        )

        if organization_id is not None:
            query = query.join(Employee, AttendanceRecord.employee_id == Employee.id).where(
                Employee.organization_id == organization_id
            )
        if employee_id is not None:
            query = query.where(AttendanceRecord.employee_id == employee_id)
        if start_date is not None:
            query = query.where(AttendanceRecord.clock_in_time >= start_date)
        if end_date is not None:
            query = query.where(AttendanceRecord.clock_in_time <= end_date)

        query = query.order_by(AttendanceRecord.clock_in_time.desc(), AttendanceRecord.id)

        if page is not None and limit is not None:
            return await self.get_paginated(db, query, page, limit)

        result = await db.execute(query)
        records: Sequence[AttendanceRecord] = result.scalars().all()
        return records, len(records)

    async def get_closed_in_window(
        self,
        db: AsyncSession,
        employee_id: UUID,
        window_start: datetime,
        window_end: datetime,
    ) -> Sequence[AttendanceRecord]:
        """기간 내 출근한 닫힌 기록을 조회합니다.

        Closed records of an employee whose clock-in falls in
        ``[window_start, window_end)``, newest first.
        """
        query: Select = (
            select(AttendanceRecord)
            .where(AttendanceRecord.employee_id == employee_id)
            .where(AttendanceRecord.clock_in_time >= window_start)
            .where(AttendanceRecord.clock_in_time < window_end)
            .where(AttendanceRecord.clock_out_time.is_not(None))
            .order_by(AttendanceRecord.clock_in_time.desc())
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def get_recent_in_window(
        self,
        db: AsyncSession,
        employee_id: UUID,
        window_start: datetime,
        window_end: datetime,
        limit: int,
    ) -> Sequence[AttendanceRecord]:
        """기간 내 최근 기록(열림/닫힘 무관) — Most recent records in a window, open or closed."""
        query: Select = (
            select(AttendanceRecord)
            .where(AttendanceRecord.employee_id == employee_id)
            .where(AttendanceRecord.clock_in_time >= window_start)
            .where(AttendanceRecord.clock_in_time < window_end)
            .order_by(AttendanceRecord.clock_in_time.desc())
            .limit(limit)
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def count_present_employees(
        self,
        db: AsyncSession,
        organization_id: UUID,
        window_start: datetime,
        window_end: datetime,
    ) -> int:
        """기간 내 출근한 직원 수(중복 제외)를 셉니다.

        Count distinct non-deleted employees of an organization with at least
        one clock-in in ``[window_start, window_end)``.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            organization_id: 조직 UUID (Organization UUID)
            window_start: 구간 시작 UTC, 포함 (Inclusive start)
            window_end: 구간 끝 UTC, 제외 (Exclusive end)

        Returns:
            int: 출근 직원 수 (Distinct present employees)
        """
        query: Select = (
            select(func.count(func.distinct(AttendanceRecord.employee_id)))
            .join(Employee, AttendanceRecord.employee_id == Employee.id)
            .where(Employee.organization_id == organization_id)
            .where(Employee.deleted_at.is_(None))
            .where(AttendanceRecord.clock_in_time >= window_start)
            .where(AttendanceRecord.clock_in_time < window_end)
        )
        return (await db.execute(query)).scalar() or 0


# 싱글턴 인스턴스 — Singleton instance
attendance_repository: AttendanceRepository = AttendanceRepository()
