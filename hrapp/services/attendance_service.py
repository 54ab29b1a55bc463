"""근태 관리 서비스 — 출퇴근/휴식 상태 전이 및 근태 조회 비즈니스 로직.

Attendance Service — The attendance engine.
Handles the clock-in / break / clock-out state machine, derived durations,
history and monthly summary queries, and the dashboard attendance statistics.

Every state transition runs inside ``attendance_repository.run_atomic``:
the open record is re-read (locked) inside the unit of work, so a retried
attempt never acts on stale state.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hrapp.config import settings
from hrapp.database import utcnow
from hrapp.models.attendance import AttendanceRecord, AttendanceStatus
from hrapp.models.employee import Employee
from hrapp.repositories.attendance_repository import (
    ALREADY_CLOCKED_IN,
    AttendanceRepository,
    attendance_repository,
)
from hrapp.repositories.employee_repository import employee_repository
from hrapp.services.employee_directory import EmployeeDirectory, employee_directory
from hrapp.utils.exceptions import BadRequestError, ConflictError, ForbiddenError
from hrapp.utils.pagination import build_page_info
from hrapp.utils.timeutils import day_window, local_date, month_window, to_utc, whole_minutes

# 오류 메시지 — Error messages surfaced to API clients
NO_ACTIVE_CLOCK_IN: str = "No active clock-in record found. Please clock in first."
BREAK_ALREADY_STARTED: str = "Break already started. Please end break first."
BREAK_ALREADY_TAKEN: str = "Break already taken for this session."
NO_ACTIVE_BREAK: str = "No active break found. Please start break first."
SUMMARY_FORBIDDEN: str = "You can only view your own attendance summary"
STATS_FORBIDDEN: str = "Only HR or administrators can view attendance statistics"


def compute_totals(
    clock_in_time: datetime,
    clock_out_time: datetime,
    break_start_time: datetime | None,
    break_end_time: datetime | None,
) -> tuple[int, int]:
    """근무/휴식 시간(분)을 계산합니다.

    Compute (total_working_minutes, total_break_minutes) of a closed session.
    Break minutes are 0 without a complete break interval; working minutes
    are the whole session minus the break.

    Args:
        clock_in_time: 출근 시각 (Clock-in instant)
        clock_out_time: 퇴근 시각 (Clock-out instant)
        break_start_time: 휴식 시작, 선택 (Break start)
        break_end_time: 휴식 종료, 선택 (Break end)

    Returns:
        tuple[int, int]: (순 근무 분, 휴식 분) — (net working minutes, break minutes)
    """
    break_minutes: int = 0
    if break_start_time is not None and break_end_time is not None:
        break_minutes = whole_minutes(break_start_time, break_end_time)
    working_minutes: int = whole_minutes(clock_in_time, clock_out_time) - break_minutes
    return working_minutes, break_minutes


def append_clock_out_notes(existing: str | None, notes: str | None) -> str | None:
    """퇴근 메모를 기존 메모 뒤에 덧붙입니다 — Append clock-out notes, never overwrite."""
    if not notes:
        return existing
    return f"{existing or ''}\nClock Out: {notes}".strip()


def _split_minutes(total: int) -> tuple[int, int]:
    return total // 60, total % 60


class AttendanceService:
    """근태 관리 서비스.

    Attendance service handling the clock state machine, history, summaries
    and attendance statistics.

    Args:
        store: 근태 저장소, 기본값은 싱글턴 레포지토리 (Attendance store)
        directory: 직원 디렉터리 (Employee directory)
        clock: 현재 UTC 시각 함수, 테스트 주입용 (Clock returning an aware UTC datetime)
    """

    def __init__(
        self,
        store: AttendanceRepository | None = None,
        directory: EmployeeDirectory | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store: AttendanceRepository = store or attendance_repository
        self.directory: EmployeeDirectory = directory or employee_directory
        self.clock: Callable[[], datetime] = clock or utcnow

    # === 상태 전이 (State transitions) ===

    async def clock_in(
        self,
        db: AsyncSession,
        user_id: UUID,
        notes: str | None = None,
        location: str | None = None,
    ) -> AttendanceRecord:
        """출근 처리 — 새 근무 세션을 엽니다.

        Clock in: open a new session for the caller's employee.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 요청자 사용자 UUID (Authenticated user UUID)
            notes: 메모, 선택 (Optional notes)
            location: 위치 라벨, 선택 (Optional location label)

        Returns:
            AttendanceRecord: 생성된 기록 (Created open record)

        Raises:
            NotFoundError: 직원 기록이 없을 때 (No employee for this user)
            ConflictError: 이미 출근 상태일 때 (An open record already exists)
        """
        employee: Employee = await self.directory.resolve(db, user_id)
        # 롤백 시 ORM 객체가 만료되므로 식별자를 미리 보관 — rollback expires ORM state
        employee_id: UUID = employee.id

        async def operation() -> AttendanceRecord:
            if await self.store.find_open_record(db, employee_id) is not None:
                raise ConflictError(ALREADY_CLOCKED_IN)
            return await self.store.create(
                db,
                {
                    "employee_id": employee_id,
                    "clock_in_time": self.clock(),
                    "status": AttendanceStatus.CLOCKED_IN.value,
                    "notes": notes,
                    "location_clock_in": location,
                },
            )

        return await self.store.run_atomic(db, operation)

    async def clock_out(
        self,
        db: AsyncSession,
        user_id: UUID,
        notes: str | None = None,
        location: str | None = None,
    ) -> AttendanceRecord:
        """퇴근 처리 — 열린 세션을 닫고 근무/휴식 시간을 확정합니다.

        Clock out: close the open session and fix its durations. A break
        still in progress is ended at the clock-out instant.

        Raises:
            NotFoundError: 직원 기록이 없을 때 (No employee for this user)
            BadRequestError: 열린 기록이 없을 때 (No open record)
        """
        employee: Employee = await self.directory.resolve(db, user_id)
        employee_id: UUID = employee.id

        async def operation() -> AttendanceRecord:
            record: AttendanceRecord | None = await self.store.find_open_record(db, employee_id)
            if record is None:
                raise BadRequestError(NO_ACTIVE_CLOCK_IN)

            now: datetime = max(self.clock(), record.clock_in_time)
            break_start: datetime | None = record.break_start_time
            break_end: datetime | None = record.break_end_time
            if break_start is not None and break_end is None:
                # 휴식 중 퇴근 — 휴식을 퇴근 시각에 종료
                break_end = max(now, break_start)

            working_minutes, break_minutes = compute_totals(
                record.clock_in_time, now, break_start, break_end
            )
            patch: dict[str, Any] = {
                "clock_out_time": now,
                "break_end_time": break_end,
                "status": AttendanceStatus.CLOCKED_OUT.value,
                "total_working_minutes": working_minutes,
                "total_break_minutes": break_minutes,
                "notes": append_clock_out_notes(record.notes, notes),
            }
            if location is not None:
                patch["location_clock_out"] = location

            closed: AttendanceRecord | None = await self.store.update(
                db, record.id, patch, require_open=True
            )
            if closed is None:
                # 동시 요청이 먼저 퇴근 처리함 — closed by a concurrent request
                raise BadRequestError(NO_ACTIVE_CLOCK_IN)
            return closed

        return await self.store.run_atomic(db, operation)

    async def start_break(self, db: AsyncSession, user_id: UUID) -> AttendanceRecord:
        """휴식 시작 — Start the single break of the open session.

        Raises:
            BadRequestError: 열린 기록이 없거나, 이미 휴식 중이거나, 휴식을 이미 사용했을 때
        """
        employee: Employee = await self.directory.resolve(db, user_id)
        employee_id: UUID = employee.id

        async def operation() -> AttendanceRecord:
            record: AttendanceRecord | None = await self.store.find_open_record(db, employee_id)
            if record is None:
                raise BadRequestError(NO_ACTIVE_CLOCK_IN)
            if record.status == AttendanceStatus.BREAK_START.value:
                raise BadRequestError(BREAK_ALREADY_STARTED)
            if record.break_start_time is not None:
                raise BadRequestError(BREAK_ALREADY_TAKEN)

            updated: AttendanceRecord | None = await self.store.update(
                db,
                record.id,
                {
                    "break_start_time": max(self.clock(), record.clock_in_time),
                    "status": AttendanceStatus.BREAK_START.value,
                },
                require_open=True,
            )
            if updated is None:
                raise BadRequestError(NO_ACTIVE_CLOCK_IN)
            return updated

        return await self.store.run_atomic(db, operation)

    async def end_break(self, db: AsyncSession, user_id: UUID) -> AttendanceRecord:
        """휴식 종료 — End the running break and return to clocked_in.

        Raises:
            BadRequestError: 진행 중인 휴식이 없을 때 (No break in progress)
        """
        employee: Employee = await self.directory.resolve(db, user_id)
        employee_id: UUID = employee.id

        async def operation() -> AttendanceRecord:
            record: AttendanceRecord | None = await self.store.find_open_record(db, employee_id)
            if (
                record is None
                or record.status != AttendanceStatus.BREAK_START.value
                or record.break_start_time is None
            ):
                raise BadRequestError(NO_ACTIVE_BREAK)

            updated: AttendanceRecord | None = await self.store.update(
                db,
                record.id,
                {
                    "break_end_time": max(self.clock(), record.break_start_time),
                    "status": AttendanceStatus.CLOCKED_IN.value,
                },
                require_open=True,
            )
            if updated is None:
                raise BadRequestError(NO_ACTIVE_BREAK)
            return updated

        return await self.store.run_atomic(db, operation)

    # === 조회 (Queries) ===

    async def get_current_status(self, db: AsyncSession, user_id: UUID) -> dict:
        """현재 근태 상태를 조회합니다.

        Current status of the caller: the open record (if any) and its
        status, or ``clocked_out`` when there is none. Read-only, no lock.

        Returns:
            dict: {employee, active_record, status}
        """
        employee: Employee = await self.directory.resolve(db, user_id)
        record: AttendanceRecord | None = await self.store.find_open_record(
            db, employee.id, lock=False
        )
        return {
            "employee": self.build_employee_brief(employee),
            "active_record": self.build_record_response(record) if record else None,
            "status": record.status if record else AttendanceStatus.CLOCKED_OUT.value,
        }

    async def get_history(
        self,
        db: AsyncSession,
        user_id: UUID,
        employee_id: UUID | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> dict:
        """근태 이력을 조회합니다.

        Attendance history, newest clock-in first, always scoped to the
        caller's organization. A non-elevated caller only ever sees their own
        records: a requested ``employee_id`` is silently replaced by theirs.
        Pagination metadata is included only when both ``page`` and ``limit``
        are given.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 요청자 사용자 UUID (Authenticated user UUID)
            employee_id: 직원 필터, 선택 (Employee filter)
            start_date: 출근 시각 하한, 포함 (Inclusive lower bound on clock-in)
            end_date: 출근 시각 상한, 포함 (Inclusive upper bound on clock-in)
            page: 페이지 번호 (Page number, 1-based)
            limit: 페이지당 항목 수 (Items per page)

        Returns:
            dict: {data, pagination}

        Raises:
            BadRequestError: 잘못된 페이지/기간 파라미터 (Invalid paging or date range)
        """
        self._validate_paging(page, limit)
        try:
            start_date = to_utc(start_date) if start_date is not None else None
            end_date = to_utc(end_date) if end_date is not None else None
        except OverflowError:
            raise BadRequestError("start_date or end_date is out of range")
        if start_date is not None and end_date is not None and start_date > end_date:
            raise BadRequestError("start_date must not be after end_date")

        caller: Employee = await self.directory.resolve(db, user_id)
        if not self.directory.is_elevated(caller):
            employee_id = caller.id

        records, total = await self.store.query(
            db,
            organization_id=caller.organization_id,
            employee_id=employee_id,
            start_date=start_date,
            end_date=end_date,
            page=page,
            limit=limit,
        )

        pagination = None
        if page is not None and limit is not None:
            pagination = build_page_info(page, limit, total)

        return {
            "data": [self.build_record_response(r, include_employee=True) for r in records],
            "pagination": pagination,
        }

    async def get_summary(
        self,
        db: AsyncSession,
        user_id: UUID,
        employee_id: UUID | None = None,
        month: int | None = None,
        year: int | None = None,
    ) -> dict:
        """월간 근태 요약을 조회합니다.

        Monthly summary of one employee. Only closed records whose clock-in
        falls in the local calendar month count towards the totals; the
        preview lists the most recent records of that month, open or closed.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 요청자 사용자 UUID (Authenticated user UUID)
            employee_id: 대상 직원, 생략 시 본인 (Target employee, defaults to caller)
            month: 월, 1~12, 생략 시 이번 달 (Month, defaults to current)
            year: 연도, 생략 시 올해 (Year, defaults to current)

        Returns:
            dict: AttendanceSummaryResponse 필드 딕셔너리

        Raises:
            BadRequestError: 잘못된 월/연도 (Month outside 1-12 or invalid year)
            ForbiddenError: 일반 직원이 타인 요약을 요청할 때 (Non-elevated caller, other employee)
            NotFoundError: 조직 내에 대상 직원이 없을 때 (Unknown employee in the organization)
        """
        today = local_date(self.clock())
        month = today.month if month is None else month
        year = today.year if year is None else year
        if not 1 <= month <= 12:
            raise BadRequestError("month must be between 1 and 12")
        if not 1 <= year <= 9998:
            raise BadRequestError("year is out of range")
        try:
            window_start, window_end = month_window(year, month)
        except OverflowError:
            # 0001년 1월은 UTC보다 앞선 타임존에서 표현 불가
            raise BadRequestError("year is out of range")

        caller: Employee = await self.directory.resolve(db, user_id)
        target_id: UUID = caller.id
        if employee_id is not None and employee_id != caller.id:
            if not self.directory.is_elevated(caller):
                raise ForbiddenError(SUMMARY_FORBIDDEN)
            target: Employee = await self.directory.get_in_organization(
                db, employee_id, caller.organization_id
            )
            target_id = target.id

        closed: Sequence[AttendanceRecord] = await self.store.get_closed_in_window(
            db, target_id, window_start, window_end
        )
        preview: Sequence[AttendanceRecord] = await self.store.get_recent_in_window(
            db, target_id, window_start, window_end, settings.ATTENDANCE_SUMMARY_PREVIEW_LIMIT
        )

        total_working: int = sum(r.total_working_minutes or 0 for r in closed)
        total_break: int = sum(r.total_break_minutes or 0 for r in closed)
        days_worked: int = len({local_date(r.clock_in_time) for r in closed})
        average: float = round(total_working / days_worked / 60, 2) if days_worked else 0

        working_hours, working_minutes = _split_minutes(total_working)
        break_hours, break_minutes = _split_minutes(total_break)
        return {
            "employee_id": str(target_id),
            "month": month,
            "year": year,
            "total_days_worked": days_worked,
            "total_working_hours": working_hours,
            "total_working_minutes": working_minutes,
            "total_break_hours": break_hours,
            "total_break_minutes": break_minutes,
            "average_working_hours": average,
            "records": [self.build_record_response(r) for r in preview],
        }

    # === 대시보드 통계 (Dashboard statistics) ===

    async def get_today_presence(self, db: AsyncSession, user_id: UUID) -> dict:
        """오늘 출근 현황 — Today's presence across the caller's organization.

        Raises:
            ForbiddenError: HR/관리자가 아닐 때 (Caller is not elevated)
        """
        caller: Employee = await self._resolve_elevated(db, user_id)
        organization_id: UUID = caller.organization_id

        today = local_date(self.clock())
        start, end = day_window(today)
        present: int = await self.store.count_present_employees(db, organization_id, start, end)
        total: int = await employee_repository.count_current(db, organization_id)
        rate: float = round(present / total * 100, 2) if total else 0
        return {
            "day": today,
            "present_today": present,
            "total_employees": total,
            "attendance_rate": rate,
        }

    async def get_attendance_trend(
        self,
        db: AsyncSession,
        user_id: UUID,
        days: int | None = None,
    ) -> list[dict]:
        """일별 출근 추이를 조회합니다.

        Daily attendance of the last ``days`` local days, oldest first. The
        headcount of a day is the number of employees that existed at its
        first instant.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 요청자 사용자 UUID (Authenticated user UUID)
            days: 조회 일수, 생략 시 ATTENDANCE_TREND_DAYS (Number of days)

        Returns:
            list[dict]: [{day, count, total, percentage}, ...]

        Raises:
            BadRequestError: days 범위 오류 (days outside 1-366)
            ForbiddenError: HR/관리자가 아닐 때 (Caller is not elevated)
        """
        days = settings.ATTENDANCE_TREND_DAYS if days is None else days
        if not 1 <= days <= 366:
            raise BadRequestError("days must be between 1 and 366")

        caller: Employee = await self._resolve_elevated(db, user_id)
        organization_id: UUID = caller.organization_id

        today = local_date(self.clock())
        points: list[dict] = []
        for offset in range(days - 1, -1, -1):
            day = today - timedelta(days=offset)
            start, end = day_window(day)
            count: int = await self.store.count_present_employees(db, organization_id, start, end)
            total: int = await employee_repository.count_existing_at(db, organization_id, start)
            points.append(
                {
                    "day": day,
                    "count": count,
                    "total": total,
                    "percentage": round(count / total * 100) if total else 0,
                }
            )
        return points

    # === 응답 빌더 (Response builders) ===

    def build_employee_brief(self, employee: Employee) -> dict:
        """직원 요약 딕셔너리 — Employee brief; the user must be eager-loaded."""
        user = employee.user
        return {
            "id": str(employee.id),
            "name": user.full_name if user else None,
            "email": user.email if user else None,
            "designation": employee.designation,
            "department": employee.department,
        }

    def build_record_response(
        self,
        record: AttendanceRecord,
        include_employee: bool = False,
    ) -> dict:
        """근태 기록 응답 딕셔너리를 구성합니다.

        Build the attendance record response dict. ``include_employee``
        requires the employee (and its user) to be eager-loaded.
        """
        response: dict = {
            "id": str(record.id),
            "employee_id": str(record.employee_id),
            "clock_in_time": record.clock_in_time,
            "clock_out_time": record.clock_out_time,
            "break_start_time": record.break_start_time,
            "break_end_time": record.break_end_time,
            "status": record.status,
            "total_working_minutes": record.total_working_minutes,
            "total_break_minutes": record.total_break_minutes,
            "notes": record.notes,
            "location_clock_in": record.location_clock_in,
            "location_clock_out": record.location_clock_out,
            "created_at": record.created_at,
            "updated_at": record.updated_at,
        }
        if include_employee and record.employee is not None:
            response["employee"] = self.build_employee_brief(record.employee)
        return response

    # === 내부 헬퍼 (Internal helpers) ===

    async def _resolve_elevated(self, db: AsyncSession, user_id: UUID) -> Employee:
        caller: Employee = await self.directory.resolve(db, user_id)
        if not self.directory.is_elevated(caller):
            raise ForbiddenError(STATS_FORBIDDEN)
        return caller

    @staticmethod
    def _validate_paging(page: int | None, limit: int | None) -> None:
        if page is not None and page < 1:
            raise BadRequestError("page must be at least 1")
        if limit is not None and not 1 <= limit <= settings.ATTENDANCE_HISTORY_MAX_LIMIT:
            raise BadRequestError(
                f"limit must be between 1 and {settings.ATTENDANCE_HISTORY_MAX_LIMIT}"
            )


# 싱글턴 인스턴스 — Singleton instance
attendance_service: AttendanceService = AttendanceService()
