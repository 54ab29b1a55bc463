"""근태 상태 전이 테스트.

Attendance engine tests — clock-in / break / clock-out state machine,
duration computation, notes handling and error cases.
"""

import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrapp.models.attendance import AttendanceRecord
from hrapp.services.attendance_service import (
    BREAK_ALREADY_STARTED,
    BREAK_ALREADY_TAKEN,
    NO_ACTIVE_BREAK,
    NO_ACTIVE_CLOCK_IN,
    append_clock_out_notes,
    compute_totals,
)
from hrapp.utils.exceptions import BadRequestError, ConflictError, NotFoundError


def _at(hour: int, minute: int = 0, second: int = 0) -> datetime:
    return datetime(2026, 3, 2, hour, minute, second, tzinfo=timezone.utc)


async def _count_open(db: AsyncSession, employee_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(AttendanceRecord)
        .where(AttendanceRecord.employee_id == employee_id)
        .where(AttendanceRecord.clock_out_time.is_(None))
    )
    return result.scalar() or 0


# ===== 순수 계산 (Pure computations) =====

class TestComputeTotals:
    """근무/휴식 시간 계산 테스트."""

    def test_no_break(self):
        assert compute_totals(_at(9), _at(17), None, None) == (480, 0)

    def test_with_break(self):
        assert compute_totals(_at(9), _at(17), _at(12), _at(12, 30)) == (450, 30)

    def test_floors_partial_minutes(self):
        """초 단위는 버림."""
        assert compute_totals(_at(9), _at(9, 10, 59), _at(9, 1, 0), _at(9, 3, 30)) == (8, 2)

    def test_sub_minute_session_is_zero(self):
        assert compute_totals(_at(9), _at(9, 0, 59), None, None) == (0, 0)

    def test_incomplete_break_ignored(self):
        assert compute_totals(_at(9), _at(10), _at(9, 30), None) == (60, 0)


class TestAppendNotes:
    """퇴근 메모 덧붙이기 테스트."""

    def test_appends_to_existing(self):
        assert append_clock_out_notes("morning", "done") == "morning\nClock Out: done"

    def test_without_existing_notes(self):
        assert append_clock_out_notes(None, "done") == "Clock Out: done"

    def test_no_new_notes_keeps_existing(self):
        assert append_clock_out_notes("morning", None) == "morning"
        assert append_clock_out_notes(None, "") is None


# ===== 상태 전이 (State transitions) =====

class TestClockIn:
    """출근 테스트."""

    async def test_clock_in_creates_open_record(self, db, service, staff):
        record = await service.clock_in(db, staff.user_id, notes="morning", location="HQ")
        assert record.employee_id == staff.employee_id
        assert record.clock_in_time == _at(9)
        assert record.clock_out_time is None
        assert record.status == "clocked_in"
        assert record.total_working_minutes is None
        assert record.total_break_minutes is None
        assert record.notes == "morning"
        assert record.location_clock_in == "HQ"

    async def test_double_clock_in_conflict_leaves_record_unchanged(self, db, service, clock, staff):
        """두 번째 출근은 Conflict, 기존 기록은 그대로."""
        first = await service.clock_in(db, staff.user_id)
        first_id = first.id

        clock.set(10)
        with pytest.raises(ConflictError) as exc_info:
            await service.clock_in(db, staff.user_id)
        assert exc_info.value.detail == "Already clocked in. Please clock out first."

        assert await _count_open(db, staff.employee_id) == 1
        stored = (
            await db.execute(select(AttendanceRecord).where(AttendanceRecord.id == first_id))
        ).scalar_one()
        assert stored.clock_in_time == _at(9)
        assert stored.status == "clocked_in"

    async def test_unknown_user_not_found(self, db, service, org):
        with pytest.raises(NotFoundError) as exc_info:
            await service.clock_in(db, uuid.uuid4())
        assert exc_info.value.detail == "Employee record not found"

    async def test_clock_in_again_after_clock_out(self, db, service, clock, staff):
        """퇴근 후에는 새 세션을 열 수 있음."""
        await service.clock_in(db, staff.user_id)
        clock.set(12)
        await service.clock_out(db, staff.user_id)
        clock.set(13)
        second = await service.clock_in(db, staff.user_id)
        assert second.clock_in_time == _at(13)
        assert await _count_open(db, staff.employee_id) == 1


class TestClockOut:
    """퇴근 테스트."""

    async def test_full_day_without_break(self, db, service, clock, staff):
        """09:00 출근, 17:00 퇴근 → 480분 근무, 휴식 0분."""
        await service.clock_in(db, staff.user_id)
        clock.set(17)
        record = await service.clock_out(db, staff.user_id)
        assert record.total_working_minutes == 480
        assert record.total_break_minutes == 0
        assert record.status == "clocked_out"
        assert record.clock_out_time == _at(17)

    async def test_full_day_with_break(self, db, service, clock, staff):
        """12:00~12:30 휴식 → 450분 근무, 30분 휴식."""
        await service.clock_in(db, staff.user_id)
        clock.set(12)
        await service.start_break(db, staff.user_id)
        clock.set(12, 30)
        await service.end_break(db, staff.user_id)
        clock.set(17)
        record = await service.clock_out(db, staff.user_id)
        assert record.total_working_minutes == 450
        assert record.total_break_minutes == 30
        assert record.break_start_time == _at(12)
        assert record.break_end_time == _at(12, 30)

    async def test_clock_out_during_break_ends_break(self, db, service, clock, staff):
        """휴식 중 퇴근 — 휴식은 퇴근 시각에 종료."""
        await service.clock_in(db, staff.user_id)
        clock.set(12)
        await service.start_break(db, staff.user_id)
        clock.set(13)
        record = await service.clock_out(db, staff.user_id)
        assert record.break_end_time == _at(13)
        assert record.total_break_minutes == 60
        assert record.total_working_minutes == 180
        assert record.status == "clocked_out"

    async def test_sub_minute_session(self, db, service, clock, staff):
        await service.clock_in(db, staff.user_id)
        clock.set(9, 0, 59)
        record = await service.clock_out(db, staff.user_id)
        assert record.total_working_minutes == 0
        assert record.total_break_minutes == 0

    async def test_clock_moving_backwards_clamped(self, db, service, clock, staff):
        """시계가 뒤로 가도 퇴근 시각은 출근 시각 이후."""
        await service.clock_in(db, staff.user_id)
        clock.set(8)
        record = await service.clock_out(db, staff.user_id)
        assert record.clock_out_time == _at(9)
        assert record.total_working_minutes == 0

    async def test_notes_appended(self, db, service, clock, staff):
        await service.clock_in(db, staff.user_id, notes="morning")
        clock.set(17)
        record = await service.clock_out(db, staff.user_id, notes="done", location="Home")
        assert record.notes == "morning\nClock Out: done"
        assert record.location_clock_out == "Home"

    async def test_clock_out_without_clock_in(self, db, service, staff):
        with pytest.raises(BadRequestError) as exc_info:
            await service.clock_out(db, staff.user_id)
        assert exc_info.value.detail == NO_ACTIVE_CLOCK_IN

    async def test_second_clock_out_rejected(self, db, service, clock, staff):
        await service.clock_in(db, staff.user_id)
        clock.set(17)
        await service.clock_out(db, staff.user_id)
        clock.set(18)
        with pytest.raises(BadRequestError):
            await service.clock_out(db, staff.user_id)


class TestBreaks:
    """휴식 시작/종료 테스트."""

    async def test_break_cycle_returns_to_clocked_in(self, db, service, clock, staff):
        await service.clock_in(db, staff.user_id)
        clock.set(12)
        started = await service.start_break(db, staff.user_id)
        assert started.status == "break_start"
        assert started.break_start_time == _at(12)
        clock.set(12, 15)
        ended = await service.end_break(db, staff.user_id)
        assert ended.status == "clocked_in"
        assert ended.break_end_time == _at(12, 15)
        assert ended.clock_out_time is None

    async def test_start_break_without_clock_in(self, db, service, staff):
        with pytest.raises(BadRequestError) as exc_info:
            await service.start_break(db, staff.user_id)
        assert exc_info.value.detail == NO_ACTIVE_CLOCK_IN

    async def test_start_break_twice(self, db, service, clock, staff):
        await service.clock_in(db, staff.user_id)
        clock.set(12)
        await service.start_break(db, staff.user_id)
        with pytest.raises(BadRequestError) as exc_info:
            await service.start_break(db, staff.user_id)
        assert exc_info.value.detail == BREAK_ALREADY_STARTED

    async def test_second_break_in_session_rejected(self, db, service, clock, staff):
        """세션당 휴식은 한 번."""
        await service.clock_in(db, staff.user_id)
        clock.set(10)
        await service.start_break(db, staff.user_id)
        clock.set(10, 15)
        await service.end_break(db, staff.user_id)
        clock.set(11)
        with pytest.raises(BadRequestError) as exc_info:
            await service.start_break(db, staff.user_id)
        assert exc_info.value.detail == BREAK_ALREADY_TAKEN

    async def test_end_break_without_break(self, db, service, staff):
        await service.clock_in(db, staff.user_id)
        with pytest.raises(BadRequestError) as exc_info:
            await service.end_break(db, staff.user_id)
        assert exc_info.value.detail == NO_ACTIVE_BREAK

    async def test_end_break_without_clock_in(self, db, service, staff):
        with pytest.raises(BadRequestError) as exc_info:
            await service.end_break(db, staff.user_id)
        assert exc_info.value.detail == NO_ACTIVE_BREAK

    async def test_closed_record_not_mutated_by_break(self, db, service, clock, staff):
        await service.clock_in(db, staff.user_id)
        clock.set(17)
        await service.clock_out(db, staff.user_id)
        with pytest.raises(BadRequestError):
            await service.start_break(db, staff.user_id)


class TestCurrentStatus:
    """현재 상태 조회 테스트."""

    async def test_without_open_record(self, db, service, staff):
        status = await service.get_current_status(db, staff.user_id)
        assert status["status"] == "clocked_out"
        assert status["active_record"] is None
        assert status["employee"]["id"] == str(staff.employee_id)
        assert status["employee"]["name"] == "Staff"

    async def test_follows_transitions(self, db, service, clock, staff):
        await service.clock_in(db, staff.user_id)
        status = await service.get_current_status(db, staff.user_id)
        assert status["status"] == "clocked_in"
        assert status["active_record"]["clock_out_time"] is None

        clock.set(12)
        await service.start_break(db, staff.user_id)
        status = await service.get_current_status(db, staff.user_id)
        assert status["status"] == "break_start"

        clock.set(17)
        await service.clock_out(db, staff.user_id)
        status = await service.get_current_status(db, staff.user_id)
        assert status["status"] == "clocked_out"
        assert status["active_record"] is None
