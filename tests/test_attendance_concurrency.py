"""근태 동시성 테스트.

Concurrency tests — concurrent requests for the same employee, each on its
own session (as separate HTTP requests would be), must leave at most one
open record and close a session exactly once.
"""

import asyncio

from sqlalchemy import func, select

from hrapp.models.attendance import AttendanceRecord
from hrapp.services.attendance_service import AttendanceService
from hrapp.utils.exceptions import BadRequestError, ConflictError


async def _run_concurrently(session_factory, action, user_id, n: int) -> list:
    async def _one():
        async with session_factory() as session:
            return await action(session, user_id)

    return await asyncio.gather(*(_one() for _ in range(n)), return_exceptions=True)


class TestConcurrentTransitions:
    """동시 출퇴근 테스트."""

    async def test_concurrent_clock_ins_single_winner(self, session_factory, clock, staff):
        """동시 출근 — 정확히 하나만 성공, 나머지는 Conflict."""
        service = AttendanceService(clock=clock)
        results = await _run_concurrently(session_factory, service.clock_in, staff.user_id, 4)

        successes = [r for r in results if isinstance(r, AttendanceRecord)]
        conflicts = [r for r in results if isinstance(r, ConflictError)]
        assert len(successes) == 1
        assert len(conflicts) == 3

        async with session_factory() as session:
            open_count = (
                await session.execute(
                    select(func.count())
                    .select_from(AttendanceRecord)
                    .where(AttendanceRecord.employee_id == staff.employee_id)
                    .where(AttendanceRecord.clock_out_time.is_(None))
                )
            ).scalar()
        assert open_count == 1

    async def test_concurrent_clock_outs_close_once(self, db, session_factory, clock, staff):
        """동시 퇴근 — 하나만 성공, 나머지는 BadRequest."""
        service = AttendanceService(clock=clock)
        await service.clock_in(db, staff.user_id)
        clock.set(17)

        results = await _run_concurrently(session_factory, service.clock_out, staff.user_id, 3)

        successes = [r for r in results if isinstance(r, AttendanceRecord)]
        rejected = [r for r in results if isinstance(r, BadRequestError)]
        assert len(successes) == 1
        assert len(rejected) == 2
        assert successes[0].total_working_minutes == 480

        async with session_factory() as session:
            records = (
                await session.execute(
                    select(AttendanceRecord).where(AttendanceRecord.employee_id == staff.employee_id)
                )
            ).scalars().all()
        assert len(records) == 1
        assert records[0].status == "clocked_out"
