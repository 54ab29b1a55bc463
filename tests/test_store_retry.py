"""근태 저장소 작업 단위 테스트.

Attendance store unit-of-work tests — commit/rollback, bounded retry of
transient driver errors, and the guarded update.
"""

import uuid

import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from hrapp.config import settings
from hrapp.repositories.attendance_repository import attendance_repository, is_transient_error
from hrapp.utils.exceptions import ConflictError, NotFoundError


class _DriverError(Exception):
    def __init__(self, message: str, sqlstate: str | None = None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


def _locked() -> OperationalError:
    return OperationalError("UPDATE attendance_records", {}, _DriverError("database is locked"))


class TestTransientClassification:
    """일시적 오류 판별 테스트."""

    def test_sqlite_busy_is_transient(self):
        assert is_transient_error(_locked())

    def test_serialization_failure_is_transient(self):
        exc = DBAPIError("SELECT 1", {}, _DriverError("could not serialize", sqlstate="40001"))
        assert is_transient_error(exc)

    def test_deadlock_is_transient(self):
        exc = DBAPIError("SELECT 1", {}, _DriverError("deadlock detected", sqlstate="40P01"))
        assert is_transient_error(exc)

    def test_lost_connection_is_transient(self):
        exc = DBAPIError("SELECT 1", {}, _DriverError("closed"), connection_invalidated=True)
        assert is_transient_error(exc)

    def test_constraint_violation_is_not_transient(self):
        exc = IntegrityError("INSERT", {}, _DriverError("unique violation", sqlstate="23505"))
        assert not is_transient_error(exc)

    def test_other_operational_error_is_not_transient(self):
        exc = OperationalError("SELECT 1", {}, _DriverError("no such table"))
        assert not is_transient_error(exc)


class TestRunAtomic:
    """run_atomic 재시도 정책 테스트."""

    async def test_returns_result(self, db):
        async def operation():
            return 42

        assert await attendance_repository.run_atomic(db, operation) == 42

    async def test_retries_transient_then_succeeds(self, db):
        calls = []

        async def operation():
            calls.append(1)
            if len(calls) < 2:
                raise _locked()
            return "ok"

        assert await attendance_repository.run_atomic(db, operation) == "ok"
        assert len(calls) == 2

    async def test_gives_up_after_max_attempts(self, db):
        calls = []

        async def operation():
            calls.append(1)
            raise _locked()

        with pytest.raises(OperationalError):
            await attendance_repository.run_atomic(db, operation)
        assert len(calls) == settings.ATTENDANCE_STORE_MAX_ATTEMPTS

    async def test_non_transient_not_retried(self, db):
        calls = []

        async def operation():
            calls.append(1)
            raise OperationalError("SELECT 1", {}, _DriverError("no such table"))

        with pytest.raises(OperationalError):
            await attendance_repository.run_atomic(db, operation)
        assert len(calls) == 1

    async def test_domain_error_not_retried(self, db):
        calls = []

        async def operation():
            calls.append(1)
            raise ConflictError("Already clocked in. Please clock out first.")

        with pytest.raises(ConflictError):
            await attendance_repository.run_atomic(db, operation)
        assert len(calls) == 1


class TestStoreOperations:
    """저장소 생성/갱신 테스트."""

    async def test_second_open_record_rejected_by_index(self, db, clock, staff):
        """애플리케이션 검사를 건너뛰어도 부분 유니크 인덱스가 막음."""
        data = {"employee_id": staff.employee_id, "clock_in_time": clock(), "status": "clocked_in"}

        async def create():
            return await attendance_repository.create(db, dict(data))

        await attendance_repository.run_atomic(db, create)
        with pytest.raises(ConflictError):
            await attendance_repository.run_atomic(db, create)

    async def test_guarded_update_skips_closed_record(self, db, clock, staff):
        async def create():
            return await attendance_repository.create(
                db, {"employee_id": staff.employee_id, "clock_in_time": clock(), "status": "clocked_in"}
            )

        record = await attendance_repository.run_atomic(db, create)
        record_id = record.id

        async def close():
            return await attendance_repository.update(
                db, record_id, {"clock_out_time": clock(), "status": "clocked_out"}, require_open=True
            )

        closed = await attendance_repository.run_atomic(db, close)
        assert closed.status == "clocked_out"
        assert await attendance_repository.run_atomic(db, close) is None

    async def test_update_unknown_record(self, db):
        async def operation():
            return await attendance_repository.update(db, uuid.uuid4(), {"notes": "x"})

        with pytest.raises(NotFoundError):
            await attendance_repository.run_atomic(db, operation)
