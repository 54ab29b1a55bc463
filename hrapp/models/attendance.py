"""근태 기록 SQLAlchemy ORM 모델 정의.

Attendance record SQLAlchemy ORM model definition.
One row per continuous work session (clock-in to clock-out) of one employee,
with at most one break interval per session.

Tables:
    - attendance_records: 근무 세션 기록 (Work session records per employee)
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrapp.database import Base, UTCDateTime, utcnow


class AttendanceStatus(str, enum.Enum):
    """근태 상태 — Attendance session status.

    CLOCKED_OUT is also the implicit state of an employee without an open
    record. BREAK_END is a display label only and is never stored: a record
    goes back to CLOCKED_IN when its break ends.
    """

    CLOCKED_IN = "clocked_in"
    BREAK_START = "break_start"
    BREAK_END = "break_end"
    CLOCKED_OUT = "clocked_out"


# 열린 기록 조건 — SQL predicate of "the open record" (no clock-out yet)
OPEN_RECORD_PREDICATE = text("clock_out_time IS NULL")


class AttendanceRecord(Base):
    """근태 기록 모델 — 하나의 연속 근무 세션.

    Attendance record model — One continuous work session of an employee.
    Created on clock-in, toggled through a single break, finalized on
    clock-out (durations computed once) and never mutated afterwards.

    Status flow: clocked_in -> break_start -> clocked_in -> clocked_out

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        employee_id: 직원 FK (Owning employee)
        clock_in_time: 출근 시각 (Clock-in timestamp, immutable)
        clock_out_time: 퇴근 시각 (Clock-out timestamp, null while open)
        break_start_time: 휴식 시작 시각 (Break start timestamp)
        break_end_time: 휴식 종료 시각 (Break end timestamp)
        status: 상태 (clocked_in, break_start, clocked_out)
        total_working_minutes: 순 근무 시간(분) (Net working minutes, set on close)
        total_break_minutes: 휴식 시간(분) (Break minutes, set on close)
        notes: 메모, 퇴근 시 덧붙임 (Free-text notes, appended on clock-out)
        location_clock_in: 출근 위치 라벨 (Optional clock-in location label)
        location_clock_out: 퇴근 위치 라벨 (Optional clock-out location label)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)

    Constraints:
        uq_attendance_records_open_employee: 직원당 열린 기록은 최대 1개
            (Partial unique index — at most one open record per employee)
    """

    __tablename__ = "attendance_records"

    # 근태 고유 식별자 — Attendance record unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 직원 FK — Employee who owns this session
    employee_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False)
    # 출근 시각 — Clock-in timestamp (UTC)
    clock_in_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    # 퇴근 시각 — Clock-out timestamp (null = open record)
    clock_out_time: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    # 휴식 시작 시각 — Break start timestamp
    break_start_time: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    # 휴식 종료 시각 — Break end timestamp
    break_end_time: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    # 상태 — Status: "clocked_in" → "break_start" → "clocked_in" → "clocked_out"
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=AttendanceStatus.CLOCKED_IN.value)
    # 순 근무 시간(분) — Computed on clock-out: floor(session minutes) - break minutes
    total_working_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # 휴식 시간(분) — Computed on clock-out: floor(break minutes), 0 without a break
    total_break_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # 메모 — Free-text notes
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    # 출퇴근 위치 라벨 — Free-text location labels (stored, never interpreted)
    location_clock_in: Mapped[str | None] = mapped_column(Text, nullable=True)
    location_clock_out: Mapped[str | None] = mapped_column(Text, nullable=True)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    # 수정 일시 — Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_attendance_records_employee_clock_in", "employee_id", "clock_in_time"),
        Index(
            "uq_attendance_records_open_employee",
            "employee_id",
            unique=True,
            postgresql_where=OPEN_RECORD_PREDICATE,
            sqlite_where=OPEN_RECORD_PREDICATE,
        ),
    )

    # 관계 — Relationships
    employee = relationship("Employee", back_populates="attendance_records")
