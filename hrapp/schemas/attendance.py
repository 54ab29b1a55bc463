"""근태 Pydantic 요청/응답 스키마 정의.

Attendance Pydantic request/response schema definitions.
Covers clock actions, current status, history (with pagination metadata),
monthly summaries, and dashboard attendance statistics.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from hrapp.utils.pagination import PageInfo


# === 요청 (Requests) ===

class ClockActionRequest(BaseModel):
    """출근/퇴근 요청 스키마.

    Clock-in / clock-out request schema.

    Attributes:
        notes: 메모, 선택 (Optional free-text notes; appended on clock-out)
        location: 위치 라벨, 선택 (Optional free-text location label)
    """

    notes: str | None = Field(default=None, max_length=2000)  # 메모 (Free-text notes)
    location: str | None = Field(default=None, max_length=255)  # 위치 라벨 (Location label)


# === 응답 (Responses) ===

class EmployeeBrief(BaseModel):
    """직원 요약 스키마 — Employee summary embedded in attendance responses."""

    id: str  # 직원 UUID 문자열 (Employee UUID as string)
    name: str | None = None  # 표시 이름 (Display name from the user account)
    email: str | None = None  # 이메일 (Email)
    designation: str  # 직급 (Designation)
    department: str  # 부서 (Department)


class AttendanceRecordResponse(BaseModel):
    """근태 기록 응답 스키마.

    Attendance record response schema.

    Attributes:
        id: 기록 UUID (Record identifier)
        employee_id: 직원 UUID (Owning employee)
        clock_in_time: 출근 시각 (Clock-in timestamp)
        clock_out_time: 퇴근 시각 (Clock-out timestamp, null while open)
        break_start_time: 휴식 시작 (Break start)
        break_end_time: 휴식 종료 (Break end)
        status: 상태 (clocked_in, break_start, clocked_out)
        total_working_minutes: 순 근무 분 (Net working minutes, set on close)
        total_break_minutes: 휴식 분 (Break minutes, set on close)
        notes: 메모 (Notes)
        employee: 직원 요약, 이력 조회 시 포함 (Employee summary, history only)
    """

    id: str
    employee_id: str
    clock_in_time: datetime
    clock_out_time: datetime | None = None
    break_start_time: datetime | None = None
    break_end_time: datetime | None = None
    status: str
    total_working_minutes: int | None = None
    total_break_minutes: int | None = None
    notes: str | None = None
    location_clock_in: str | None = None
    location_clock_out: str | None = None
    created_at: datetime
    updated_at: datetime
    employee: EmployeeBrief | None = None


class CurrentStatusResponse(BaseModel):
    """현재 근태 상태 응답 스키마.

    Current attendance status. ``status`` is ``clocked_out`` when the
    employee has no open record.
    """

    employee: EmployeeBrief  # 요청자 직원 (Caller's employee record)
    active_record: AttendanceRecordResponse | None = None  # 열린 기록 (Open record, if any)
    status: str  # 현재 상태 (Current status)


class AttendanceHistoryResponse(BaseModel):
    """근태 이력 응답 스키마 — pagination은 page/limit 요청 시에만 포함."""

    data: list[AttendanceRecordResponse]  # 기록 목록, 최신 출근순 (Newest clock-in first)
    pagination: PageInfo | None = None  # 페이지 메타데이터 (Page metadata when paginated)


class AttendanceSummaryResponse(BaseModel):
    """월간 근태 요약 응답 스키마.

    Monthly attendance summary. Totals are split into hours and remaining
    minutes; only closed records contribute.

    Attributes:
        month: 월, 1~12 (Month, 1-based)
        year: 연도 (Year)
        total_days_worked: 닫힌 기록이 있는 날 수 (Days with at least one closed record)
        total_working_hours / total_working_minutes: 순 근무 시간 (floor(total/60), total % 60)
        total_break_hours / total_break_minutes: 휴식 시간 (floor(total/60), total % 60)
        average_working_hours: 근무일 평균 근무 시간 (Average hours per worked day)
        records: 최근 기록 미리보기 (Most recent records of the month, open or closed)
    """

    employee_id: str
    month: int
    year: int
    total_days_worked: int
    total_working_hours: int
    total_working_minutes: int
    total_break_hours: int
    total_break_minutes: int
    average_working_hours: float
    records: list[AttendanceRecordResponse]


class PresenceResponse(BaseModel):
    """오늘 출근 현황 응답 스키마 — Today's presence across the organization."""

    day: date  # 기준 날짜 (Local calendar day)
    present_today: int  # 출근 직원 수 (Distinct employees who clocked in)
    total_employees: int  # 전체 직원 수 (Current headcount)
    attendance_rate: float  # 출근율 % (Percentage, 0 when headcount is 0)


class AttendanceTrendPoint(BaseModel):
    """일별 출근 추이 항목 스키마 — One day of the attendance trend."""

    day: date  # 날짜 (Local calendar day)
    count: int  # 출근 직원 수 (Distinct employees who clocked in)
    total: int  # 당시 직원 수 (Headcount on that day)
    percentage: int  # 출근율 %, 반올림 (Rounded percentage)
