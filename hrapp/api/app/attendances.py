"""앱 근태 라우터 — 내 근태 기록 API.

App Attendance Router — API endpoints for the caller's own attendance.
Provides clock-in/out, break start/end, current status, history and the
monthly summary.
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrapp.api.deps import get_current_user
from hrapp.database import get_db
from hrapp.models.user import User
from hrapp.schemas.attendance import (
    AttendanceHistoryResponse,
    AttendanceRecordResponse,
    AttendanceSummaryResponse,
    ClockActionRequest,
    CurrentStatusResponse,
)
from hrapp.services.attendance_service import attendance_service

router: APIRouter = APIRouter()


@router.post("/clock-in", response_model=AttendanceRecordResponse, status_code=status.HTTP_201_CREATED)
async def clock_in(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    data: ClockActionRequest | None = None,
) -> dict:
    """출근을 기록합니다.

    Clock in: open a new attendance session.

    Args:
        db: 비동기 데이터베이스 세션 (Async database session)
        current_user: 인증된 사용자 (Authenticated user)
        data: 메모/위치, 선택 (Optional notes and location)

    Returns:
        dict: 생성된 근태 기록 (Created attendance record)
    """
    data = data or ClockActionRequest()
    record = await attendance_service.clock_in(
        db, current_user.id, notes=data.notes, location=data.location
    )
    return attendance_service.build_record_response(record)


@router.post("/clock-out", response_model=AttendanceRecordResponse)
async def clock_out(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    data: ClockActionRequest | None = None,
) -> dict:
    """퇴근을 기록합니다 — 메모는 기존 메모 뒤에 덧붙여집니다.

    Clock out: close the open session. Notes are appended, not replaced.
    """
    data = data or ClockActionRequest()
    record = await attendance_service.clock_out(
        db, current_user.id, notes=data.notes, location=data.location
    )
    return attendance_service.build_record_response(record)


@router.post("/break/start", response_model=AttendanceRecordResponse)
async def start_break(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    """휴식을 시작합니다 — Start the session's break."""
    record = await attendance_service.start_break(db, current_user.id)
    return attendance_service.build_record_response(record)


@router.post("/break/end", response_model=AttendanceRecordResponse)
async def end_break(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    """휴식을 종료합니다 — End the running break."""
    record = await attendance_service.end_break(db, current_user.id)
    return attendance_service.build_record_response(record)


@router.get("/status", response_model=CurrentStatusResponse)
async def get_my_status(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    """현재 근태 상태를 조회합니다.

    Get the current attendance status (open record or clocked_out).
    """
    return await attendance_service.get_current_status(db, current_user.id)


@router.get("/history", response_model=AttendanceHistoryResponse)
async def get_my_history(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    employee_id: Annotated[UUID | None, Query()] = None,
    start_date: Annotated[datetime | None, Query()] = None,
    end_date: Annotated[datetime | None, Query()] = None,
    page: Annotated[int | None, Query()] = None,
    limit: Annotated[int | None, Query()] = None,
) -> dict:
    """근태 이력을 조회합니다.

    Get attendance history. Non-HR callers always receive their own records.

    Args:
        db: 비동기 데이터베이스 세션 (Async database session)
        current_user: 인증된 사용자 (Authenticated user)
        employee_id: 직원 UUID 필터, 선택 (Optional employee filter)
        start_date: 출근 시각 하한, 선택 (Optional clock-in lower bound)
        end_date: 출근 시각 상한, 선택 (Optional clock-in upper bound)
        page: 페이지 번호, 선택 (Optional page number)
        limit: 페이지당 항목 수, 선택 (Optional page size)

    Returns:
        dict: {data, pagination}
    """
    return await attendance_service.get_history(
        db,
        current_user.id,
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )


@router.get("/summary", response_model=AttendanceSummaryResponse)
async def get_my_summary(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    employee_id: Annotated[UUID | None, Query()] = None,
    month: Annotated[int | None, Query()] = None,
    year: Annotated[int | None, Query()] = None,
) -> dict:
    """월간 근태 요약을 조회합니다 — Monthly summary, current month by default."""
    return await attendance_service.get_summary(
        db, current_user.id, employee_id=employee_id, month=month, year=year
    )
