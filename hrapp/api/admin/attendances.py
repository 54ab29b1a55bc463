"""관리자 근태 라우터 — 조직 근태 조회 및 통계 API.

Admin Attendance Router — Organization-wide attendance history, employee
summaries, and dashboard attendance statistics. Every endpoint requires
the ``read Attendance`` capability.
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrapp.api.deps import get_current_user, require_attendance_reader
from hrapp.database import get_db
from hrapp.models.user import User
from hrapp.schemas.attendance import (
    AttendanceHistoryResponse,
    AttendanceSummaryResponse,
    AttendanceTrendPoint,
    PresenceResponse,
)
from hrapp.services.attendance_service import attendance_service

router: APIRouter = APIRouter(dependencies=[Depends(require_attendance_reader)])


@router.get("", response_model=AttendanceHistoryResponse)
async def list_attendance(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    employee_id: Annotated[UUID | None, Query()] = None,
    start_date: Annotated[datetime | None, Query()] = None,
    end_date: Annotated[datetime | None, Query()] = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    """조직 근태 기록 목록을 조회합니다.

    List attendance records of the caller's organization, paginated.

    Args:
        db: 비동기 데이터베이스 세션 (Async database session)
        current_user: 인증된 HR/관리자 (Authenticated HR/admin user)
        employee_id: 직원 UUID 필터, 선택 (Optional employee filter)
        start_date: 출근 시각 하한, 선택 (Optional clock-in lower bound)
        end_date: 출근 시각 상한, 선택 (Optional clock-in upper bound)
        page: 페이지 번호 (Page number)
        limit: 페이지당 항목 수 (Items per page)

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
async def get_employee_summary(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    employee_id: Annotated[UUID | None, Query()] = None,
    month: Annotated[int | None, Query()] = None,
    year: Annotated[int | None, Query()] = None,
) -> dict:
    """직원 월간 근태 요약을 조회합니다 — Monthly summary of an employee."""
    return await attendance_service.get_summary(
        db, current_user.id, employee_id=employee_id, month=month, year=year
    )


@router.get("/stats/today", response_model=PresenceResponse)
async def get_today_presence(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    """오늘 출근 현황을 조회합니다 — Present employees and attendance rate today."""
    return await attendance_service.get_today_presence(db, current_user.id)


@router.get("/stats/trend", response_model=list[AttendanceTrendPoint])
async def get_attendance_trend(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    days: Annotated[int | None, Query()] = None,
) -> list[dict]:
    """일별 출근 추이를 조회합니다 — Daily attendance of the last N days."""
    return await attendance_service.get_attendance_trend(db, current_user.id, days=days)
