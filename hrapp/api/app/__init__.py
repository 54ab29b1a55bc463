"""앱 API 라우터 패키지 — 모든 앱(직원용) 엔드포인트 통합.

App API Router package — Aggregates all app-facing (employee) endpoints
into a single router for inclusion in the FastAPI application.

Included routers:
    - attendances: 내 근태 (My attendance: clock, breaks, status, history, summary)
"""

from fastapi import APIRouter

from hrapp.api.app.attendances import router as attendance_router

app_router: APIRouter = APIRouter()

# 내 근태: /my/attendance 하위 (My attendance)
app_router.include_router(attendance_router, prefix="/my/attendance", tags=["My Attendance"])
