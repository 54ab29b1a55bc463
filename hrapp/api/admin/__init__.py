"""관리자 API 라우터 패키지 — 모든 관리자 엔드포인트 통합.

Admin API Router package — Aggregates all admin-facing endpoints
into a single router for inclusion in the FastAPI application.

Included routers:
    - attendances: 조직 근태 조회 및 통계 (Organization attendance and statistics)
"""

from fastapi import APIRouter

from hrapp.api.admin.attendances import router as attendances_router

admin_router: APIRouter = APIRouter()

# 근태: /attendance 하위 (Attendance history, summaries, stats)
admin_router.include_router(attendances_router, prefix="/attendance", tags=["Admin Attendance"])
