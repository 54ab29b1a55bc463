"""FastAPI 의존성 주입 모듈 — 인증 및 근태 권한 검사.

FastAPI dependency injection module — Authentication and authorization.
Provides reusable dependencies for extracting the current user from JWT,
resolving the caller's employee record, and enforcing designation-based
capabilities on API endpoints.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. HTTPBearer가 토큰을 추출 (HTTPBearer extracts the token)
    3. decode_token()이 JWT를 검증하고 페이로드를 반환
       (decode_token verifies JWT and returns payload)
    4. 페이로드의 "sub" 필드로 DB에서 사용자를 조회
       (User is fetched from DB using payload "sub" field)
    5. 사용자 활성 상태를 확인 (User active status is verified)

Authorization Flow (require_capability):
    1. get_current_employee로 요청자 직원 조회 (Caller's employee resolved)
    2. 직급으로 허용 규칙 구성 (Ability built from the designation)
    3. 조건 없이 허용되지 않으면 403 Forbidden 반환
       (Returns 403 unless the action is allowed unconditionally)
"""

from typing import Annotated, Awaitable, Callable
from uuid import UUID

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrapp.database import get_db
from hrapp.models.employee import Employee
from hrapp.models.user import User
from hrapp.services.ability import define_abilities_for
from hrapp.services.employee_directory import employee_directory
from hrapp.utils.exceptions import ForbiddenError, UnauthorizedError
from hrapp.utils.jwt import decode_token

# HTTP Bearer 토큰 추출기 — Authorization 헤더에서 JWT 토큰 추출
# (Extracts JWT token from Authorization: Bearer <token> header)
security: HTTPBearer = HTTPBearer()


async def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """JWT 토큰에서 현재 인증된 사용자를 추출합니다.

    Decode JWT from the Authorization header and return the authenticated user.
    Validates token signature, expiration, and user existence/active status.
    The user id is recorded on ``request.state`` for request logging.

    Args:
        request: 현재 요청 (Current request)
        credentials: HTTP Bearer 토큰 자격 증명 (Bearer token credentials from header)
        db: 비동기 DB 세션 (Async database session)

    Returns:
        User: 인증된 사용자 ORM 인스턴스 (Authenticated user ORM instance)

    Raises:
        UnauthorizedError: 토큰이 유효하지 않거나 만료됨 (Invalid or expired token)
        UnauthorizedError: 사용자를 찾을 수 없거나 비활성 (User not found or inactive)
    """
    try:
        payload: dict = decode_token(credentials.credentials)
        # 토큰 타입 검증 — Reject refresh tokens used as access tokens
        if payload.get("type") != "access":
            raise UnauthorizedError("Invalid token type")
        user_id: str | None = payload.get("sub")
        if user_id is None:
            raise UnauthorizedError("Invalid token")
        user_uuid: UUID = UUID(user_id)
    except UnauthorizedError:
        raise
    except (jwt.ExpiredSignatureError, jwt.InvalidTokenError, KeyError, ValueError):
        raise UnauthorizedError("Invalid or expired token")

    result = await db.execute(select(User).where(User.id == user_uuid))
    user: User | None = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise UnauthorizedError("User not found or inactive")

    # 요청 로깅용 행위자 기록 — Actor id for AxiomLoggingMiddleware
    request.state.user_id = str(user.id)
    return user


async def get_current_employee(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Employee:
    """현재 사용자의 직원 기록을 조회합니다 — 없으면 404.

    Resolve the employee record of the authenticated user.
    """
    return await employee_directory.resolve(db, current_user.id)


def require_capability(action: str, subject: str) -> Callable[..., Awaitable[Employee]]:
    """직급 권한 검사 의존성 팩토리.

    Dependency factory enforcing that the caller's designation allows
    ``action`` on ``subject`` for any resource, not just their own.

    Args:
        action: 동작 (e.g. "read")
        subject: 대상 (e.g. "Attendance")

    Returns:
        FastAPI 의존성 함수 — 직원 반환 또는 403 발생
        (FastAPI dependency function that returns Employee or raises 403)
    """
    async def _check(
        employee: Annotated[Employee, Depends(get_current_employee)],
    ) -> Employee:
        if not define_abilities_for(employee).can(action, subject):
            raise ForbiddenError("Insufficient permissions")
        return employee
    return _check


# 편의 의존성 — Pre-configured capability dependency for admin attendance endpoints
require_attendance_reader = require_capability("read", "Attendance")
