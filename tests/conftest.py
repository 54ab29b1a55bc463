"""테스트 인프라 — 임시 SQLite DB, 세션, httpx 클라이언트 픽스처.

Test infrastructure — Temporary SQLite DB, session, and httpx client fixtures.
Each test gets its own database file (aiosqlite) with the schema created
from the ORM metadata, so no database server is needed.
"""

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from hrapp.database import Base, get_db
from hrapp.main import app
from hrapp.models import *  # noqa: F401,F403 — register all models with metadata
from hrapp.models.employee import Employee
from hrapp.models.organization import Organization
from hrapp.models.user import User
from hrapp.services.attendance_service import AttendanceService
from hrapp.utils.jwt import create_access_token


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진 — 테스트마다 새 DB 파일에 스키마를 생성합니다."""
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """독립 세션 팩토리 — 동시성 테스트에서 요청별 세션을 흉내냅니다."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 세션을 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 시계 — Controllable clock for duration tests
# ---------------------------------------------------------------------------
class FakeClock:
    """고정 시각 시계 — 테스트에서 직접 시간을 진행시킵니다."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, hour: int, minute: int = 0, second: int = 0) -> None:
        self.now = self.now.replace(hour=hour, minute=minute, second=second)

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    """2026-03-02(월) 09:00 UTC에서 시작하는 시계."""
    return FakeClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def service(clock: FakeClock) -> AttendanceService:
    """가짜 시계를 주입한 근태 서비스."""
    return AttendanceService(clock=clock)


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Person:
    """테스트 직원 식별자 묶음 — 롤백 후에도 안전하게 쓰는 평범한 값."""

    user_id: UUID
    employee_id: UUID
    organization_id: UUID


async def make_person(
    db: AsyncSession,
    organization_id: UUID,
    username: str,
    designation: str = "software_engineer",
    department: str = "engineering",
    created_at: datetime | None = None,
) -> Person:
    """사용자 + 직원을 생성하고 커밋합니다."""
    user = User(
        organization_id=organization_id,
        username=username,
        email=f"{username}@example.com",
        full_name=username.title(),
    )
    db.add(user)
    await db.flush()
    employee = Employee(
        organization_id=organization_id,
        user_id=user.id,
        designation=designation,
        department=department,
    )
    if created_at is not None:
        employee.created_at = created_at
    db.add(employee)
    await db.flush()
    person = Person(user_id=user.id, employee_id=employee.id, organization_id=organization_id)
    await db.commit()
    return person


async def make_org(db: AsyncSession, name: str) -> UUID:
    o = Organization(name=name)
    db.add(o)
    await db.flush()
    org_id = o.id
    await db.commit()
    return org_id


@pytest_asyncio.fixture
async def org(db: AsyncSession) -> UUID:
    """테스트 조직을 생성합니다."""
    return await make_org(db, "Test Corp")


@pytest_asyncio.fixture
async def other_org(db: AsyncSession) -> UUID:
    """다른 테넌트 조직."""
    return await make_org(db, "Other Corp")


@pytest_asyncio.fixture
async def staff(db: AsyncSession, org: UUID) -> Person:
    """일반 직원 (software_engineer)."""
    return await make_person(db, org, "staff")


@pytest_asyncio.fixture
async def coworker(db: AsyncSession, org: UUID) -> Person:
    """같은 조직의 다른 일반 직원."""
    return await make_person(db, org, "coworker", designation="designer", department="product")


@pytest_asyncio.fixture
async def hr(db: AsyncSession, org: UUID) -> Person:
    """HR 직원 (elevated)."""
    return await make_person(db, org, "hr", designation="hr", department="human_resources")


@pytest_asyncio.fixture
async def founder(db: AsyncSession, org: UUID) -> Person:
    """창업자 (elevated)."""
    return await make_person(db, org, "founder", designation="founder", department="founder_office")


@pytest_asyncio.fixture
async def manager(db: AsyncSession, org: UUID) -> Person:
    """프로젝트 매니저 — 근태 읽기 권한은 있으나 elevated 아님."""
    return await make_person(db, org, "manager", designation="project_manager", department="product")


@pytest_asyncio.fixture
async def outsider(db: AsyncSession, other_org: UUID) -> Person:
    """다른 조직의 직원."""
    return await make_person(db, other_org, "outsider")


def auth_header(user_id: UUID) -> dict[str, str]:
    """사용자 ID로 Bearer 인증 헤더를 생성합니다."""
    token = create_access_token({"sub": str(user_id)})
    return {"Authorization": f"Bearer {token}"}
