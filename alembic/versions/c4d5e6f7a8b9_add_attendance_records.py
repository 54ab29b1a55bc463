"""add_attendance_records

Revision ID: c4d5e6f7a8b9
Revises:
Create Date: 2026-10-19 09:00:00.000000

근태 기록 테이블 생성: organizations, users, employees, attendance_records.
Add attendance tables: organizations, users, employees, attendance_records.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = 'c4d5e6f7a8b9'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # organizations — 조직 (tenant)
    op.create_table(
        'organizations',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # users — 인증 계정 (authenticated identities)
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('organization_id', 'username', name='uq_user_org_username'),
    )

    # employees — 직원 (one per user, soft-deleted via deleted_at)
    op.create_table(
        'employees',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=True, unique=True),
        sa.Column('designation', sa.String(50), nullable=False),
        sa.Column('department', sa.String(50), nullable=False),
        sa.Column('status', sa.String(20), server_default='active', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_employees_org', 'employees', ['organization_id'])

    # attendance_records — 근무 세션 기록 (one row per clock-in .. clock-out)
    op.create_table(
        'attendance_records',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('employee_id', UUID(as_uuid=True), sa.ForeignKey('employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('clock_in_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('clock_out_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('break_start_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('break_end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(20), server_default='clocked_in', nullable=False),
        sa.Column('total_working_minutes', sa.Integer(), nullable=True),
        sa.Column('total_break_minutes', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('location_clock_in', sa.Text(), nullable=True),
        sa.Column('location_clock_out', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # 근태 인덱스 — History / summary lookups by employee and clock-in
    op.create_index('ix_attendance_records_employee_clock_in', 'attendance_records', ['employee_id', 'clock_in_time'])

    # 부분 유니크 인덱스 — 직원당 열린 기록은 최대 1개
    # At most one open record (clock_out_time IS NULL) per employee
    op.create_index(
        'uq_attendance_records_open_employee',
        'attendance_records',
        ['employee_id'],
        unique=True,
        postgresql_where=sa.text('clock_out_time IS NULL'),
    )


def downgrade() -> None:
    # 인덱스는 테이블과 함께 삭제됨 — indexes are dropped with their tables
    op.drop_table('attendance_records')
    op.drop_index('ix_employees_org', table_name='employees')
    op.drop_table('employees')
    op.drop_table('users')
    op.drop_table('organizations')
