"""Initial attendance schema: users, attendances, attendance_photos, audit_logs

Revision ID: 001_initial_attendance
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_attendance'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Use CURRENT_TIMESTAMP for defaults so it works on SQLite and Postgres
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=100), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='user'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)

    op.create_table(
        'attendances',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('check_in_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('check_in_lat', sa.Numeric(10, 8), nullable=True),
        sa.Column('check_in_lng', sa.Numeric(11, 8), nullable=True),
        sa.Column('check_in_address', sa.String(length=255), nullable=True),
        sa.Column('bssid', sa.String(length=17), nullable=True),
        sa.Column('cell_id', sa.String(length=50), nullable=True),
        sa.Column('check_out_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('check_out_lat', sa.Numeric(10, 8), nullable=True),
        sa.Column('check_out_lng', sa.Numeric(11, 8), nullable=True),
        sa.Column('check_out_address', sa.String(length=255), nullable=True),
        sa.Column('submission_type', sa.String(length=20), nullable=False, server_default='check_in'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('reviewed_by', sa.Integer(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_offline_submission', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('offline_timestamp', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['reviewed_by'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_attendances_id'), 'attendances', ['id'], unique=False)
    op.create_index(op.f('ix_attendances_user_id'), 'attendances', ['user_id'], unique=False)
    op.create_index('idx_attendances_user_status', 'attendances', ['user_id', 'status'], unique=False)
    op.create_index('idx_attendances_status_created', 'attendances', ['status', 'created_at'], unique=False)
    op.create_index('idx_attendances_user_check_in', 'attendances', ['user_id', 'check_in_time'], unique=False)
    op.create_index('idx_attendances_offline', 'attendances', ['is_offline_submission', 'offline_timestamp'], unique=False)

    op.create_table(
        'attendance_photos',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('attendance_id', sa.Integer(), nullable=False),
        sa.Column('photo_type', sa.String(length=20), nullable=False),
        sa.Column('file_name', sa.String(length=255), nullable=False),
        sa.Column('file_path', sa.String(length=500), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=True),
        sa.Column('mime_type', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['attendance_id'], ['attendances.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('file_name'),
    )
    op.create_index(op.f('ix_attendance_photos_id'), 'attendance_photos', ['id'], unique=False)
    op.create_index(op.f('ix_attendance_photos_attendance_id'), 'attendance_photos', ['attendance_id'], unique=False)
    op.create_index(op.f('ix_attendance_photos_deleted_at'), 'attendance_photos', ['deleted_at'], unique=False)
    # One active photo per evidentiary slot
    op.create_index(
        'uq_attendance_photos_active_slot',
        'attendance_photos',
        ['attendance_id', 'photo_type'],
        unique=True,
        sqlite_where=sa.text('deleted_at IS NULL'),
        postgresql_where=sa.text('deleted_at IS NULL'),
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('actor_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('entity_type', sa.String(), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('meta_json', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['actor_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_audit_logs_id'), 'audit_logs', ['id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_audit_logs_id'), table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_index('uq_attendance_photos_active_slot', table_name='attendance_photos')
    op.drop_index(op.f('ix_attendance_photos_deleted_at'), table_name='attendance_photos')
    op.drop_index(op.f('ix_attendance_photos_attendance_id'), table_name='attendance_photos')
    op.drop_index(op.f('ix_attendance_photos_id'), table_name='attendance_photos')
    op.drop_table('attendance_photos')
    op.drop_index('idx_attendances_offline', table_name='attendances')
    op.drop_index('idx_attendances_user_check_in', table_name='attendances')
    op.drop_index('idx_attendances_status_created', table_name='attendances')
    op.drop_index('idx_attendances_user_status', table_name='attendances')
    op.drop_index(op.f('ix_attendances_user_id'), table_name='attendances')
    op.drop_index(op.f('ix_attendances_id'), table_name='attendances')
    op.drop_table('attendances')
    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_index(op.f('ix_users_id'), table_name='users')
    op.drop_table('users')
