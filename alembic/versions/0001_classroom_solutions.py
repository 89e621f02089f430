"""Classroom Solutions schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create enrolled_teachers table
    op.create_table('enrolled_teachers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('position', sa.String(length=100), nullable=False),
        sa.Column('school', sa.String(length=255), nullable=True),
        sa.Column('requests_used', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('requests_limit', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('last_usage_reset', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('enrolled_by', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('ix_enrolled_teachers_id', 'enrolled_teachers', ['id'])
    op.create_index('ix_enrolled_teachers_email', 'enrolled_teachers', ['email'])

    # Create classroom_submissions table
    op.create_table('classroom_submissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('teacher_id', sa.Integer(), nullable=False),
        sa.Column('student_first_name', sa.String(length=100), nullable=False),
        sa.Column('student_last_initial', sa.String(length=1), nullable=False),
        sa.Column('student_age', sa.Integer(), nullable=False),
        sa.Column('student_grade', sa.String(length=20), nullable=False),
        sa.Column('task_type', sa.String(length=30), nullable=False),
        sa.Column('learning_profile', sa.JSON(), nullable=True),
        sa.Column('concern_types', sa.JSON(), nullable=True),
        sa.Column('concern_description', sa.Text(), nullable=False),
        sa.Column('severity_level', sa.String(length=20), nullable=False),
        sa.Column('actions_taken', sa.JSON(), nullable=True),
        sa.Column('flagged_keywords', sa.JSON(), nullable=True),
        sa.Column('ai_draft', sa.Text(), nullable=True),
        sa.Column('ai_disclaimer', sa.Text(), nullable=True),
        sa.Column('reviewed_text', sa.Text(), nullable=True),
        sa.Column('sent_text', sa.Text(), nullable=True),
        sa.Column('disclaimer_attached', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('urgent_flag', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('auto_send_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('claimed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('claimed_from', sa.String(length=20), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('send_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_send_error', sa.Text(), nullable=True),
        sa.Column('admin_reviewed_by', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['teacher_id'], ['enrolled_teachers.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_classroom_submissions_id', 'classroom_submissions', ['id'])
    op.create_index('ix_classroom_submissions_teacher_id', 'classroom_submissions', ['teacher_id'])
    op.create_index('ix_classroom_submissions_status', 'classroom_submissions', ['status'])
    op.create_index('ix_classroom_submissions_urgent_flag', 'classroom_submissions', ['urgent_flag'])
    op.create_index('ix_classroom_submissions_auto_send_time', 'classroom_submissions', ['auto_send_time'])

    # Create admin_notifications table
    op.create_table('admin_notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('submission_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='unread'),
        sa.Column('priority', sa.String(length=20), nullable=False, server_default='normal'),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('admin_id', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['submission_id'], ['classroom_submissions.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_admin_notifications_id', 'admin_notifications', ['id'])
    op.create_index('ix_admin_notifications_submission_id', 'admin_notifications', ['submission_id'])
    op.create_index('ix_admin_notifications_status', 'admin_notifications', ['status'])


def downgrade() -> None:
    op.drop_table('admin_notifications')
    op.drop_table('classroom_submissions')
    op.drop_table('enrolled_teachers')
