"""Add profiles, jobs and follow_ups tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create profiles table
    op.create_table(
        'profiles',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('avatar_url', sa.String(length=1024), nullable=True),
        sa.Column('mail_connected', sa.Boolean(), nullable=False, default=False),
        sa.Column('mail_access_token', sa.Text(), nullable=True),
        sa.Column('mail_refresh_token', sa.Text(), nullable=True),
        sa.Column('mail_token_type', sa.String(length=50), nullable=True),
        sa.Column('mail_token_expires_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_profiles_user_id', 'profiles', ['user_id'], unique=True)

    # Create jobs table
    op.create_table(
        'jobs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('company', sa.String(length=255), nullable=False),
        sa.Column('position', sa.String(length=255), nullable=False),
        sa.Column('work_mode', sa.String(length=20), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False, default='Applied'),
        sa.Column('applied_date', sa.Date(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('recruiter_email', sa.String(length=320), nullable=False),
        sa.Column('email_thread_id', sa.String(length=255), nullable=True),
        sa.Column('last_reply_at', sa.DateTime(), nullable=True),
        sa.Column('follow_up_count', sa.Integer(), nullable=False, default=0),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_jobs_user_id', 'jobs', ['user_id'], unique=False)
    op.create_index('ix_jobs_applied_date', 'jobs', ['applied_date'], unique=False)

    # Create follow_ups table
    op.create_table(
        'follow_ups',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('job_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('scheduled_date', sa.DateTime(), nullable=False),
        sa.Column('email_subject', sa.String(length=998), nullable=False),
        sa.Column('email_body', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False, default='pending'),
        sa.Column('timing', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_follow_ups_job_id', 'follow_ups', ['job_id'], unique=False)
    op.create_index('ix_follow_ups_user_id', 'follow_ups', ['user_id'], unique=False)
    op.create_index('ix_follow_ups_scheduled_date', 'follow_ups', ['scheduled_date'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_follow_ups_scheduled_date', table_name='follow_ups')
    op.drop_index('ix_follow_ups_user_id', table_name='follow_ups')
    op.drop_index('ix_follow_ups_job_id', table_name='follow_ups')
    op.drop_table('follow_ups')

    op.drop_index('ix_jobs_applied_date', table_name='jobs')
    op.drop_index('ix_jobs_user_id', table_name='jobs')
    op.drop_table('jobs')

    op.drop_index('ix_profiles_user_id', table_name='profiles')
    op.drop_table('profiles')
