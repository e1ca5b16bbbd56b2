"""notification request collections

Revision ID: 0001_notification_requests
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_notification_requests'
down_revision = None
branch_labels = None
depends_on = None


def _record_columns(result_column: str) -> list:
    return [
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('to', sa.Text(), nullable=True),
        sa.Column('notification', sa.JSON(), nullable=True),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('android', sa.JSON(), nullable=True),
        sa.Column('apns', sa.JSON(), nullable=True),
        sa.Column('processed', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('failed', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column(result_column, sa.Text(), nullable=True),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('error_code', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    ]


def upgrade() -> None:
    op.create_table('notification_requests', *_record_columns('fcm_response'))
    op.create_index('ix_notification_requests_created_at', 'notification_requests', ['created_at'])
    op.create_table('fcm_requests', *_record_columns('message_id'))
    op.create_index('ix_fcm_requests_created_at', 'fcm_requests', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_fcm_requests_created_at', table_name='fcm_requests')
    op.drop_table('fcm_requests')
    op.drop_index('ix_notification_requests_created_at', table_name='notification_requests')
    op.drop_table('notification_requests')
