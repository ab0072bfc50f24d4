"""Initial migration - create notification_history table

Revision ID: 001_initial
Revises: 
Create Date: 2026-02-20

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'notification_history',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('sevdesk_invoice_id', sa.String(255), nullable=False),
        sa.Column('notification_type', sa.String(50), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=False, server_default=''),
        sa.Column('shopify_order_id', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_index(
        'ix_notification_history_invoice_type',
        'notification_history',
        ['sevdesk_invoice_id', 'notification_type'],
    )
    op.create_index('ix_notification_history_status', 'notification_history', ['status'])
    op.create_index('ix_notification_history_created_at', 'notification_history', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_notification_history_created_at', table_name='notification_history')
    op.drop_index('ix_notification_history_status', table_name='notification_history')
    op.drop_index('ix_notification_history_invoice_type', table_name='notification_history')

    op.drop_table('notification_history')
