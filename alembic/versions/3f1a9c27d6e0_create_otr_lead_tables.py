"""Create contacts, lead_notes, goals, webhooks, newsletter tables

Revision ID: 3f1a9c27d6e0
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c27d6e0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'contacts',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('company', sa.Text(), nullable=True),
        sa.Column('subject', sa.Text(), nullable=True),
        sa.Column('message', sa.Text(), nullable=False, server_default=''),
        sa.Column('channel', sa.Text(), nullable=True, server_default='general'),
        sa.Column('status', sa.Text(), nullable=True, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_contacts_channel_created_at', 'contacts', ['channel', 'created_at'])

    op.create_table(
        'lead_notes',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('contact_id', sa.Text(), nullable=False),
        sa.Column('user_id', sa.Text(), nullable=True),
        sa.Column('note', sa.Text(), nullable=False),
        sa.Column('note_type', sa.Text(), nullable=False, server_default='note'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_lead_notes_contact_id', 'lead_notes', ['contact_id'])

    op.create_table(
        'otr_conversion_goals',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('target_leads', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('target_conversions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('month', 'year', name='uq_otr_conversion_goals_month_year'),
    )

    op.create_table(
        'notification_webhooks',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('webhook_url', sa.Text(), nullable=False),
        sa.Column('webhook_type', sa.Text(), nullable=False, server_default='slack'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('events', sa.JSON(), nullable=False),
        sa.Column('created_by', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'newsletter_subscribers',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('email', sa.Text(), nullable=False, unique=True),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('language', sa.Text(), nullable=False, server_default='pt'),
        sa.Column('interests', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table('newsletter_subscribers')
    op.drop_table('notification_webhooks')
    op.drop_table('otr_conversion_goals')
    op.drop_index('ix_lead_notes_contact_id', table_name='lead_notes')
    op.drop_table('lead_notes')
    op.drop_index('ix_contacts_channel_created_at', table_name='contacts')
    op.drop_table('contacts')
