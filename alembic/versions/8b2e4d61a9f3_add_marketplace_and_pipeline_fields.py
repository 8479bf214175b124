"""Add marketplace_registrations and CRM pipeline fields on contacts

Revision ID: 8b2e4d61a9f3
Revises: 3f1a9c27d6e0
Create Date: 2026-10-19 15:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8b2e4d61a9f3'
down_revision: Union[str, None] = '3f1a9c27d6e0'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PIPELINE_COLUMNS = [
    ('lead_level', sa.Text()),
    ('priority', sa.Text()),
    ('next_action', sa.Text()),
    ('next_action_date', sa.DateTime(timezone=True)),
]


def upgrade() -> None:
    for name, type_ in PIPELINE_COLUMNS:
        op.add_column('contacts', sa.Column(name, type_, nullable=True))

    op.create_table(
        'marketplace_registrations',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('company_name', sa.Text(), nullable=False),
        sa.Column('contact_name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('phone', sa.Text(), nullable=True),
        sa.Column('country', sa.Text(), nullable=False),
        sa.Column('company_type', sa.Text(), nullable=False),
        sa.Column('products_interest', sa.JSON(), nullable=False),
        sa.Column('estimated_volume', sa.Text(), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), nullable=True, server_default='pending'),
        *[sa.Column(name, type_, nullable=True) for name, type_ in PIPELINE_COLUMNS],
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_marketplace_registrations_email', 'marketplace_registrations', ['email'])


def downgrade() -> None:
    op.drop_index('ix_marketplace_registrations_email', table_name='marketplace_registrations')
    op.drop_table('marketplace_registrations')
    for name, _ in reversed(PIPELINE_COLUMNS):
        op.drop_column('contacts', name)
