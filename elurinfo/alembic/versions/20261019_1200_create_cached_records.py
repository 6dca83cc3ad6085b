"""create_cached_records

Revision ID: 3f9c2a7d1b04
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f9c2a7d1b04'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'cached_records',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('key', sa.String(length=255), nullable=False),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('valid_date', sa.Date(), nullable=True),
        sa.Column('issue_date', sa.Date(), nullable=True),
        sa.Column('last_update', postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('expires_at', postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            'created_at',
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_index('idx_cached_records_category_key', 'cached_records', ['category', 'key'], unique=False)
    op.create_index('idx_cached_records_category_last_update', 'cached_records', ['category', 'last_update'], unique=False)
    op.create_index('idx_cached_records_category_valid_date', 'cached_records', ['category', 'valid_date'], unique=False)
    op.create_index('idx_cached_records_expires_at', 'cached_records', ['expires_at'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_cached_records_expires_at', table_name='cached_records')
    op.drop_index('idx_cached_records_category_valid_date', table_name='cached_records')
    op.drop_index('idx_cached_records_category_last_update', table_name='cached_records')
    op.drop_index('idx_cached_records_category_key', table_name='cached_records')
    op.drop_table('cached_records')
