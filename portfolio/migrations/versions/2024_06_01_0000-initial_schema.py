"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2024-06-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the first-generation schema:
    - urls table: short code to URL mappings with click counts
    - visitors table: page visits, still keyed by the raw client address

    Databases created before migrations were versioned already have these
    tables; they are adopted as they are. The oldest deployments lack the
    clicks column, which is added here.
    """
    bind = op.get_bind()
    inspector = inspect(bind)
    existing_tables = inspector.get_table_names()

    if 'urls' not in existing_tables:
        op.create_table(
            'urls',
            sa.Column('short_code', sa.String(length=16), nullable=False),
            sa.Column('original_url', sa.Text(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False,
                      server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.Column('clicks', sa.Integer(), nullable=False, server_default='0'),
            sa.PrimaryKeyConstraint('short_code')
        )
        op.create_index('ix_urls_created_at', 'urls', ['created_at'])
    else:
        url_columns = {column['name'] for column in inspector.get_columns('urls')}
        if 'clicks' not in url_columns:
            op.add_column(
                'urls',
                sa.Column('clicks', sa.Integer(), nullable=True, server_default='0')
            )

    if 'visitors' not in existing_tables:
        op.create_table(
            'visitors',
            sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
            sa.Column('ip', sa.Text(), nullable=False),
            sa.Column('user_agent', sa.Text(), nullable=True),
            sa.Column('path', sa.Text(), nullable=True),
            sa.Column('timestamp', sa.DateTime(), nullable=True,
                      server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.Column('country', sa.Text(), nullable=True),
            sa.PrimaryKeyConstraint('id'),
            sqlite_autoincrement=True
        )


def downgrade() -> None:
    """
    Drop all tables and indexes.
    """
    op.drop_table('visitors')
    # Adopted legacy databases never had this index
    op.execute('DROP INDEX IF EXISTS ix_urls_created_at')
    op.drop_table('urls')
