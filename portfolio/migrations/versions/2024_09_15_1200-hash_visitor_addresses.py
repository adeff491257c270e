"""Replace raw visitor addresses with hashed addresses

Revision ID: 002_hash_visitor_addresses
Revises: 001_initial
Create Date: 2024-09-15 12:00:00.000000

"""
import hashlib
from datetime import datetime, timezone
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '002_hash_visitor_addresses'
down_revision: Union[str, None] = '001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LEGACY_TABLE = 'visitors_legacy'
HASH_LENGTH = 16
COPIED_COLUMNS = ('hashed_ip', 'user_agent', 'path', 'timestamp', 'country')


def legacy_placeholder_hash(row_id: int) -> str:
    """
    Placeholder stored for rows recorded before hashing.

    The raw address is discarded, not re-hashed: the salt it would need is
    gone with the process that served the visit, and storing a hash of the
    raw address under a new salt would keep it linkable. Each historic row
    gets its own value derived from its id, so historic visits no longer
    count as repeat visitors of each other.
    """
    return hashlib.sha256(f"legacy-visitor:{row_id}".encode()).hexdigest()[:HASH_LENGTH]


def _create_visitors_table() -> None:
    op.create_table(
        'visitors',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('hashed_ip', sa.String(length=64), nullable=False),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('path', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('country', sa.String(length=2), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )


def _create_visitors_indexes() -> None:
    op.create_index('ix_visitors_hashed_ip', 'visitors', ['hashed_ip'])
    op.create_index('ix_visitors_timestamp', 'visitors', ['timestamp'])


def upgrade() -> None:
    """
    Converge the visitors table on the hashed-address layout.

    - No visitors table: create it
    - Only hashed_ip: nothing to do
    - Anything else (raw ip column, both columns, or neither): rename the
      old table, create the new one, copy every row keeping its id, drop the
      old table
    """
    bind = op.get_bind()
    inspector = inspect(bind)

    if 'visitors' not in inspector.get_table_names():
        _create_visitors_table()
        _create_visitors_indexes()
        return

    columns = {column['name'] for column in inspector.get_columns('visitors')}
    has_hashed = 'hashed_ip' in columns
    if has_hashed and 'ip' not in columns:
        return

    op.rename_table('visitors', LEGACY_TABLE)
    _create_visitors_table()

    # Columns the old table lacks are copied as NULL
    selected = ['id' if 'id' in columns else 'rowid AS id']
    for name in COPIED_COLUMNS:
        selected.append(name if name in columns else f'NULL AS {name}')
    legacy_rows = bind.execute(
        sa.text(f"SELECT {', '.join(selected)} FROM {LEGACY_TABLE} ORDER BY id")
    ).mappings().all()

    # Untyped columns: legacy timestamps are copied as stored
    visitors = sa.table(
        'visitors',
        sa.column('id'),
        sa.column('hashed_ip'),
        sa.column('user_agent'),
        sa.column('path'),
        sa.column('timestamp'),
        sa.column('country'),
    )

    # Legacy rows without a timestamp are dated to the migration
    migrated_at = datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S')
    copied = []
    for row in legacy_rows:
        hashed_ip = row['hashed_ip']
        copied.append({
            'id': row['id'],
            'hashed_ip': hashed_ip or legacy_placeholder_hash(row['id']),
            'user_agent': row['user_agent'],
            'path': row['path'],
            'timestamp': row['timestamp'] or migrated_at,
            'country': row['country'],
        })

    if copied:
        op.bulk_insert(visitors, copied)

    op.drop_table(LEGACY_TABLE)
    _create_visitors_indexes()


def downgrade() -> None:
    """
    Restore the raw-address layout.

    Addresses can't be recovered; the hashed value is copied into ip.
    """
    op.drop_index('ix_visitors_timestamp', table_name='visitors')
    op.drop_index('ix_visitors_hashed_ip', table_name='visitors')
    with op.batch_alter_table('visitors') as batch_op:
        batch_op.alter_column('hashed_ip', new_column_name='ip')
