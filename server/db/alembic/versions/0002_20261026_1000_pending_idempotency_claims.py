"""Allow pending idempotency claims

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-26 10:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0002'
down_revision: str | None = '0001'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    # A claimed key has no response until its command finishes
    with op.batch_alter_table('idempotency_records') as batch_op:
        batch_op.alter_column('response_status_code', existing_type=sa.Integer(), nullable=True)
        batch_op.alter_column('response_body', existing_type=sa.Text(), nullable=True)


def downgrade() -> None:
    """Downgrade database schema."""
    op.execute('DELETE FROM idempotency_records WHERE response_status_code IS NULL')
    with op.batch_alter_table('idempotency_records') as batch_op:
        batch_op.alter_column('response_body', existing_type=sa.Text(), nullable=False)
        batch_op.alter_column('response_status_code', existing_type=sa.Integer(), nullable=False)
