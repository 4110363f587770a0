"""008: seed escrow account and marketplace state

Revision ID: 008
Revises: 007
Create Date: 2026-10-18
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

from config.settings import settings

revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        INSERT INTO accounts (address, available_balance, is_active, version)
        VALUES ('MARKETPLACE_ESCROW', 0, TRUE, 0);
    """)
    op.execute(
        sa.text("""
            INSERT INTO marketplace_state (id, admin_address, fee_rate, fee_ledger, paused)
            VALUES (1, :admin, :fee_rate, 0, FALSE)
        """).bindparams(admin=settings.ADMIN_ADDRESS, fee_rate=settings.DEFAULT_FEE_RATE)
    )


def downgrade() -> None:
    op.execute("DELETE FROM marketplace_state WHERE id = 1;")
    op.execute("DELETE FROM accounts WHERE address = 'MARKETPLACE_ESCROW';")
