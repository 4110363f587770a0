"""005: create marketplace_state and allowed_collections

Revision ID: 005
Revises: 004
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE marketplace_state (
            id              SMALLINT        PRIMARY KEY,
            admin_address   VARCHAR(42)     NOT NULL,
            fee_rate        SMALLINT        NOT NULL,
            fee_ledger      BIGINT          NOT NULL DEFAULT 0,
            paused          BOOLEAN         NOT NULL DEFAULT FALSE,
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_state_singleton      CHECK (id = 1),
            CONSTRAINT ck_state_fee_rate_range CHECK (fee_rate >= 0 AND fee_rate < 1000),
            CONSTRAINT ck_state_fee_ledger_gte_0 CHECK (fee_ledger >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_marketplace_state_updated_at
            BEFORE UPDATE ON marketplace_state
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("""
        CREATE TABLE allowed_collections (
            collection_address  VARCHAR(42)  PRIMARY KEY,
            created_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW()
        );
    """)
    op.execute(
        "COMMENT ON TABLE marketplace_state IS 'Singleton row: admin, fee rate, fee ledger, pause flag';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS allowed_collections CASCADE;")
    op.execute("DROP TABLE IF EXISTS marketplace_state CASCADE;")
