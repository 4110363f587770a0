"""007: create marketplace_events table

Revision ID: 007
Revises: 006
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE marketplace_events (
            id                  BIGSERIAL       PRIMARY KEY,
            event_type          VARCHAR(30)     NOT NULL,
            actor_address       VARCHAR(42)     NOT NULL,
            collection_address  VARCHAR(42),
            item_id             NUMERIC(78, 0),
            amount              NUMERIC(78, 0),
            payload             JSONB           NOT NULL DEFAULT '{}'::jsonb,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_events_type CHECK (
                event_type IN (
                    'ListingCreated', 'PriceUpdated', 'ListingCancelled', 'ItemSold',
                    'FeeWithdrawn', 'FeeRateUpdated',
                    'CollectionAllowed', 'CollectionDisallowed',
                    'Paused', 'Unpaused', 'AdminTransferred'
                )
            )
        );
    """)
    op.execute("""
        CREATE INDEX idx_events_item
        ON marketplace_events (collection_address, item_id, id)
        WHERE collection_address IS NOT NULL;
    """)
    op.execute("CREATE INDEX idx_events_type_time ON marketplace_events (event_type, created_at);")
    op.execute("""
        CREATE TRIGGER trg_marketplace_events_append_only
            BEFORE UPDATE OR DELETE ON marketplace_events
            FOR EACH ROW EXECUTE FUNCTION fn_reject_mutation();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS marketplace_events CASCADE;")
