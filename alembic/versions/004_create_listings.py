"""004: create listings table

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # A row exists only while the offer is open; the primary key makes a
    # second open offer for the same item impossible.
    op.execute("""
        CREATE TABLE listings (
            collection_address  VARCHAR(42)     NOT NULL,
            item_id             NUMERIC(78, 0)  NOT NULL,
            seller_address      VARCHAR(42)     NOT NULL,
            price               NUMERIC(78, 0)  NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_listings PRIMARY KEY (collection_address, item_id),
            CONSTRAINT ck_listings_item_id_gte_0 CHECK (item_id >= 0),
            CONSTRAINT ck_listings_price_gt_0    CHECK (price > 0),
            CONSTRAINT ck_listings_seller_set    CHECK (
                seller_address <> '0x0000000000000000000000000000000000000000'
            )
        );
    """)
    op.execute("CREATE INDEX idx_listings_seller ON listings (seller_address);")
    op.execute("COMMENT ON TABLE listings IS 'Open fixed-price offers, one per (collection, item)';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS listings CASCADE;")
