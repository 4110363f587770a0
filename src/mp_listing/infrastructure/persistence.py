"""ListingRepository — concrete implementation of ListingRepositoryProtocol.

One row per open offer; the (collection_address, item_id) primary key makes a
second open offer for the same item unrepresentable. Clearing deletes the row.
item_id is NUMERIC(78, 0) to hold the full uint256 range.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_listing.domain.models import ListedOffer, ListingKey, Offer

_GET_SQL = text("""
    SELECT seller_address, price, created_at
    FROM listings
    WHERE collection_address = :collection AND item_id = :item_id
""")

_GET_FOR_UPDATE_SQL = text("""
    SELECT seller_address, price, created_at
    FROM listings
    WHERE collection_address = :collection AND item_id = :item_id
    FOR UPDATE
""")

_INSERT_SQL = text("""
    INSERT INTO listings (collection_address, item_id, seller_address, price, created_at)
    VALUES (:collection, :item_id, :seller, :price, :created_at)
    ON CONFLICT (collection_address, item_id) DO NOTHING
    RETURNING item_id
""")

_UPDATE_SQL = text("""
    UPDATE listings
    SET seller_address = :seller, price = :price, created_at = :created_at
    WHERE collection_address = :collection AND item_id = :item_id
""")

_DELETE_SQL = text("""
    DELETE FROM listings
    WHERE collection_address = :collection AND item_id = :item_id
""")

_LIST_OPEN_SQL = text("""
    SELECT collection_address, item_id, seller_address, price, created_at
    FROM listings
    WHERE
        (CAST(:collection AS TEXT) IS NULL OR collection_address = CAST(:collection AS TEXT))
        AND (
            CAST(:after_collection AS TEXT) IS NULL
            OR (collection_address, item_id)
               > (CAST(:after_collection AS TEXT), CAST(:after_item AS NUMERIC))
        )
    ORDER BY collection_address, item_id
    LIMIT :limit
""")


def _row_to_offer(row: object) -> Offer:
    return Offer(
        seller=row.seller_address,  # type: ignore[attr-defined]
        price=int(row.price),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _offer_params(key: ListingKey, offer: Offer) -> dict[str, object]:
    return {
        "collection": key.collection,
        "item_id": key.item_id,
        "seller": offer.seller,
        "price": offer.price,
        "created_at": offer.created_at,
    }


class ListingRepository:
    async def get(
        self, db: AsyncSession, key: ListingKey, for_update: bool = False
    ) -> Offer:
        sql = _GET_FOR_UPDATE_SQL if for_update else _GET_SQL
        row = (
            await db.execute(sql, {"collection": key.collection, "item_id": key.item_id})
        ).fetchone()
        return _row_to_offer(row) if row else Offer.sentinel()

    async def insert(self, db: AsyncSession, key: ListingKey, offer: Offer) -> bool:
        # A concurrent uncommitted insert of the same key blocks here; once it
        # commits the conflict resolves to DO NOTHING and no row is returned
        result = await db.execute(_INSERT_SQL, _offer_params(key, offer))
        return result.fetchone() is not None

    async def update(self, db: AsyncSession, key: ListingKey, offer: Offer) -> None:
        await db.execute(_UPDATE_SQL, _offer_params(key, offer))

    async def clear(self, db: AsyncSession, key: ListingKey) -> None:
        await db.execute(
            _DELETE_SQL, {"collection": key.collection, "item_id": key.item_id}
        )

    async def list_open(
        self,
        db: AsyncSession,
        collection: str | None,
        after: ListingKey | None,
        limit: int,
    ) -> list[ListedOffer]:
        result = await db.execute(
            _LIST_OPEN_SQL,
            {
                "collection": collection,
                "after_collection": after.collection if after else None,
                "after_item": after.item_id if after else None,
                "limit": limit,
            },
        )
        return [
            ListedOffer(
                key=ListingKey(collection=row.collection_address, item_id=int(row.item_id)),
                offer=_row_to_offer(row),
            )
            for row in result.fetchall()
        ]
