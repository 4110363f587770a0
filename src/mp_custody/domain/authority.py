"""Custody authority Protocol — the external system of record for ownership.

The marketplace never caches ownership; every security-relevant step asks
the authority again.
"""

from typing import Protocol


class CustodyAuthorityProtocol(Protocol):
    async def owner_of(self, collection: str, item_id: int) -> str: ...

    async def is_approved_operator(
        self, collection: str, item_id: int, operator: str
    ) -> bool:
        """True if operator is the single approved operator for this item."""
        ...

    async def is_approved_for_all(
        self, collection: str, owner: str, operator: str
    ) -> bool:
        """True if owner has approved operator for every item in the collection."""
        ...

    async def transfer(
        self, collection: str, from_address: str, to_address: str, item_id: int
    ) -> bool: ...
