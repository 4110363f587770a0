"""Seller entitlement check shared by list, reprice and purchase."""

import logging

from src.mp_common.amounts import normalize_address
from src.mp_common.errors import NotApprovedError, NotOwnerError
from src.mp_custody.domain.authority import CustodyAuthorityProtocol

logger = logging.getLogger(__name__)


async def verify_entitlement(
    custody: CustodyAuthorityProtocol,
    collection: str,
    item_id: int,
    claimed_owner: str,
    operator: str,
) -> None:
    """Raise unless claimed_owner owns the item and operator may move it.

    Ownership is checked first: NotOwnerError takes precedence over
    NotApprovedError.
    """
    owner = normalize_address(await custody.owner_of(collection, item_id))
    if owner != claimed_owner:
        logger.info(
            "Entitlement denied: %s#%d owned by %s, claimed by %s",
            collection, item_id, owner, claimed_owner,
        )
        raise NotOwnerError(claimed_owner)

    if await custody.is_approved_operator(collection, item_id, operator):
        return
    if await custody.is_approved_for_all(collection, owner, operator):
        return
    raise NotApprovedError()
