"""HttpCustodyAuthority — CustodyAuthorityProtocol over the custody service's REST API.

Endpoints (relative to CUSTODY_API_URL):
    GET  /collections/{c}/items/{i}/owner                 -> {"owner": "0x.."}
    GET  /collections/{c}/items/{i}/operators/{op}        -> {"approved": bool}
    GET  /collections/{c}/owners/{owner}/operators/{op}   -> {"approved": bool}
    POST /collections/{c}/items/{i}/transfer              -> {"success": bool}

Transport failures, 5xx responses and 2xx bodies that are not a JSON object
raise CustodyUnavailableError; a transfer answered with 4xx or success=false
returns False.
"""

import logging
from typing import Any

import httpx

from config.settings import settings
from src.mp_common.amounts import ZERO_ADDRESS
from src.mp_common.errors import CustodyUnavailableError

logger = logging.getLogger(__name__)

_client: httpx.AsyncClient | None = None


def get_custody_http_client() -> httpx.AsyncClient:
    """Get or create the shared custody HTTP client."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = httpx.AsyncClient(
            base_url=settings.CUSTODY_API_URL,
            timeout=settings.CUSTODY_TIMEOUT_SECONDS,
        )
    return _client


async def close_custody_http_client() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


class HttpCustodyAuthority:
    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or get_custody_http_client()

    async def owner_of(self, collection: str, item_id: int) -> str:
        data = await self._get(
            f"/collections/{collection}/items/{item_id}/owner", allow_missing=True
        )
        # Unknown items have no owner; the entitlement check then fails NotOwner
        if data is None:
            return ZERO_ADDRESS
        owner = data.get("owner")
        if not isinstance(owner, str):
            raise CustodyUnavailableError("owner response has no owner")
        return owner

    async def is_approved_operator(
        self, collection: str, item_id: int, operator: str
    ) -> bool:
        data = await self._get(
            f"/collections/{collection}/items/{item_id}/operators/{operator}"
        )
        return bool((data or {}).get("approved", False))

    async def is_approved_for_all(
        self, collection: str, owner: str, operator: str
    ) -> bool:
        data = await self._get(
            f"/collections/{collection}/owners/{owner}/operators/{operator}"
        )
        return bool((data or {}).get("approved", False))

    async def transfer(
        self, collection: str, from_address: str, to_address: str, item_id: int
    ) -> bool:
        try:
            resp = await self.client.post(
                f"/collections/{collection}/items/{item_id}/transfer",
                json={
                    "from": from_address,
                    "to": to_address,
                    "operator": settings.MARKETPLACE_OPERATOR_ADDRESS,
                },
            )
        except httpx.HTTPError as exc:
            raise CustodyUnavailableError(str(exc)) from exc
        if resp.status_code >= 500:
            raise CustodyUnavailableError(f"transfer returned {resp.status_code}")
        if resp.is_client_error:
            logger.warning(
                "Custody refused transfer %s#%d %s -> %s: %s",
                collection, item_id, from_address, to_address, resp.text,
            )
            return False
        return bool(_decode(resp).get("success", False))

    async def _get(self, path: str, allow_missing: bool = False) -> dict[str, Any] | None:
        try:
            resp = await self.client.get(path)
            if allow_missing and resp.status_code == 404:
                return None
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise CustodyUnavailableError(str(exc)) from exc
        return _decode(resp)


def _decode(resp: httpx.Response) -> dict[str, Any]:
    # A 2xx that is not a JSON object leaves the outcome unknown
    try:
        data = resp.json()
    except ValueError as exc:
        raise CustodyUnavailableError(f"undecodable response from {resp.url.path}") from exc
    if not isinstance(data, dict):
        raise CustodyUnavailableError(f"unexpected response from {resp.url.path}")
    return data
