"""Blockscout v2 REST client: token metadata, holders, verification, transfers.

Response schemas differ between explorer deployments and versions, so every
field is parsed defensively and anything unusable degrades to None.
"""

import asyncio
from typing import Any

import httpx
from loguru import logger

from rugscope.parsers.explorer.models import ExplorerHolder, ExplorerToken, ExplorerTransfer
from rugscope.parsers.rate_limiter import RateLimiter

MAX_RETRIES = 2
RETRY_DELAYS = [1.0, 3.0]
HOLDERS_MAX_PAGES = 10


class ExplorerClient:
    """Async REST client for a Blockscout v2 explorer API."""

    def __init__(self, base_url: str, max_rps: float = 5.0, timeout: float = 10.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._rate_limiter = RateLimiter(max_rps)
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    @property
    def site_url(self) -> str:
        """Explorer web UI root, used for address links in reports."""
        return self._base_url.removesuffix("/api/v2").removesuffix("/api")

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any | None:
        """GET with retry on 429/timeout. Returns decoded JSON or None."""
        url = f"{self._base_url}{path}"

        for attempt in range(MAX_RETRIES + 1):
            try:
                await self._rate_limiter.acquire()
                resp = await self._client.get(url, params=params)

                if resp.status_code == 429:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[EXPLORER] Rate limited, waiting {delay}s")
                    await asyncio.sleep(delay)
                    continue

                if resp.status_code != 200:
                    logger.debug(f"[EXPLORER] HTTP {resp.status_code} for {path}")
                    return None

                return resp.json()

            except (httpx.TimeoutException, httpx.ConnectError) as e:
                if attempt < MAX_RETRIES:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[EXPLORER] {type(e).__name__}, retry in {delay}s")
                    await asyncio.sleep(delay)
                else:
                    logger.warning(f"[EXPLORER] Failed after retries for {path}: {e}")
                    return None
            except (httpx.HTTPError, ValueError) as e:
                logger.debug(f"[EXPLORER] Bad response for {path}: {e}")
                return None

        return None

    async def get_token(self, address: str) -> ExplorerToken | None:
        data = await self._get_json(f"/tokens/{address}")
        if not isinstance(data, dict):
            return None
        return _parse_token(data, address)

    async def get_holders(self, address: str, limit: int = 100) -> list[ExplorerHolder] | None:
        """Fetch up to ``limit`` holders following next_page_params.

        Returns None when the first page is unavailable; a later page failing
        just truncates the list.
        """
        holders: list[ExplorerHolder] = []
        params: dict[str, Any] | None = None

        for page in range(HOLDERS_MAX_PAGES):
            data = await self._get_json(f"/tokens/{address}/holders", params)
            if not isinstance(data, dict):
                if page == 0:
                    return None
                break

            for item in data.get("items") or []:
                holder = _parse_holder(item)
                if holder is not None:
                    holders.append(holder)

            next_params = data.get("next_page_params")
            if len(holders) >= limit or not isinstance(next_params, dict) or not next_params:
                break
            params = next_params

        return holders[:limit]

    async def is_verified(self, address: str) -> bool | None:
        data = await self._get_json(f"/smart-contracts/{address}")
        if isinstance(data, dict) and "is_verified" in data:
            return bool(data["is_verified"])

        data = await self._get_json(f"/addresses/{address}")
        if isinstance(data, dict) and data.get("is_verified") is not None:
            return bool(data["is_verified"])
        return None

    async def get_token_transfers(self, address: str) -> list[ExplorerTransfer] | None:
        """Most recent page of token transfers (newest first)."""
        data = await self._get_json(f"/tokens/{address}/transfers")
        if not isinstance(data, dict):
            return None
        transfers = [_parse_transfer(item) for item in data.get("items") or []]
        return [t for t in transfers if t is not None]


def address_of(value: Any) -> str | None:
    """Explorers return addresses either as a string or as an object."""
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        for key in ("hash", "address", "address_hash"):
            inner = value.get(key)
            if isinstance(inner, str) and inner:
                return inner
    return None


def _parse_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return None


def _parse_token(data: dict, address: str) -> ExplorerToken:
    holders = data.get("holders_count", data.get("holders"))
    return ExplorerToken(
        address=address_of(data.get("address")) or address,
        name=data.get("name") or None,
        symbol=data.get("symbol") or None,
        decimals=_parse_int(data.get("decimals")),
        total_supply=_parse_int(data.get("total_supply")),
        holders_count=_parse_int(holders),
    )


def _parse_holder(item: Any) -> ExplorerHolder | None:
    if not isinstance(item, dict):
        return None
    raw_address = item.get("address")
    address = address_of(raw_address)
    if not address:
        return None
    is_contract = raw_address.get("is_contract") if isinstance(raw_address, dict) else None
    name = raw_address.get("name") if isinstance(raw_address, dict) else item.get("name")
    return ExplorerHolder(
        address=address,
        balance=_parse_int(item.get("value")) or 0,
        is_contract=is_contract,
        name=name if isinstance(name, str) else None,
    )


def _parse_transfer(item: Any) -> ExplorerTransfer | None:
    if not isinstance(item, dict):
        return None
    src = item.get("from")
    dst = item.get("to")
    total = item.get("total")
    return ExplorerTransfer(
        from_address=address_of(src) or "",
        to_address=address_of(dst) or "",
        from_is_contract=src.get("is_contract") if isinstance(src, dict) else None,
        to_is_contract=dst.get("is_contract") if isinstance(dst, dict) else None,
        value=_parse_int(total.get("value")) if isinstance(total, dict) else None,
        block_number=_parse_int(item.get("block_number") or item.get("block")),
    )
