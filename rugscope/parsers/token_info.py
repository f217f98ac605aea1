"""Token metadata fetcher: chain reads are authoritative, the explorer fills the gaps.

This is the only fetcher allowed to fail an analysis: an address without
bytecode, or one where neither source yields anything token-like, raises
TokenResolutionError.
"""

import asyncio

from loguru import logger

from rugscope.parsers.analysis_types import TokenInfo
from rugscope.parsers.chain.abi import decode_bytes32_text
from rugscope.parsers.chain.client import ChainRpcClient
from rugscope.parsers.chain.exceptions import ChainRpcError
from rugscope.parsers.explorer.client import ExplorerClient

DEFAULT_DECIMALS = 18


class TokenResolutionError(Exception):
    pass


async def _read_text(chain: ChainRpcClient, address: str, signature: str) -> str | None:
    value = await chain.read(address, signature, ("string",))
    if value:
        return str(value).strip() or None
    raw = await chain.read(address, signature, ("bytes32",))
    if raw:
        return decode_bytes32_text(raw) or None
    return None


async def fetch_token_info(
    chain: ChainRpcClient,
    explorer: ExplorerClient | None,
    address: str,
) -> TokenInfo:
    """Resolve name/symbol/decimals/supply/verification for a token."""
    try:
        code = await chain.get_code(address)
    except ChainRpcError as e:
        code = None
        logger.debug(f"[TOKEN] eth_getCode failed for {address[:10]}: {e}")

    if code is not None and not code:
        raise TokenResolutionError(f"{address} is not a contract")

    meta, verified, name, symbol, decimals, supply = await asyncio.gather(
        explorer.get_token(address) if explorer else _none(),
        explorer.is_verified(address) if explorer else _none(),
        _read_text(chain, address, "name()"),
        _read_text(chain, address, "symbol()"),
        chain.read(address, "decimals()", ("uint8",)),
        chain.read(address, "totalSupply()", ("uint256",)),
    )

    # Chain values are authoritative; the explorer fills what the chain lacks
    if meta is not None:
        name = name or meta.name
        symbol = symbol or meta.symbol
        decimals = decimals if decimals is not None else meta.decimals
        supply = supply if supply is not None else meta.total_supply

    if supply is None and name is None and symbol is None:
        raise TokenResolutionError(f"no token metadata resolvable for {address}")

    info = TokenInfo(
        address=address,
        name=name or "Unknown Token",
        symbol=symbol or "?",
        decimals=int(decimals) if decimals is not None else DEFAULT_DECIMALS,
        total_supply=int(supply or 0),
        verified=bool(verified),
        holders_count=(meta.holders_count or 0) if meta is not None else 0,
    )
    logger.debug(
        f"[TOKEN] {info.symbol} ({address[:10]}): decimals={info.decimals} "
        f"supply={info.total_supply} verified={info.verified}"
    )
    return info


async def _none() -> None:
    return None
