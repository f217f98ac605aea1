"""EVM JSON-RPC client: read-only contract calls and event log queries."""

import asyncio
from itertools import count
from typing import Any

import httpx
from loguru import logger

from rugscope.parsers.chain.abi import (
    decode_result,
    decode_revert_reason,
    encode_call,
    hex_to_bytes,
)
from rugscope.parsers.chain.exceptions import (
    ChainRpcError,
    ExecutionRevertedError,
    LogRangeTooLargeError,
    MissingFunctionError,
)
from rugscope.parsers.chain.models import LogEntry
from rugscope.parsers.rate_limiter import RateLimiter

MAX_RETRIES = 2
RETRY_DELAYS = [1.0, 3.0]

# Provider wordings for "eth_getLogs window too wide"
LOG_RANGE_ERRORS = (
    "block range",
    "range is too large",
    "range too large",
    "query returned more than",
    "too many results",
    "limit exceeded",
    "response size exceeded",
    "exceed maximum block range",
)


class ChainRpcClient:
    """Async HTTP JSON-RPC client. Never signs or broadcasts anything."""

    def __init__(self, rpc_url: str, max_rps: float = 10.0, timeout: float = 10.0) -> None:
        self._rpc_url = rpc_url
        self._rate_limiter = RateLimiter(max_rps)
        self._client = httpx.AsyncClient(timeout=timeout)
        self._ids = count(1)

    async def close(self) -> None:
        await self._client.aclose()

    async def request(self, method: str, params: list[Any]) -> Any:
        """Send one JSON-RPC request, retrying rate limits and transport errors."""
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}

        for attempt in range(MAX_RETRIES + 1):
            try:
                await self._rate_limiter.acquire()
                resp = await self._client.post(self._rpc_url, json=payload)

                if resp.status_code == 429:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[RPC] Rate limited on {method}, waiting {delay}s")
                    await asyncio.sleep(delay)
                    continue

                if resp.status_code != 200:
                    raise ChainRpcError(f"{method}: HTTP {resp.status_code}")

                data = resp.json()
                if data.get("error"):
                    raise _map_rpc_error(method, data["error"])
                return data.get("result")

            except (httpx.TimeoutException, httpx.ConnectError) as e:
                if attempt < MAX_RETRIES:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[RPC] {type(e).__name__} on {method}, retry in {delay}s")
                    await asyncio.sleep(delay)
                else:
                    logger.warning(f"[RPC] {method} failed after retries: {e}")
                    raise ChainRpcError(f"{method}: {type(e).__name__}") from e
            except (httpx.HTTPError, ValueError) as e:
                raise ChainRpcError(f"{method}: {type(e).__name__}: {e}") from e

        raise ChainRpcError(f"{method}: max retries exceeded")

    async def eth_call(
        self,
        to: str,
        data: bytes,
        *,
        sender: str | None = None,
        value: int = 0,
    ) -> bytes:
        tx: dict[str, str] = {"to": to, "data": "0x" + data.hex()}
        if sender:
            tx["from"] = sender
        if value:
            tx["value"] = hex(value)
        result = await self.request("eth_call", [tx, "latest"])
        return hex_to_bytes(result)

    async def call_function(
        self,
        to: str,
        signature: str,
        args: tuple = (),
        returns: tuple[str, ...] = (),
        *,
        sender: str | None = None,
    ) -> tuple:
        """Call a view/dry-run function and decode its return values.

        Raises MissingFunctionError when the contract answers with empty
        data but return values were expected.
        """
        raw = await self.eth_call(to, encode_call(signature, args), sender=sender)
        if not returns:
            return ()
        if not raw:
            raise MissingFunctionError(f"{signature} returned no data at {to}")
        try:
            return decode_result(returns, raw)
        except Exception as e:
            raise MissingFunctionError(f"{signature} undecodable at {to}: {e}") from e

    async def read(
        self,
        to: str,
        signature: str,
        returns: tuple[str, ...],
        args: tuple = (),
    ) -> Any | None:
        """Best-effort read of an optional accessor. First return value or None."""
        try:
            values = await self.call_function(to, signature, args, returns)
        except ChainRpcError as e:
            logger.debug(f"[RPC] {signature} unavailable at {to[:10]}: {e}")
            return None
        except ValueError as e:
            logger.debug(f"[RPC] {signature} bad arguments: {e}")
            return None
        return values[0] if values else None

    async def get_code(self, address: str) -> bytes:
        return hex_to_bytes(await self.request("eth_getCode", [address, "latest"]))

    async def block_number(self) -> int:
        return int(await self.request("eth_blockNumber", []), 16)

    async def get_logs(
        self,
        address: str,
        topics: list[str | None],
        from_block: int,
        to_block: int,
    ) -> list[LogEntry]:
        params = {
            "address": address,
            "topics": topics,
            "fromBlock": hex(from_block),
            "toBlock": hex(to_block),
        }
        result = await self.request("eth_getLogs", [params]) or []
        return [_parse_log(item) for item in result]

    async def get_logs_windowed(
        self,
        address: str,
        topics: list[str | None],
        *,
        blocks_back: int = 0,
        from_block: int | None = None,
        min_chunk: int = 500,
        max_chunks: int | None = 16,
    ) -> list[LogEntry]:
        """Fetch logs for the most recent ``blocks_back`` blocks.

        Providers cap the eth_getLogs range; on a range error the chunk size
        is halved and the window is walked newest-first. When the chunk count
        would exceed ``max_chunks`` the oldest part of the window is dropped.

        With ``from_block`` the range is ``from_block..latest`` and it is
        always walked to the end, whatever the chunk count.
        """
        latest = await self.block_number()
        if from_block is None:
            start = max(latest - blocks_back, 0)
        else:
            start = min(max(from_block, 0), latest)
            max_chunks = None
        chunk = latest - start + 1

        while True:
            try:
                return await self._collect_chunks(address, topics, start, latest, chunk, max_chunks)
            except LogRangeTooLargeError:
                chunk //= 2
                if chunk < min_chunk:
                    raise
                logger.debug(f"[RPC] Log range too large for {address[:10]}, chunk → {chunk}")

    async def _collect_chunks(
        self,
        address: str,
        topics: list[str | None],
        start: int,
        end: int,
        chunk: int,
        max_chunks: int | None,
    ) -> list[LogEntry]:
        collected: list[LogEntry] = []
        chunks = 0
        while end >= start:
            if max_chunks is not None and chunks >= max_chunks:
                logger.debug(f"[RPC] Log window for {address[:10]} truncated at block {end + 1}")
                break
            lo = max(start, end - chunk + 1)
            collected = await self.get_logs(address, topics, lo, end) + collected
            end = lo - 1
            chunks += 1
        return collected


def _map_rpc_error(method: str, error: Any) -> ChainRpcError:
    """Translate a JSON-RPC error object into the exception taxonomy."""
    if not isinstance(error, dict):
        return ChainRpcError(f"{method}: {error}")

    message = str(error.get("message", ""))
    lowered = message.lower()
    raw_data = error.get("data")
    if isinstance(raw_data, dict):
        raw_data = raw_data.get("data")

    if "revert" in lowered or error.get("code") == 3:
        payload = hex_to_bytes(raw_data) if isinstance(raw_data, str) else b""
        reason = decode_revert_reason(payload)
        if not reason:
            reason = message.split("execution reverted", 1)[-1].lstrip(": ").strip()
        return ExecutionRevertedError(reason, payload)

    if method == "eth_getLogs" and any(p in lowered for p in LOG_RANGE_ERRORS):
        return LogRangeTooLargeError(message)

    return ChainRpcError(f"{method}: {message}")


def _parse_log(item: dict) -> LogEntry:
    return LogEntry(
        address=item.get("address", ""),
        topics=item.get("topics") or [],
        data=item.get("data") or "0x",
        block_number=int(item.get("blockNumber") or "0x0", 16),
    )
