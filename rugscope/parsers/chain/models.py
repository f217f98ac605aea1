"""Pydantic models for EVM JSON-RPC responses."""

from pydantic import BaseModel


class LogEntry(BaseModel):
    """Single eth_getLogs entry (hex fields kept as strings)."""

    address: str
    topics: list[str] = []
    data: str = "0x"
    block_number: int = 0
