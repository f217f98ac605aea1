"""Pydantic models for Blockscout v2 REST responses (normalized)."""

from pydantic import BaseModel


class ExplorerToken(BaseModel):
    """Token metadata as reported by the explorer. Any field may be missing."""

    address: str = ""
    name: str | None = None
    symbol: str | None = None
    decimals: int | None = None
    total_supply: int | None = None  # raw units
    holders_count: int | None = None

    model_config = {"extra": "ignore"}


class ExplorerHolder(BaseModel):
    """One row of the token holder list."""

    address: str
    balance: int = 0  # raw units
    is_contract: bool | None = None
    name: str | None = None

    model_config = {"extra": "ignore"}


class ExplorerTransfer(BaseModel):
    """One token transfer from the explorer transfer feed."""

    from_address: str = ""
    to_address: str = ""
    from_is_contract: bool | None = None
    to_is_contract: bool | None = None
    value: int | None = None  # raw units
    block_number: int | None = None

    model_config = {"extra": "ignore"}
