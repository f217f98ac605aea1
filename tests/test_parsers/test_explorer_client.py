"""Tests for the Blockscout v2 explorer client."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import TOKEN
from rugscope.parsers.explorer.client import ExplorerClient, _parse_int, address_of


def _resp(payload, status: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload
    return resp


def _client(*responses) -> ExplorerClient:
    client = ExplorerClient("https://explorer.test/api/v2", max_rps=0)
    client._client = AsyncMock()
    client._client.get = AsyncMock(side_effect=list(responses))
    return client


class TestParsers:
    def test_address_shapes(self) -> None:
        assert address_of(TOKEN) == TOKEN
        assert address_of({"hash": TOKEN}) == TOKEN
        assert address_of({"address_hash": TOKEN}) == TOKEN
        assert address_of({}) is None
        assert address_of(None) is None

    def test_parse_int(self) -> None:
        assert _parse_int("1000000000000000000000000") == 10**24
        assert _parse_int(18) == 18
        assert _parse_int("1e3") == 1000
        assert _parse_int(None) is None
        assert _parse_int("n/a") is None

    def test_site_url(self) -> None:
        assert ExplorerClient("https://explorer.test/api/v2/").site_url == "https://explorer.test"


class TestExplorerClient:
    @pytest.mark.asyncio
    async def test_get_token(self) -> None:
        client = _client(
            _resp(
                {
                    "address": TOKEN,
                    "name": "Test",
                    "symbol": "TST",
                    "decimals": "18",
                    "total_supply": "1000000000000000000000000",
                    "holders": "321",
                    "type": "ERC-20",
                }
            )
        )
        token = await client.get_token(TOKEN)

        assert token is not None
        assert token.decimals == 18
        assert token.total_supply == 10**24
        assert token.holders_count == 321

    @pytest.mark.asyncio
    async def test_get_token_missing_fields(self) -> None:
        client = _client(_resp({"name": None}))
        token = await client.get_token(TOKEN)

        assert token is not None
        assert token.name is None
        assert token.total_supply is None

    @pytest.mark.asyncio
    async def test_get_token_http_error(self) -> None:
        client = _client(_resp({}, status=404))
        assert await client.get_token(TOKEN) is None

    @pytest.mark.asyncio
    async def test_holders_paginate(self) -> None:
        page1 = {
            "items": [
                {"address": {"hash": "0xaaa", "is_contract": False}, "value": "500"},
                {"address": "0xbbb", "value": "300"},
            ],
            "next_page_params": {"items_count": 2, "value": "300"},
        }
        page2 = {
            "items": [{"address": {"hash": "0xccc", "is_contract": True, "name": "Pool"}, "value": "100"}],
            "next_page_params": None,
        }
        client = _client(_resp(page1), _resp(page2))

        holders = await client.get_holders(TOKEN, limit=100)

        assert [h.address for h in holders] == ["0xaaa", "0xbbb", "0xccc"]
        assert holders[2].is_contract is True
        assert holders[2].name == "Pool"
        second_call = client._client.get.await_args_list[1]
        assert second_call.kwargs["params"] == {"items_count": 2, "value": "300"}

    @pytest.mark.asyncio
    async def test_holders_respect_limit(self) -> None:
        page = {
            "items": [{"address": f"0x{i:03x}", "value": "1"} for i in range(5)],
            "next_page_params": {"items_count": 5},
        }
        client = _client(_resp(page))

        holders = await client.get_holders(TOKEN, limit=3)

        assert len(holders) == 3
        assert client._client.get.await_count == 1

    @pytest.mark.asyncio
    async def test_holders_first_page_fails(self) -> None:
        client = _client(_resp({}, status=500))
        assert await client.get_holders(TOKEN) is None

    @pytest.mark.asyncio
    async def test_verified_falls_back_to_address(self) -> None:
        client = _client(_resp({}, status=404), _resp({"is_verified": True}))
        assert await client.is_verified(TOKEN) is True

    @pytest.mark.asyncio
    async def test_transfers(self) -> None:
        client = _client(
            _resp(
                {
                    "items": [
                        {
                            "from": {"hash": "0xaaa", "is_contract": True},
                            "to": {"hash": "0xbbb", "is_contract": False},
                            "total": {"value": "42"},
                            "block_number": 99,
                            "tx_hash": "0xdead",
                        }
                    ]
                }
            )
        )
        transfers = await client.get_token_transfers(TOKEN)

        assert transfers[0].from_is_contract is True
        assert transfers[0].value == 42
        assert transfers[0].block_number == 99
