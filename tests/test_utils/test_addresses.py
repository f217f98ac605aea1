"""Tests for address validation helpers."""

from rugscope.utils.addresses import (
    DEAD_ADDRESS,
    ZERO_ADDRESS,
    extract_address,
    is_burn_address,
    normalize_address,
    same_address,
    topic_to_address,
)

WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"


def test_normalize_checksums() -> None:
    assert normalize_address(WETH.lower()) == WETH
    assert normalize_address(f"  {WETH}  ") == WETH


def test_normalize_tolerates_bad_checksum() -> None:
    bad = WETH[:2] + WETH[2:].swapcase()
    assert normalize_address(bad) == WETH


def test_normalize_rejects_garbage() -> None:
    assert normalize_address("0x1234") is None
    assert normalize_address("hello") is None
    assert normalize_address(None) is None


def test_extract_from_chat_text() -> None:
    assert extract_address(f"check this {WETH.lower()} pls") == WETH
    assert extract_address("no address here") is None


def test_burn_addresses() -> None:
    assert is_burn_address(DEAD_ADDRESS.lower())
    assert is_burn_address(ZERO_ADDRESS)
    assert not is_burn_address(WETH)
    assert not is_burn_address(None)


def test_same_address_ignores_case() -> None:
    assert same_address(WETH, WETH.lower())
    assert not same_address(WETH, None)


def test_topic_to_address() -> None:
    topic = "0x" + "0" * 24 + WETH[2:].lower()
    assert topic_to_address(topic) == WETH
