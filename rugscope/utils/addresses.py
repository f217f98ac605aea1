"""EVM address helpers shared by fetchers, the analyzer and the bot."""

import re

from eth_utils import is_address, to_checksum_address

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
DEAD_ADDRESS = "0x000000000000000000000000000000000000dEaD"

BURN_ADDRESSES = frozenset({ZERO_ADDRESS.lower(), DEAD_ADDRESS.lower()})

_ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")


def normalize_address(value: str | None) -> str | None:
    """Return the checksummed form of an address, or None if invalid."""
    if not value:
        return None
    value = value.strip()
    if not is_address(value):
        # Mixed-case input with a bad checksum still names a valid account
        if _ADDRESS_RE.fullmatch(value):
            return to_checksum_address(value.lower())
        return None
    return to_checksum_address(value)


def extract_address(text: str | None) -> str | None:
    """Find the first address-looking token in free text (chat messages)."""
    if not text:
        return None
    match = _ADDRESS_RE.search(text)
    if match is None:
        return None
    return normalize_address(match.group(0))


def same_address(a: str | None, b: str | None) -> bool:
    if not a or not b:
        return False
    return a.lower() == b.lower()


def is_burn_address(address: str | None) -> bool:
    return bool(address) and address.lower() in BURN_ADDRESSES


def topic_to_address(topic: str) -> str:
    """Convert a 32-byte indexed log topic to a checksummed address."""
    return to_checksum_address("0x" + topic[-40:])
