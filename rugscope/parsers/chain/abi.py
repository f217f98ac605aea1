"""ABI helpers: call encoding, return decoding and revert-reason parsing.

Calls are described by their Solidity signature, e.g. ``"balanceOf(address)"``.
"""

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, keccak

ERROR_STRING_SELECTOR = function_signature_to_4byte_selector("Error(string)")
PANIC_SELECTOR = function_signature_to_4byte_selector("Panic(uint256)")

TRANSFER_TOPIC = "0x" + keccak(text="Transfer(address,address,uint256)").hex()

PANIC_CODES = {
    0x01: "assertion failed",
    0x11: "arithmetic underflow or overflow",
    0x12: "division by zero",
    0x21: "invalid enum value",
    0x22: "invalid storage byte array",
    0x31: "pop on empty array",
    0x32: "array index out of bounds",
    0x41: "out of memory",
    0x51: "uninitialized function",
}

# OpenZeppelin v5 ERC-20 custom errors, decoded by name only
CUSTOM_ERRORS = {
    function_signature_to_4byte_selector(sig): sig.split("(")[0]
    for sig in (
        "ERC20InsufficientBalance(address,uint256,uint256)",
        "ERC20InsufficientAllowance(address,uint256,uint256)",
        "ERC20InvalidSender(address)",
        "ERC20InvalidReceiver(address)",
        "ERC20InvalidApprover(address)",
        "ERC20InvalidSpender(address)",
        "EnforcedPause()",
        "OwnableUnauthorizedAccount(address)",
    )
}


def selector(signature: str) -> bytes:
    return function_signature_to_4byte_selector(signature)


def argument_types(signature: str) -> list[str]:
    """Split ``name(t1,t2)`` into ``[t1, t2]`` (flat types only, no tuples)."""
    inner = signature[signature.index("(") + 1 : signature.rindex(")")]
    return [t.strip() for t in inner.split(",") if t.strip()]


def encode_call(signature: str, args: tuple | list = ()) -> bytes:
    types = argument_types(signature)
    if len(types) != len(args):
        raise ValueError(f"{signature} expects {len(types)} args, got {len(args)}")
    return selector(signature) + (encode(types, list(args)) if types else b"")


def decode_result(returns: tuple[str, ...] | list[str], data: bytes) -> tuple:
    return tuple(decode(list(returns), data))


def event_topic(signature: str) -> str:
    return "0x" + keccak(text=signature).hex()


def address_topic(address: str) -> str:
    """Left-pad an address into a 32-byte topic filter value."""
    return "0x" + address.lower().removeprefix("0x").rjust(64, "0")


def decode_revert_reason(data: bytes) -> str:
    """Render revert data as text. Unknown payloads come back as hex."""
    if not data:
        return ""
    head = data[:4]
    try:
        if head == ERROR_STRING_SELECTOR:
            return str(decode(["string"], data[4:])[0])
        if head == PANIC_SELECTOR:
            code = int(decode(["uint256"], data[4:])[0])
            return f"panic 0x{code:02x} ({PANIC_CODES.get(code, 'unknown')})"
    except Exception:
        return "0x" + data.hex()
    if head in CUSTOM_ERRORS:
        return CUSTOM_ERRORS[head]
    return "0x" + data.hex()


def decode_bytes32_text(value: bytes) -> str:
    """Legacy tokens (MKR era) return name/symbol as bytes32."""
    return value.rstrip(b"\x00").decode("utf-8", errors="ignore").strip()


def hex_to_bytes(value: str | None) -> bytes:
    if not value:
        return b""
    value = value.removeprefix("0x")
    if len(value) % 2:
        value = "0" + value
    return bytes.fromhex(value)
