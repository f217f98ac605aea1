"""Privileged-function detection from deployed bytecode.

Solidity dispatchers compare the call selector against PUSH4 constants, so
the set of PUSH4 immediates approximates the contract's external interface.
"""

from loguru import logger

from rugscope.parsers.analysis_types import SecurityFeatures
from rugscope.parsers.chain.abi import selector
from rugscope.parsers.chain.client import ChainRpcClient
from rugscope.parsers.chain.exceptions import ChainRpcError

PUSH1 = 0x60
PUSH4 = 0x63
PUSH32 = 0x7F

MINT_SIGNATURES = ("mint(address,uint256)", "mint(uint256)", "mintTo(address,uint256)")
BLACKLIST_SIGNATURES = (
    "blacklist(address)",
    "addToBlacklist(address)",
    "setBlacklist(address,bool)",
    "blacklistAddress(address,bool)",
    "isBlacklisted(address)",
    "addBots(address[])",
    "setBots(address[],bool)",
)
PAUSE_SIGNATURES = ("pause()", "unpause()", "setTradingEnabled(bool)")
RENOUNCE_SIGNATURES = ("renounceOwnership()",)

COMPLEX_BYTECODE_SIZE = 20_000
COMPLEX_SELECTOR_COUNT = 60


def extract_selectors(code: bytes) -> set[bytes]:
    """Collect PUSH4 immediates, skipping over every PUSHn data section."""
    found: set[bytes] = set()
    i = 0
    while i < len(code):
        op = code[i]
        if PUSH1 <= op <= PUSH32:
            width = op - PUSH1 + 1
            if op == PUSH4 and i + 4 < len(code):
                found.add(bytes(code[i + 1 : i + 5]))
            i += width
        i += 1
    return found


def _has_any(selectors: set[bytes], signatures: tuple[str, ...]) -> bool:
    return any(selector(sig) in selectors for sig in signatures)


def security_score(features: SecurityFeatures) -> int:
    score = 10
    score -= 3 if features.mintable else 0
    score -= 3 if features.blacklist_capable else 0
    score -= 2 if features.pausable else 0
    score -= 0 if features.ownership_renounceable else 2
    return max(0, min(10, score))


def analyze_bytecode(code: bytes) -> SecurityFeatures:
    """Pure bytecode analysis. Empty code gives an unanalysed, neutral result."""
    if not code:
        return SecurityFeatures()
    selectors = extract_selectors(code)
    features = SecurityFeatures(
        mintable=_has_any(selectors, MINT_SIGNATURES),
        blacklist_capable=_has_any(selectors, BLACKLIST_SIGNATURES),
        pausable=_has_any(selectors, PAUSE_SIGNATURES),
        ownership_renounceable=_has_any(selectors, RENOUNCE_SIGNATURES),
        bytecode_size=len(code),
        selector_count=len(selectors),
        analyzed=True,
    )
    features.score = security_score(features)
    features.high_complexity = (
        features.bytecode_size >= COMPLEX_BYTECODE_SIZE
        or features.selector_count >= COMPLEX_SELECTOR_COUNT
    )
    return features


async def fetch_security_features(chain: ChainRpcClient, token: str) -> SecurityFeatures:
    try:
        code = await chain.get_code(token)
    except ChainRpcError as e:
        logger.debug(f"[SECURITY] Bytecode unavailable for {token[:10]}: {e}")
        return SecurityFeatures()
    features = analyze_bytecode(code)
    logger.debug(
        f"[SECURITY] {token[:10]}: mint={features.mintable} blacklist={features.blacklist_capable} "
        f"pause={features.pausable} score={features.score} size={features.bytecode_size}"
    )
    return features
