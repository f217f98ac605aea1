"""Owner discovery and ownership risk."""

from loguru import logger

from rugscope.parsers.analysis_types import RENOUNCED, OwnershipInfo, OwnershipRisk
from rugscope.parsers.chain.client import ChainRpcClient
from rugscope.parsers.chain.exceptions import ChainRpcError
from rugscope.utils.addresses import is_burn_address, same_address

OWNER_PROBES = ("owner()", "getOwner()", "_owner()", "admin()")


async def fetch_ownership(chain: ChainRpcClient, token: str) -> OwnershipInfo:
    """Classify who controls the token contract. Never raises.

    Renounced (zero/dead owner) → None risk; the token owning itself →
    Medium; a contract owner such as a multisig or timelock → Low; an
    externally owned account keeps full, transferable control → High.
    """
    owner = None
    for signature in OWNER_PROBES:
        owner = await chain.read(token, signature, ("address",))
        if owner is not None:
            break

    if owner is None:
        return OwnershipInfo(owner=None, risk=OwnershipRisk.UNKNOWN)
    if is_burn_address(owner):
        return OwnershipInfo(owner=RENOUNCED, risk=OwnershipRisk.NONE)
    if same_address(owner, token):
        return OwnershipInfo(owner=owner, risk=OwnershipRisk.MEDIUM)

    try:
        code = await chain.get_code(owner)
    except ChainRpcError as e:
        logger.debug(f"[OWNER] eth_getCode failed for owner {owner[:10]}: {e}")
        return OwnershipInfo(owner=owner, risk=OwnershipRisk.HIGH)

    risk = OwnershipRisk.LOW if code else OwnershipRisk.HIGH
    logger.debug(f"[OWNER] {token[:10]} owner={owner} contract={bool(code)} → {risk.value}")
    return OwnershipInfo(owner=owner, risk=risk)
