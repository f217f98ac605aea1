"""Fallback-chain combinator for multi-source lookups.

A lookup is an ordered list of named strategies. Each one returns a value or
None; the first present value wins. An exception inside a strategy counts
as a miss, so the caller never sees it. With ``timeout`` every strategy gets
its own budget, so one slow source cannot starve the ones after it.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from loguru import logger

T = TypeVar("T")

Strategy = tuple[str, Callable[[], Awaitable[T | None]]]


async def first_present(
    strategies: Sequence[Strategy],
    *,
    tag: str = "FALLBACK",
    timeout: float | None = None,
) -> tuple[str, T] | None:
    """Run strategies in order; return (strategy name, value) of the first hit."""
    for name, strategy in strategies:
        try:
            value = await asyncio.wait_for(strategy(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.debug(f"[{tag}] Strategy {name} timed out after {timeout}s")
            continue
        except Exception as e:
            logger.debug(f"[{tag}] Strategy {name} failed: {type(e).__name__}: {e}")
            continue
        if value is None:
            logger.debug(f"[{tag}] Strategy {name} found nothing")
            continue
        return name, value
    return None
