"""Shared test fixtures and in-memory chain / explorer fakes."""

import pytest

from config.settings import Settings
from rugscope.parsers.chain.abi import TRANSFER_TOPIC, address_topic
from rugscope.parsers.chain.models import LogEntry

TOKEN = "0x1111111111111111111111111111111111111111"
PAIR = "0x2222222222222222222222222222222222222222"
BASE = "0x3333333333333333333333333333333333333333"
FACTORY = "0x4444444444444444444444444444444444444444"
ROUTER = "0x5555555555555555555555555555555555555555"
LOCKER = "0x6666666666666666666666666666666666666666"
OWNER = "0x7777777777777777777777777777777777777777"

SUPPLY = 1_000_000 * 10**18


class FakeChain:
    """Minimal ChainRpcClient stand-in driven by lookup tables.

    reads: {(address, signature): value} or {(address, signature, args): value}
    code: {address: bytes | Exception}
    logs: {(address, topic0): [LogEntry] | Exception}
    calls: {(address, signature): Exception | callable(args) -> Exception | None}
    """

    def __init__(self, *, reads=None, code=None, logs=None, calls=None):
        self.reads = {_key(k): v for k, v in (reads or {}).items()}
        self.code = {a.lower(): v for a, v in (code or {}).items()}
        self.logs = {(a.lower(), t): v for (a, t), v in (logs or {}).items()}
        self.calls = {(a.lower(), s): v for (a, s), v in (calls or {}).items()}
        self.call_log: list[tuple[str, str, tuple]] = []
        self.log_queries: list[dict] = []

    async def read(self, to, signature, returns, args=()):
        exact = (to.lower(), signature, tuple(a.lower() if isinstance(a, str) else a for a in args))
        if exact in self.reads:
            return self.reads[exact]
        return self.reads.get((to.lower(), signature))

    async def call_function(self, to, signature, args=(), returns=(), *, sender=None):
        self.call_log.append((to.lower(), signature, tuple(args)))
        outcome = self.calls.get((to.lower(), signature))
        if callable(outcome) and not isinstance(outcome, Exception):
            outcome = outcome(args)
        if isinstance(outcome, Exception):
            raise outcome
        return ()

    async def get_code(self, address):
        value = self.code.get(address.lower(), b"")
        if isinstance(value, Exception):
            raise value
        return value

    async def get_logs_windowed(
        self, address, topics, *, blocks_back=0, from_block=None, min_chunk=500, max_chunks=16
    ):
        self.log_queries.append(
            {"address": address.lower(), "topic": topics[0], "blocks_back": blocks_back, "from_block": from_block}
        )
        value = self.logs.get((address.lower(), topics[0]), [])
        if isinstance(value, Exception):
            raise value
        return list(value)

    async def close(self):
        pass


class FakeExplorer:
    """Minimal ExplorerClient stand-in. None means the endpoint is down."""

    site_url = "https://explorer.test"

    def __init__(self, *, token=None, holders=None, verified=None, transfers=None):
        self._token = token
        self._holders = holders
        self._verified = verified
        self._transfers = transfers

    async def get_token(self, address):
        return self._token

    async def get_holders(self, address, limit=100):
        return None if self._holders is None else self._holders[:limit]

    async def is_verified(self, address):
        return self._verified

    async def get_token_transfers(self, address):
        return self._transfers

    async def close(self):
        pass


def _key(key: tuple) -> tuple:
    if len(key) == 2:
        return (key[0].lower(), key[1])
    address, signature, args = key
    return (address.lower(), signature, tuple(a.lower() if isinstance(a, str) else a for a in args))


def transfer_log(sender: str, recipient: str, value: int, *, address: str = TOKEN, block: int = 1) -> LogEntry:
    return LogEntry(
        address=address,
        topics=[TRANSFER_TOPIC, address_topic(sender), address_topic(recipient)],
        data="0x" + format(value, "064x"),
        block_number=block,
    )


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        rpc_url="http://rpc.test",
        explorer_api_url="https://explorer.test/api/v2",
        factory_address=FACTORY,
        router_address=ROUTER,
        locker_address=LOCKER,
        base_tokens=BASE,
        fetch_timeout_sec=5.0,
    )
