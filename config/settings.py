from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Chain JSON-RPC
    rpc_url: str = ""
    rpc_max_rps: float = 10.0
    rpc_timeout_sec: float = 10.0

    # Block explorer (Blockscout v2 REST)
    explorer_api_url: str = "https://explorer.beschyperchain.com/api/v2"
    explorer_max_rps: float = 5.0
    explorer_timeout_sec: float = 10.0

    # DEX contracts (empty = not configured)
    factory_address: str = ""
    router_address: str = ""
    locker_address: str = ""
    base_tokens: str = ""  # Comma-separated, discovery priority order (WETH first, then stables)

    # Holder distribution
    holder_fetch_limit: int = 100
    min_live_holders: int = 25

    # Pair discovery
    # allPairs scan inspects this many of the newest factory pairs
    factory_scan_limit: int = 200
    pair_strategy_timeout_sec: float = 8.0  # Each discovery strategy gets its own budget

    # Event log ranges (blocks)
    locker_start_block: int = 0  # Locker deploy block; lock history is read from here to latest
    lp_holder_block_window: int = 30_000
    activity_block_window: int = 28_800  # ~24h at 3s blocks
    min_log_chunk: int = 500

    # Activity heuristics
    dev_sell_count_threshold: int = 5
    low_activity_transfer_threshold: int = 10

    # Per-fetcher timeout applied by the analyzer
    fetch_timeout_sec: float = 25.0

    # Telegram bot
    telegram_bot_token: str = ""

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    @property
    def base_token_list(self) -> list[str]:
        """Parse BASE_TOKENS into a list, keeping configured order."""
        return [t.strip() for t in self.base_tokens.split(",") if t.strip()]


settings = Settings()
