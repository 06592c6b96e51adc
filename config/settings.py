from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Etherscan V2 (one key covers every supported chain)
    etherscan_api_key: str = ""
    etherscan_max_rps: float = 4.0  # free tier allows 5 RPS

    # DexScreener (public, no key)
    dexscreener_max_rps: float = 4.0

    # Per-wallet fan-out
    max_concurrent_lookups: int = 5  # in-flight verification/market lookups
    max_tokens_per_wallet: int = 20  # most recent distinct contracts analysed

    # HTTP API
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    api_rate_limit: str = "30/minute"
    api_debug: bool = False

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False


settings = Settings()
