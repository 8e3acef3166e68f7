"""
Application configuration for api-dex-sync.

Centralizes environment variables using python-dotenv.

Note:
- Every scheduled source can be switched off from the environment
  (SYNC_ENABLED for all of them, *_ENABLED per source).
- Upstream endpoints default to the public production APIs.
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() == "true"


class Settings:
    """
    Configuration settings for the api-dex-sync service.
    """

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    APP_NAME: str = os.getenv("APP_NAME", "api-dex-sync")

    # Mongo
    MONGODB_URL: str = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
    MONGODB_DB_NAME: str = os.getenv("MONGODB_DB_NAME", "dex_sync")

    # Scheduler
    SYNC_ENABLED: bool = _env_bool("SYNC_ENABLED", "true")
    RUN_SYNC_ON_START: bool = _env_bool("RUN_SYNC_ON_START", "true")
    SNAPSHOT_BUCKET_S: int = int(os.getenv("SNAPSHOT_BUCKET_S", "60"))

    # Zealous (tokens + pools)
    ZEALOUS_SYNC_ENABLED: bool = _env_bool("ZEALOUS_SYNC_ENABLED", "true")
    ZEALOUS_SYNC_INTERVAL_S: float = float(os.getenv("ZEALOUS_SYNC_INTERVAL_S", "60"))
    ZEALOUS_TOKENS_URL: str = os.getenv("ZEALOUS_TOKENS_URL", "https://kasplex.zealousswap.com/v1/tokens")
    ZEALOUS_POOLS_URL: str = os.getenv("ZEALOUS_POOLS_URL", "https://kasplex.zealousswap.com/v1/pools")
    ZEALOUS_PRICES_URL: str = os.getenv("ZEALOUS_PRICES_URL", "https://kasplex.zealousswap.com/v1/prices")
    ZEALOUS_DEX_TAG: str = os.getenv("ZEALOUS_DEX_TAG", "zealous")

    # Tracking policy
    TRACK_UNVERIFIED_TOKENS: bool = _env_bool("TRACK_UNVERIFIED_TOKENS", "false")
    POOL_TRACKING_MODE: str = os.getenv("POOL_TRACKING_MODE", "any").lower()  # any | token0 | token1 | both

    # LFG listing (top-N snapshot)
    LFG_CRON_ENABLED: bool = _env_bool("LFG_CRON_ENABLED", "true")
    LFG_SYNC_INTERVAL_S: float = float(os.getenv("LFG_SYNC_INTERVAL_S", "60"))
    LFG_BASE_URL: str = os.getenv("LFG_BASE_URL", "https://api.lfg.kaspa.com/tokens/search")
    LFG_SORT_ORDER: str = os.getenv("LFG_SORT_ORDER", "Market Cap (High to Low)")
    LFG_VIEW_MODE: str = os.getenv("LFG_VIEW_MODE", "grid")
    LFG_PAGES_TO_SCAN: int = int(os.getenv("LFG_PAGES_TO_SCAN", "8"))
    LFG_TOP_CAP: int = int(os.getenv("LFG_TOP_CAP", "100"))
    LFG_LOOKUP_PAGES: int = int(os.getenv("LFG_LOOKUP_PAGES", "6"))

    # Outbound HTTP
    HTTP_TIMEOUT_S: float = float(os.getenv("HTTP_TIMEOUT_S", "10"))
    HTTP_CONNECT_TIMEOUT_S: float = float(os.getenv("HTTP_CONNECT_TIMEOUT_S", "5"))
    HTTP_MAX_RETRIES: int = int(os.getenv("HTTP_MAX_RETRIES", "3"))
    HTTP_BACKOFF_BASE_S: float = float(os.getenv("HTTP_BACKOFF_BASE_S", "0.5"))
    HTTP_USER_AGENT: str = os.getenv("HTTP_USER_AGENT", "api-dex-sync/0.1")


settings = Settings()
