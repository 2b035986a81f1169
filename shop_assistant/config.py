"""
Configuration for the shopping assistant service.
One class per environment, selected by APP_ENV.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

log = logging.getLogger(__name__)


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-change-me")
    JSON_SORT_KEYS: bool = False

    # Redis (conversation state)
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", 6379))
    REDIS_DB: int = int(os.getenv("REDIS_DB", 0))
    REDIS_DECODE_RESPONSES: bool = True
    REDIS_TTL_SECONDS: int = int(os.getenv("REDIS_TTL_SECONDS", 3600))

    # Market API (catalog + reviews); normalize leading '@' and whitespace
    _RAW_API = os.getenv("MARKET_API_BASE", "http://localhost:8088/api/v1")
    MARKET_API_BASE: str = _RAW_API.strip().lstrip("@").strip().rstrip("/")
    MARKET_API_TIMEOUT_SECONDS: int = int(os.getenv("MARKET_API_TIMEOUT_SECONDS", "10"))

    # Catalog snapshot
    CATALOG_PAGE_SIZE: int = int(os.getenv("CATALOG_PAGE_SIZE", "100"))
    CATALOG_TTL_SECONDS: int = int(os.getenv("CATALOG_TTL_SECONDS", "300"))

    # Reviews
    REVIEW_PAGE_SIZE: int = int(os.getenv("REVIEW_PAGE_SIZE", "5"))
    REVIEWS_SHOWN: int = int(os.getenv("REVIEWS_SHOWN", "3"))

    # Matching
    MATCH_LIMIT: int = int(os.getenv("MATCH_LIMIT", "5"))
    MIN_KEYWORD_LENGTH: int = int(os.getenv("MIN_KEYWORD_LENGTH", "3"))
    SEARCH_MIN_MESSAGE_LENGTH: int = int(os.getenv("SEARCH_MIN_MESSAGE_LENGTH", "10"))

    # History
    HISTORY_MAX_MESSAGES: int = int(os.getenv("HISTORY_MAX_MESSAGES", "50"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Load the catalog at app start instead of on the first chat turn
    PRELOAD_CATALOG: bool = _flag("PRELOAD_CATALOG")


class DevelopmentConfig(BaseConfig):
    DEBUG: bool = True


class ProductionConfig(BaseConfig):
    DEBUG: bool = False
    REDIS_TTL_SECONDS: int = int(os.getenv("REDIS_TTL_SECONDS", "900"))


class TestingConfig(BaseConfig):
    TESTING: bool = True
    REDIS_DB: int = 15
    CATALOG_TTL_SECONDS: int = 0


def get_config() -> BaseConfig:
    """Get configuration instance directly - no complex manager."""
    env = os.getenv("APP_ENV", os.getenv("FLASK_ENV", "development")).lower()
    mapping = {
        "development": DevelopmentConfig,
        "production": ProductionConfig,
        "testing": TestingConfig,
        "test": TestingConfig,
    }
    config_class = mapping.get(env, DevelopmentConfig)
    cfg = config_class()

    if not hasattr(get_config, "_logged_startup"):
        log.info(f"⚙️ CONFIG_STARTUP | env={env} | config_class={config_class.__name__}")
        log.info(f"🛒 MARKET_API | base={cfg.MARKET_API_BASE} | timeout={cfg.MARKET_API_TIMEOUT_SECONDS}s")
        log.info(f"📦 CATALOG_CONFIG | page_size={cfg.CATALOG_PAGE_SIZE} | ttl={cfg.CATALOG_TTL_SECONDS}s | preload={cfg.PRELOAD_CATALOG}")
        log.info(f"🔍 MATCH_CONFIG | limit={cfg.MATCH_LIMIT} | min_keyword={cfg.MIN_KEYWORD_LENGTH} | search_min_len={cfg.SEARCH_MIN_MESSAGE_LENGTH}")
        log.info(f"💾 REDIS_CONFIG | host={cfg.REDIS_HOST} | port={cfg.REDIS_PORT} | db={cfg.REDIS_DB} | ttl={cfg.REDIS_TTL_SECONDS}s")
        get_config._logged_startup = True

    return cfg
