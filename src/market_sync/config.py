"""Environment-driven settings."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_DISCLAIMER = (
    "Note: the above analysis is for discussion only and does not constitute "
    "investment advice. Investing involves risk; enter the market with caution."
)

DEFAULT_SYSTEM_INSTRUCTION = (
    "You are a professional wealth-management assistant.\n"
    "1. Analyse core global assets (equities, bonds, macro economy).\n"
    "2. Break down the industry logic behind market moves.\n"
    "3. Keep a professional, rigorous and objective tone.\n"
    "4. Answer in Markdown.\n"
    "5. You can search the web; ground answers in the latest market data."
)


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r} (expected a number)") from None


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r} (expected an integer)") from None


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Immutable runtime settings. Build with Settings.from_env()."""

    cache_dir: str | None = None
    cache_ttl: float = 300.0  # 5 minutes

    retry_max_attempts: int = 3
    retry_base_delay: float = 1.0  # seconds
    retry_multiplier: float = 2.0
    retry_max_delay: float = 30.0  # seconds

    poll_interval: float = 30.0
    poll_closed_interval: float | None = None

    http_timeout: float = 10.0
    http_max_workers: int = 4

    quote_base_url: str = "https://push2.eastmoney.com"
    history_base_url: str = "https://push2his.eastmoney.com"
    news_feed_url: str = "https://zhibo.sina.com.cn/api/zhibo/feed"
    news_zhibo_id: int = 152
    news_page_size: int = 20

    supabase_url: str = ""
    supabase_key: str = ""

    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    chat_grounding: bool = True
    system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION
    disclaimer: str = DEFAULT_DISCLAIMER

    connectivity_probe_url: str | None = None

    def __post_init__(self) -> None:
        if self.cache_ttl <= 0:
            raise ValueError(f"cache_ttl must be positive, got {self.cache_ttl}")
        if self.retry_max_attempts < 1:
            raise ValueError(f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}")
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")
        # Normalize trailing slashes so URL joins stay predictable
        object.__setattr__(self, "supabase_url", self.supabase_url.rstrip("/"))
        object.__setattr__(self, "gemini_base_url", self.gemini_base_url.rstrip("/"))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        closed_interval = env.get("POLL_CLOSED_INTERVAL")
        return cls(
            cache_dir=env.get("CACHE_DIR") or None,
            cache_ttl=_env_float(env, "CACHE_TTL", 300.0),
            retry_max_attempts=_env_int(env, "SYNC_MAX_ATTEMPTS", 3),
            retry_base_delay=_env_float(env, "SYNC_BASE_DELAY", 1.0),
            retry_multiplier=_env_float(env, "SYNC_BACKOFF_MULTIPLIER", 2.0),
            retry_max_delay=_env_float(env, "SYNC_MAX_DELAY", 30.0),
            poll_interval=_env_float(env, "POLL_INTERVAL", 30.0),
            poll_closed_interval=(
                _env_float(env, "POLL_CLOSED_INTERVAL", 0.0) if closed_interval else None
            ),
            http_timeout=_env_float(env, "HTTP_TIMEOUT", 10.0),
            http_max_workers=_env_int(env, "HTTP_MAX_WORKERS", 4),
            supabase_url=env.get("SUPABASE_URL", ""),
            supabase_key=env.get("SUPABASE_ANON_KEY", ""),
            gemini_api_key=env.get("GEMINI_API_KEY") or env.get("API_KEY", ""),
            gemini_model=env.get("GEMINI_MODEL", "gemini-2.5-flash"),
            chat_grounding=_env_bool(env, "CHAT_GROUNDING", True),
            connectivity_probe_url=env.get("CONNECTIVITY_PROBE_URL") or None,
        )
