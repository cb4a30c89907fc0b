import os
from dataclasses import dataclass
from functools import lru_cache

CACHE_BACKENDS = ("memory", "file")


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    return value if value is not None else default


def _parse_cache_backend(raw: str | None) -> str:
    backend = (raw or "memory").strip().lower()
    if backend not in CACHE_BACKENDS:
        raise ValueError(
            f"CACHE_BACKEND must be one of {', '.join(CACHE_BACKENDS)}"
        )
    return backend


@dataclass(frozen=True)
class Settings:
    db_path: str
    log_level: str
    cache_backend: str
    cache_dir: str
    cache_ttl_seconds: int
    max_preview_len: int
    max_page_size: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    db_path = _get_env("DB_PATH", "./data/app.db")
    log_level = _get_env("LOG_LEVEL", "INFO")
    cache_backend = _parse_cache_backend(_get_env("CACHE_BACKEND"))
    cache_dir = _get_env("CACHE_DIR", "./data/cache")
    cache_ttl_seconds = int(_get_env("SEARCH_CACHE_TTL", "300"))
    max_preview_len = int(_get_env("MAX_PREVIEW_LEN", "500"))
    max_page_size = int(_get_env("MAX_PAGE_SIZE", "100"))

    return Settings(
        db_path=db_path,
        log_level=log_level,
        cache_backend=cache_backend,
        cache_dir=cache_dir,
        cache_ttl_seconds=cache_ttl_seconds,
        max_preview_len=max_preview_len,
        max_page_size=max_page_size,
    )
