import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Variable prefixes used by the Vite and Next.js front-end deployments.
ENV_PREFIXES = ("", "VITE_", "NEXT_PUBLIC_")
CREDENTIAL_VARS = ("SUPABASE_URL", "SUPABASE_ANON_KEY")


class ConfigurationError(Exception):
    """Raised when required configuration (credentials, tunables) is invalid or absent."""
    pass


def load_env() -> None:
    """Load .env from the working directory if present. Existing variables win."""
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    for prefix in ENV_PREFIXES:
        value = os.getenv(f"{prefix}{key}")
        if value:
            return value
    return default


def missing_credentials(supabase_url: Optional[str], supabase_anon_key: Optional[str]) -> List[str]:
    """Names of the credential variables that are unset or empty."""
    values = dict(zip(CREDENTIAL_VARS, (supabase_url, supabase_anon_key)))
    return [k for k in CREDENTIAL_VARS if not values[k]]


def _number(key: str, default: float, cast=float):
    raw = os.getenv(f"COMPANYCHECK_{key}")
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigurationError(f"COMPANYCHECK_{key} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(f"COMPANYCHECK_{key} must be positive, got {raw!r}")
    return value


@dataclass
class Settings:
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    request_timeout: float = 10.0
    search_timeout: float = 10.0
    row_limit: int = 100
    max_results: int = 25
    cache_ttl: float = 5 * 60
    storage_ttl: float = 24 * 60 * 60
    cache_backend: str = "sqlite"
    cache_path: Path = Path("data/cache.db")
    log_level: str = "INFO"
    log_dir: Path = Path("logs")


def load_settings() -> Settings:
    """
    Build Settings from the environment (call load_env() first to pick up .env).

    Credentials are read as-is and may be missing; the search path reports
    that as a ConfigurationError when it actually needs them.
    """
    backend = (os.getenv("COMPANYCHECK_CACHE_BACKEND") or "sqlite").strip().lower()
    if backend not in ("sqlite", "json", "none"):
        raise ConfigurationError(
            f"COMPANYCHECK_CACHE_BACKEND must be one of sqlite, json, none; got {backend!r}"
        )
    default_path = "data/cache.db" if backend == "sqlite" else "data/cache.json"
    url = get_env("SUPABASE_URL")

    return Settings(
        supabase_url=url.rstrip("/") if url else None,
        supabase_anon_key=get_env("SUPABASE_ANON_KEY"),
        request_timeout=_number("REQUEST_TIMEOUT", 10.0),
        search_timeout=_number("SEARCH_TIMEOUT", 10.0),
        row_limit=min(_number("ROW_LIMIT", 100, int), 100),
        max_results=_number("MAX_RESULTS", 25, int),
        cache_ttl=_number("CACHE_TTL", 5 * 60),
        storage_ttl=_number("STORAGE_TTL", 24 * 60 * 60),
        cache_backend=backend,
        cache_path=Path(os.getenv("COMPANYCHECK_CACHE_PATH") or default_path),
        log_level=(os.getenv("COMPANYCHECK_LOG_LEVEL") or "INFO").upper(),
        log_dir=Path(os.getenv("COMPANYCHECK_LOG_DIR") or "logs"),
    )
