"""Configuration for blogstore."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import appdirs
from dotenv import load_dotenv

APP_NAME = "blogstore"
DEFAULT_STORAGE_QUOTA = 5 * 1024 * 1024  # characters, matching browser localStorage
DEFAULT_TIMEOUT = 10.0

_PLACEHOLDER_MARKERS = ("your-project", "your_supabase", "your-supabase", "example.supabase")


def _env(*names: str, default: str = "") -> str:
    for name in names:
        value = os.getenv(name)
        if value:
            return value.strip()
    return default


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class BlogConfig:
    """Settings for choosing and reaching a content backend."""
    supabase_url: str = ""
    supabase_key: str = ""
    allow_local_fallback: bool = False
    data_dir: Optional[Path] = None
    storage_quota: int = DEFAULT_STORAGE_QUOTA
    author_id: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "BlogConfig":
        """Build config from environment variables, loading a .env file first."""
        load_dotenv(env_file)
        data_dir = _env("BLOG_DATA_DIR")
        return cls(
            supabase_url=_env("SUPABASE_URL", "VITE_SUPABASE_URL"),
            supabase_key=_env("SUPABASE_ANON_KEY", "VITE_SUPABASE_ANON_KEY"),
            allow_local_fallback=_env_bool("BLOG_LOCAL_FALLBACK"),
            data_dir=Path(data_dir) if data_dir else None,
            storage_quota=int(_env("BLOG_STORAGE_QUOTA", default=str(DEFAULT_STORAGE_QUOTA))),
            author_id=_env("BLOG_AUTHOR_ID") or None,
            timeout=float(_env("BLOG_HTTP_TIMEOUT", default=str(DEFAULT_TIMEOUT))),
        )

    def is_backend_configured(self) -> bool:
        """Check whether remote backend credentials look usable."""
        url = (self.supabase_url or "").strip()
        key = (self.supabase_key or "").strip()
        if not url or not key:
            return False
        if not url.startswith(("http://", "https://")):
            return False
        lowered = f"{url} {key}".lower()
        return not any(marker in lowered for marker in _PLACEHOLDER_MARKERS)

    def resolve_data_dir(self) -> Path:
        """Get the local data directory, defaulting to the per-user app dir."""
        if self.data_dir is not None:
            return Path(self.data_dir)
        return Path(appdirs.user_data_dir(APP_NAME))
