"""Application configuration helpers."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from gourmet.models import ProviderKind

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent

API_KEY_ENV = {
    ProviderKind.HOTPEPPER: "HOTPEPPER_API_KEY",
    ProviderKind.GURUNAVI: "GURUNAVI_API_KEY",
}


@dataclass(frozen=True)
class Settings:
    provider: ProviderKind = ProviderKind.HOTPEPPER
    hotpepper_api_key: str = ""
    gurunavi_api_key: str = ""
    request_timeout: float = 10.0
    demo_fallback: bool = True
    log_level: str = "INFO"

    def api_key_for(self, kind: ProviderKind) -> str:
        if kind is ProviderKind.GURUNAVI:
            return self.gurunavi_api_key
        return self.hotpepper_api_key


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, value = line.split("=", 1)
    key = key.strip().removeprefix("export ").strip()
    if not key:
        return None
    return key, value.strip().strip('"').strip("'")


def load_env_file(env_path: Path) -> list[str]:
    """Copy KEY=VALUE lines (API keys, GOURMET_* options) from a .env file into os.environ.

    Variables already set in the environment win. Returns the names that were
    applied. Values are never logged.
    """
    if not env_path.is_file():
        return []

    applied = []
    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        pair = _parse_env_line(raw_line)
        if pair is None:
            continue
        key, value = pair
        if key in os.environ:
            continue
        os.environ[key] = value
        applied.append(key)

    if applied:
        logger.debug("Loaded %s from %s", ", ".join(applied), env_path)
    return applied


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("%s=%r is not a number; using %s", name, raw, default)
        return default


def _env_provider(name: str) -> ProviderKind:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return ProviderKind.HOTPEPPER
    try:
        return ProviderKind(raw)
    except ValueError:
        logger.warning("%s=%r is not a known provider; using hotpepper", name, raw)
        return ProviderKind.HOTPEPPER


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_env_file(BASE_DIR / ".env")

    settings = Settings(
        provider=_env_provider("GOURMET_PROVIDER"),
        hotpepper_api_key=os.getenv(API_KEY_ENV[ProviderKind.HOTPEPPER], "").strip(),
        gurunavi_api_key=os.getenv(API_KEY_ENV[ProviderKind.GURUNAVI], "").strip(),
        request_timeout=_env_float("GOURMET_REQUEST_TIMEOUT", 10.0),
        demo_fallback=_env_flag("GOURMET_DEMO_FALLBACK", True),
        log_level=os.getenv("GOURMET_LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )

    if not settings.api_key_for(settings.provider):
        logger.warning(
            "%s is not configured; %s searches will fail.",
            API_KEY_ENV[settings.provider],
            settings.provider.value,
        )
    return settings
