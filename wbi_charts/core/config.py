from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_API_BASE_URL = "https://api.worldbank.org/v2"
DEFAULT_API_TIMEOUT = 30
DEFAULT_LOCALE = "en"
DEFAULT_PRESETS_PATH = "configs/presets.yaml"


@dataclass
class Settings:
    api_base_url: str
    api_timeout: int
    locale: str
    presets_path: Path


def _read_env_file() -> dict[str, str]:
    """Load minimal .env to support WBI_* keys if not in the environment.

    Existing os.environ values always win over the file.
    """
    env_path = Path.cwd() / ".env"
    env: dict[str, str] = {}
    if not env_path.exists():
        return env
    try:
        text = env_path.read_text(encoding="utf-8")
    except OSError:
        return {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        k, v = line.split("=", 1)
        env[k.strip()] = v.strip().strip('"').strip("'")
    return env


def _get_env(
    name: str,
    fallback_names: list[str] | None = None,
    env_file: dict[str, str] | None = None,
) -> str | None:
    # Priority: process env -> .env -> fallback names
    val = os.getenv(name)
    if val:
        return val
    if env_file and name in env_file:
        return env_file[name]
    if fallback_names:
        for fb in fallback_names:
            v = os.getenv(fb)
            if v:
                return v
            if env_file and fb in env_file:
                return env_file[fb]
    return None


def _as_int(raw: str | None, default: int) -> int:
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def get_settings() -> Settings:
    env_file = _read_env_file()
    base_url = _get_env("WBI_API_BASE_URL", ["API_BASE_URL"], env_file)
    timeout = _get_env("WBI_API_TIMEOUT", ["API_TIMEOUT"], env_file)
    locale = _get_env("WBI_LOCALE", None, env_file)
    presets = _get_env("WBI_PRESETS_PATH", None, env_file)
    return Settings(
        api_base_url=(base_url or DEFAULT_API_BASE_URL).rstrip("/"),
        api_timeout=_as_int(timeout, DEFAULT_API_TIMEOUT),
        locale=locale or DEFAULT_LOCALE,
        presets_path=Path(presets or DEFAULT_PRESETS_PATH),
    )
