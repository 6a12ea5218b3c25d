"""Settings for red-flag-radar.

Reads/writes a TOML file and provides a typed Settings dataclass.
Default location: ``~/.config/red-flag-radar/config.toml``.
Override with the ``RED_FLAG_RADAR_CONFIG`` environment variable.

Example file::

    [anthropic]
    api_key1 = "sk-ant-..."
    api_key2 = ""
    model = "claude-3-5-sonnet-20240620"

    [openai]
    api_key = "sk-..."
    model = "gpt-4o"

    [limits]
    provider_timeout = 90
    request_timeout = 300
    rate_limit = 10
    rate_window = 3600
    daily_cap = 0
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from red_flag_radar.llm.models import DEFAULT_ANTHROPIC_MODEL, DEFAULT_OPENAI_MODEL

_DEFAULT_CONFIG_DIR = Path("~/.config/red-flag-radar").expanduser()


def _config_path() -> Path:
    env = os.environ.get("RED_FLAG_RADAR_CONFIG")
    if env:
        return Path(env).expanduser()
    return _DEFAULT_CONFIG_DIR / "config.toml"


@dataclass
class Settings:
    anthropic_api_key1: str = ""
    anthropic_api_key2: str = ""
    anthropic_model: str = DEFAULT_ANTHROPIC_MODEL.value
    openai_api_key: str = ""
    openai_model: str = DEFAULT_OPENAI_MODEL.value

    provider_timeout_seconds: float = 90.0
    request_timeout_seconds: float = 300.0

    # Per-owner throttle (in-process) and daily cap (store-backed, 0 = off)
    rate_limit_max_requests: int = 10
    rate_limit_window_seconds: int = 3600
    max_analyses_per_day: int = 0

    @property
    def is_configured(self) -> bool:
        return bool(
            self.anthropic_api_key1 or self.anthropic_api_key2 or self.openai_api_key
        )

    def to_config_dict(self) -> dict[str, Any]:
        """Canonical config dict for :func:`red_flag_radar.config.parse_config`.

        Provider order is the failover order: both Anthropic keys, then
        OpenAI.
        """
        timeout = self.provider_timeout_seconds
        return {
            "providers": [
                {
                    "provider": "anthropic",
                    "name": "anthropic-primary",
                    "api_key": self.anthropic_api_key1,
                    "model": self.anthropic_model,
                    "timeout": timeout,
                },
                {
                    "provider": "anthropic",
                    "name": "anthropic-secondary",
                    "api_key": self.anthropic_api_key2,
                    "model": self.anthropic_model,
                    "timeout": timeout,
                },
                {
                    "provider": "openai",
                    "name": "openai",
                    "api_key": self.openai_api_key,
                    "model": self.openai_model,
                    "timeout": timeout,
                },
            ],
            "store": {"provider": "memory", "config": {}},
            "rate_limit": {
                "max_requests": self.rate_limit_max_requests,
                "window_seconds": self.rate_limit_window_seconds,
            },
            "limits": {
                "request_timeout": self.request_timeout_seconds,
                "daily_cap": self.max_analyses_per_day,
            },
        }


def load_settings() -> Settings:
    """Load settings from disk, falling back to defaults + env overrides."""
    path = _config_path()
    cfg = Settings()

    if path.exists():
        with open(path, "rb") as f:
            data = tomllib.load(f)
        anthropic_section = data.get("anthropic", {})
        openai_section = data.get("openai", {})
        limits_section = data.get("limits", {})

        cfg.anthropic_api_key1 = anthropic_section.get(
            "api_key1", cfg.anthropic_api_key1
        )
        cfg.anthropic_api_key2 = anthropic_section.get(
            "api_key2", cfg.anthropic_api_key2
        )
        cfg.anthropic_model = anthropic_section.get("model", cfg.anthropic_model)
        cfg.openai_api_key = openai_section.get("api_key", cfg.openai_api_key)
        cfg.openai_model = openai_section.get("model", cfg.openai_model)

        cfg.provider_timeout_seconds = float(
            limits_section.get("provider_timeout", cfg.provider_timeout_seconds)
        )
        cfg.request_timeout_seconds = float(
            limits_section.get("request_timeout", cfg.request_timeout_seconds)
        )
        cfg.rate_limit_max_requests = int(
            limits_section.get("rate_limit", cfg.rate_limit_max_requests)
        )
        cfg.rate_limit_window_seconds = int(
            limits_section.get("rate_window", cfg.rate_limit_window_seconds)
        )
        cfg.max_analyses_per_day = int(
            limits_section.get("daily_cap", cfg.max_analyses_per_day)
        )

    # Environment variables always take precedence
    env = os.environ
    cfg.anthropic_api_key1 = env.get("ANTHROPIC_API_KEY1", cfg.anthropic_api_key1)
    cfg.anthropic_api_key2 = env.get("ANTHROPIC_API_KEY2", cfg.anthropic_api_key2)
    cfg.anthropic_model = env.get("ANTHROPIC_MODEL", cfg.anthropic_model)
    cfg.openai_api_key = env.get("OPENAI_API_KEY", cfg.openai_api_key)
    cfg.openai_model = env.get("OPENAI_MODEL", cfg.openai_model)
    cfg.provider_timeout_seconds = float(
        env.get("RED_FLAG_RADAR_PROVIDER_TIMEOUT", str(cfg.provider_timeout_seconds))
    )
    cfg.request_timeout_seconds = float(
        env.get("RED_FLAG_RADAR_REQUEST_TIMEOUT", str(cfg.request_timeout_seconds))
    )
    cfg.rate_limit_max_requests = int(
        env.get("RED_FLAG_RADAR_RATE_LIMIT", str(cfg.rate_limit_max_requests))
    )
    cfg.rate_limit_window_seconds = int(
        env.get("RED_FLAG_RADAR_RATE_WINDOW", str(cfg.rate_limit_window_seconds))
    )
    cfg.max_analyses_per_day = int(
        env.get("RED_FLAG_RADAR_DAILY_CAP", str(cfg.max_analyses_per_day))
    )

    return cfg


def save_settings(cfg: Settings) -> Path:
    """Write settings to the TOML file. Returns the path written."""
    path = _config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = [
        "[anthropic]",
        f'api_key1 = "{cfg.anthropic_api_key1}"',
        f'api_key2 = "{cfg.anthropic_api_key2}"',
        f'model = "{cfg.anthropic_model}"',
        "",
        "[openai]",
        f'api_key = "{cfg.openai_api_key}"',
        f'model = "{cfg.openai_model}"',
        "",
        "[limits]",
        f"provider_timeout = {cfg.provider_timeout_seconds}",
        f"request_timeout = {cfg.request_timeout_seconds}",
        f"rate_limit = {cfg.rate_limit_max_requests}",
        f"rate_window = {cfg.rate_limit_window_seconds}",
        f"daily_cap = {cfg.max_analyses_per_day}",
        "",
    ]

    path.write_text("\n".join(lines), encoding="utf-8")
    return path


def settings_exist() -> bool:
    return _config_path().exists()


def settings_path_display() -> str:
    return str(_config_path())
