from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from red_flag_radar.llm.base import ReasoningProvider
from red_flag_radar.ratelimit import InMemoryRateLimiter, RateLimiter
from red_flag_radar.store.base import AnalysisStore

T = TypeVar("T")

logger = logging.getLogger(__name__)


class _Registry(Generic[T]):
    """Lazily-populated factory registry.

    Each backend module registers itself via :meth:`register`.
    :meth:`build` resolves a provider name to a factory, calling
    ``factory.from_config(config)`` if available, otherwise
    ``factory(**config)``.
    """

    def __init__(self, label: str) -> None:
        self._label = label
        self._factories: dict[str, type[T]] = {}
        self._defaults_loaded = False

    def register(self, name: str, cls: type[T]) -> None:
        self._factories[name] = cls

    def available(self) -> list[str]:
        self._ensure_defaults()
        return list(self._factories)

    def build(self, provider: str, config: dict[str, Any]) -> T:
        self._ensure_defaults()
        factory = self._factories.get(provider)
        if factory is None:
            raise ValueError(
                f"Unknown {self._label} provider '{provider}'. "
                f"Available: {list(self._factories)}"
            )
        if hasattr(factory, "from_config"):
            return factory.from_config(config)  # type: ignore[return-value]
        return factory(**config)  # type: ignore[return-value]

    def _ensure_defaults(self) -> None:
        if not self._defaults_loaded:
            self._load_defaults()
            self._defaults_loaded = True

    def _load_defaults(self) -> None:
        """Override point -- subclasses populate built-in factories here."""


class _ProviderRegistry(_Registry[ReasoningProvider]):
    def _load_defaults(self) -> None:
        from red_flag_radar.llm.litellm import AnthropicProvider, OpenAIProvider

        self.register("anthropic", AnthropicProvider)
        self.register("openai", OpenAIProvider)


class _StoreRegistry(_Registry[AnalysisStore]):
    def _load_defaults(self) -> None:
        from red_flag_radar.store.memory import InMemoryAnalysisStore

        self.register("memory", InMemoryAnalysisStore)


# Singleton instances
provider_registry = _ProviderRegistry("reasoning")
store_registry = _StoreRegistry("store")


@dataclass
class RadarConfig:
    providers: list[ReasoningProvider]
    store: AnalysisStore
    rate_limiter: RateLimiter | None = None
    request_timeout: float | None = None
    daily_cap: int = 0


def build_providers(entries: list[dict[str, Any]]) -> list[ReasoningProvider]:
    """Instantiate providers in list order, skipping entries with no API key."""
    providers: list[ReasoningProvider] = []
    for entry in entries:
        kind = entry.get("provider")
        if not kind:
            raise ValueError(f"Provider entry is missing 'provider': {entry!r}")
        options = {k: v for k, v in entry.items() if k != "provider"}
        if not options.get("api_key"):
            logger.info(
                "Skipping %s provider %s: no API key",
                kind,
                options.get("name", kind),
            )
            continue
        providers.append(provider_registry.build(kind, options))
    return providers


def parse_config(config: dict[str, Any]) -> RadarConfig:
    """Parse a user config dict into the runtime components.

    Expected shape::

        {
            "providers": [
                {"provider": "anthropic", "name": "anthropic-primary",
                 "api_key": "sk-ant-...", "model": "claude-3-5-sonnet-20240620"},
                {"provider": "openai", "api_key": "sk-..."},
            ],
            "store": {"provider": "memory", "config": {}},
            "rate_limit": {"max_requests": 10, "window_seconds": 3600},
            "limits": {"request_timeout": 300, "daily_cap": 0},
        }

    ``providers`` is required and its order is the failover order.
    Without ``store`` the store is in-memory; without ``rate_limit`` there
    is no in-process throttle.
    """
    provider_entries = config.get("providers")
    if provider_entries is None:
        raise ValueError(
            "Missing 'providers' config section. "
            'Provide at least {"providers": [{"provider": "anthropic", '
            '"api_key": "sk-ant-..."}]}.'
        )

    store_cfg = config.get("store") or {}
    store = store_registry.build(
        store_cfg.get("provider", "memory"),
        store_cfg.get("config", {}),
    )

    rate_limiter: RateLimiter | None = None
    rate_cfg = config.get("rate_limit")
    if rate_cfg:
        rate_limiter = InMemoryRateLimiter(
            max_requests=int(rate_cfg["max_requests"]),
            window_seconds=float(rate_cfg["window_seconds"]),
        )

    limits = config.get("limits") or {}
    request_timeout = limits.get("request_timeout")

    return RadarConfig(
        providers=build_providers(list(provider_entries)),
        store=store,
        rate_limiter=rate_limiter,
        request_timeout=float(request_timeout) if request_timeout else None,
        daily_cap=int(limits.get("daily_cap", 0)),
    )
