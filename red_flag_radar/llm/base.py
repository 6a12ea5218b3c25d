from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from red_flag_radar.core.types import RadarModel

DEFAULT_MAX_TOKENS = 4000
DEFAULT_TEMPERATURE = 0.7


@dataclass
class PromptItem:
    """A single reasoning request.

    Attributes:
        item_id:       Label used in logs (``chat_analysis``, ``comparison``).
        prompt:        The user-turn text.
        system_prompt: Instructions sent as the system turn.
        max_tokens:    Upper bound on the completion length.
        temperature:   Sampling temperature.
    """

    item_id: str
    prompt: str
    system_prompt: str
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE


class ProviderUsage(RadarModel):
    """What one successful provider call cost."""

    provider: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    response_time_ms: int = 0
    request_size_bytes: int = 0
    response_size_bytes: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass
class ProviderReply:
    text: str
    usage: ProviderUsage


class ReasoningProvider(ABC):
    """One externally hosted reasoning endpoint in the failover chain.

    Implementations make exactly one call per :meth:`attempt` and raise
    :class:`~red_flag_radar.core.exceptions.ProviderCallFailedError` for
    any failure.
    """

    name: str
    model: str

    @abstractmethod
    async def attempt(self, item: PromptItem) -> ProviderReply:
        """Send *item* once and return the raw text body."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, model={self.model!r})"
