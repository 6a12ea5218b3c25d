from red_flag_radar.llm.base import (
    PromptItem,
    ProviderReply,
    ProviderUsage,
    ReasoningProvider,
)
from red_flag_radar.llm.litellm import (
    AnthropicProvider,
    LiteLLMProvider,
    OpenAIProvider,
)
from red_flag_radar.llm.models import AnthropicModel, OpenAIModel

__all__ = [
    "AnthropicModel",
    "AnthropicProvider",
    "LiteLLMProvider",
    "OpenAIModel",
    "OpenAIProvider",
    "PromptItem",
    "ProviderReply",
    "ProviderUsage",
    "ReasoningProvider",
]
