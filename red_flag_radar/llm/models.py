from enum import StrEnum


class AnthropicModel(StrEnum):
    CLAUDE_35_SONNET = "anthropic/claude-3-5-sonnet-20240620"
    CLAUDE_35_HAIKU = "anthropic/claude-3-5-haiku-20241022"
    CLAUDE_3_OPUS = "anthropic/claude-3-opus-20240229"
    CLAUDE_SONNET_4 = "anthropic/claude-sonnet-4-20250514"


class OpenAIModel(StrEnum):
    GPT_4O = "openai/gpt-4o"
    GPT_4O_MINI = "openai/gpt-4o-mini"
    GPT_4_TURBO = "openai/gpt-4-turbo"
    GPT_4_1 = "openai/gpt-4.1"


DEFAULT_ANTHROPIC_MODEL = AnthropicModel.CLAUDE_35_SONNET
DEFAULT_OPENAI_MODEL = OpenAIModel.GPT_4O


def qualify_model(model: str, vendor: str) -> str:
    """Prefix a bare model name with its litellm vendor route."""
    model = str(model)
    if "/" in model:
        return model
    return f"{vendor}/{model}"
