from __future__ import annotations

import json
import logging
import time
from typing import Any

import litellm

from red_flag_radar.core.exceptions import ProviderCallFailedError
from red_flag_radar.llm.base import (
    PromptItem,
    ProviderReply,
    ProviderUsage,
    ReasoningProvider,
)
from red_flag_radar.llm.models import (
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_OPENAI_MODEL,
    qualify_model,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 90.0


def _build_messages(item: PromptItem) -> list[dict[str, Any]]:
    return [
        {"role": "system", "content": item.system_prompt},
        {"role": "user", "content": item.prompt},
    ]


def _usage_tokens(response: Any) -> tuple[int, int]:
    usage = getattr(response, "usage", None)
    if usage is None:
        return 0, 0
    return (
        int(getattr(usage, "prompt_tokens", 0) or 0),
        int(getattr(usage, "completion_tokens", 0) or 0),
    )


class LiteLLMProvider(ReasoningProvider):
    """A reasoning provider reached through ``litellm.acompletion``.

    *model* is a litellm route such as ``anthropic/claude-3-5-sonnet-20240620``.
    When *json_mode* is set the request asks for a JSON-object response
    format, which only some vendors honour.
    """

    def __init__(
        self,
        name: str,
        model: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        json_mode: bool = False,
    ) -> None:
        self.name = name
        self.model = model
        self._api_key = api_key
        self._timeout = timeout
        self._json_mode = json_mode

    async def attempt(self, item: PromptItem) -> ProviderReply:
        messages = _build_messages(item)
        kwargs: dict[str, Any] = {}
        if self._json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        started = time.perf_counter()
        try:
            response = await litellm.acompletion(
                model=self.model,
                messages=messages,
                api_key=self._api_key,
                max_tokens=item.max_tokens,
                temperature=item.temperature,
                timeout=self._timeout,
                **kwargs,
            )
        except Exception as exc:
            raise ProviderCallFailedError(self.name, str(exc)) from exc
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        try:
            text = response.choices[0].message.content  # type: ignore[union-attr]
        except (AttributeError, IndexError) as exc:
            raise ProviderCallFailedError(self.name, "Malformed response") from exc
        if not text:
            raise ProviderCallFailedError(self.name, "Empty response")

        input_tokens, output_tokens = _usage_tokens(response)
        usage = ProviderUsage(
            provider=self.name,
            model=self.model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            response_time_ms=elapsed_ms,
            request_size_bytes=len(json.dumps(messages).encode("utf-8")),
            response_size_bytes=len(text.encode("utf-8")),
        )
        logger.info(
            "[%s] %s answered in %dms (%d in / %d out tokens)",
            item.item_id,
            self.name,
            elapsed_ms,
            input_tokens,
            output_tokens,
        )
        return ProviderReply(text=text.strip(), usage=usage)


class AnthropicProvider(LiteLLMProvider):
    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_ANTHROPIC_MODEL,
        name: str = "anthropic",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(
            name=name,
            model=qualify_model(model, "anthropic"),
            api_key=api_key,
            timeout=timeout,
        )


class OpenAIProvider(LiteLLMProvider):
    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_OPENAI_MODEL,
        name: str = "openai",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(
            name=name,
            model=qualify_model(model, "openai"),
            api_key=api_key,
            timeout=timeout,
            json_mode=True,
        )
