from __future__ import annotations

import json
import re
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from red_flag_radar.core.exceptions import MalformedProviderJSONError

T = TypeVar("T", bound=BaseModel)

_OPENING_FENCE = re.compile(r"^```(?:json)?[ \t]*\n?", re.I)
_CLOSING_FENCE = re.compile(r"\n?```$")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence, if present."""
    body = text.strip()
    body = _OPENING_FENCE.sub("", body, count=1)
    body = _CLOSING_FENCE.sub("", body, count=1)
    return body.strip()


def decode_response(
    provider: str,
    text: str,
    schema: type[T],
    *,
    context: dict[str, Any] | None = None,
) -> T:
    """Parse a provider's raw body into *schema*.

    Raises :class:`MalformedProviderJSONError` when the body is not a JSON
    object or does not validate.
    """
    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as exc:
        raise MalformedProviderJSONError(provider, f"Invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedProviderJSONError(
            provider, f"Expected a JSON object, got {type(data).__name__}"
        )
    try:
        return schema.model_validate(data, context=context)
    except ValidationError as exc:
        raise MalformedProviderJSONError(provider, str(exc)) from exc
