"""Completion gateway: provider-agnostic interface plus the OpenAI implementation."""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from .errors import ConfigurationError, MalformedResponseError, ProviderError
from .models.completion import CompletionRequest, CompletionResponse, Usage
from .models.message import Message, TextPart, ToolCallPart, ToolCallRequest

logger = logging.getLogger(__name__)


@runtime_checkable
class CompletionModel(Protocol):
    """Uniform interface to a model provider.

    Implementations issue exactly one provider request per ``complete`` call and
    never retry; retrying is the caller's concern.
    """

    name: str

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Run a single completion. Raises ProviderError / MalformedResponseError."""
        ...


def complete_text(
    model: CompletionModel,
    prompt: str,
    *,
    preamble: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
) -> str:
    """One-shot, tool-free completion returning the response text."""
    request = CompletionRequest(
        messages=[Message.user(prompt)],
        preamble=preamble,
        temperature=temperature,
        max_tokens=max_tokens,
    )
    return model.complete(request).text


# JSON recovery helpers ------------------------------------------------------


def _strip_json_fences(text: str) -> str:
    if not text:
        return text
    # Remove ```json ... ``` or ``` ... ``` fences
    fenced = re.findall(r"```(?:json)?\n([\s\S]*?)```", text)
    if fenced:
        return fenced[0].strip()
    return text.strip()


def _extract_json_fragment(text: str) -> Optional[str]:
    # Find the first balanced {...} or [...] block
    stack = []
    start = None
    for i, ch in enumerate(text):
        if ch in "[{":
            if not stack:
                start = i
            stack.append(ch)
        elif ch in "]}":
            if not stack:
                continue
            stack.pop()
            if not stack and start is not None:
                return text[start : i + 1]
    return None


def parse_tool_arguments(raw: Optional[str], *, tool_name: str = "") -> Dict[str, Any]:
    """Decode serialized tool-call arguments into a dict.

    Empty arguments decode to ``{}``. Fenced or padded JSON is recovered the
    same way structured LLM output is. Anything that is not a JSON object
    raises MalformedResponseError.
    """
    if raw is None or not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        frag = _extract_json_fragment(_strip_json_fences(raw))
        if frag is None:
            raise MalformedResponseError(
                f"Tool call arguments for {tool_name!r} are not valid JSON: {raw[:200]!r}"
            ) from None
        try:
            data = json.loads(frag)
        except json.JSONDecodeError as exc:
            raise MalformedResponseError(
                f"Tool call arguments for {tool_name!r} are not valid JSON: {raw[:200]!r}"
            ) from exc
    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Tool call arguments for {tool_name!r} must be a JSON object, got {type(data).__name__}"
        )
    return data


# OpenAI ---------------------------------------------------------------------


def to_openai_messages(request: CompletionRequest) -> List[Dict[str, Any]]:
    """Convert a CompletionRequest into OpenAI chat-completions messages.

    Role mapping:
        preamble            -> system
        assistant           -> assistant (with optional tool_calls)
        user tool results   -> one ``tool`` message per result
        user text           -> user
    """
    messages: List[Dict[str, Any]] = []
    if request.preamble:
        messages.append({"role": "system", "content": request.preamble})

    for msg in request.messages:
        if msg.role == "assistant":
            entry: Dict[str, Any] = {"role": "assistant", "content": msg.text or None}
            calls = msg.tool_calls
            if calls:
                entry["tool_calls"] = [
                    {
                        "id": tc.id,
                        "type": "function",
                        "function": {
                            "name": tc.name,
                            "arguments": json.dumps(tc.arguments, ensure_ascii=False),
                        },
                    }
                    for tc in calls
                ]
            messages.append(entry)
            continue

        for result in msg.tool_outputs:
            messages.append({
                "role": "tool",
                "tool_call_id": result.call_id,
                "content": result.content_text(),
            })
        if msg.text:
            messages.append({"role": "user", "content": msg.text})
    return messages


class OpenAICompletionModel:
    """CompletionModel backed by the OpenAI chat-completions API.

    Also serves OpenAI-compatible endpoints (Ollama, vLLM) through ``base_url``.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        temperature: Optional[float] = None,
        client: Any = None,
    ):
        self.name = model
        self.temperature = temperature
        if client is not None:
            self._client = client
            return

        from openai import OpenAI

        from .config import OPENAI_API_KEY, REQUEST_TIMEOUT

        key = api_key or OPENAI_API_KEY
        if not key and base_url is None:
            raise ConfigurationError(
                "OPENAI_API_KEY not set. Cannot create OpenAI gateway. "
                "Please set it in .env file or as environment variable."
            )
        # OpenAI-compatible local servers accept any key
        self._client = OpenAI(
            api_key=key or "unused",
            base_url=base_url,
            timeout=timeout if timeout is not None else REQUEST_TIMEOUT,
            max_retries=0,
        )

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        import openai

        kwargs: Dict[str, Any] = {
            "model": self.name,
            "messages": to_openai_messages(request),
        }
        temperature = request.temperature if request.temperature is not None else self.temperature
        if temperature is not None:
            kwargs["temperature"] = temperature
        if request.max_tokens is not None:
            kwargs["max_tokens"] = request.max_tokens
        if request.tools:
            kwargs["tools"] = [t.to_openai_tool() for t in request.tools]
            kwargs["tool_choice"] = "auto"

        logger.debug("completion.request model=%s payload=%s", self.name, kwargs)
        t0 = time.monotonic()
        try:
            response = self._client.chat.completions.create(**kwargs)
        except openai.APIResponseValidationError as exc:
            raise MalformedResponseError(f"OpenAI returned an invalid payload for model={self.name}") from exc
        except openai.APIError as exc:
            raise ProviderError(f"OpenAI completion failed for model={self.name}: {exc}") from exc

        parsed = self._parse_response(response)
        logger.info(
            "completion.end model=%s duration_ms=%d tool_calls=%d",
            self.name,
            int((time.monotonic() - t0) * 1000),
            len(parsed.tool_calls),
            extra={"model": self.name, "tokens": parsed.usage.total_tokens if parsed.usage else None},
        )
        logger.debug("completion.response model=%s payload=%s", self.name, parsed.model_dump_json())
        return parsed

    def _parse_response(self, response: Any) -> CompletionResponse:
        choices = getattr(response, "choices", None)
        if not choices:
            raise MalformedResponseError(f"OpenAI response for model={self.name} has no choices")
        msg = getattr(choices[0], "message", None)
        if msg is None:
            raise MalformedResponseError(f"OpenAI response for model={self.name} has no message")

        parts: List[Any] = []
        text = getattr(msg, "content", None)
        if text:
            parts.append(TextPart(text=str(text)))
        for tc in getattr(msg, "tool_calls", None) or []:
            function = getattr(tc, "function", None)
            name = getattr(function, "name", None)
            if not name:
                raise MalformedResponseError(f"Tool call without a function name from model={self.name}")
            parts.append(ToolCallPart(call=ToolCallRequest(
                id=getattr(tc, "id", None) or f"call_{len(parts)}",
                name=name,
                arguments=parse_tool_arguments(getattr(function, "arguments", None), tool_name=name),
            )))

        usage = None
        raw_usage = getattr(response, "usage", None)
        if raw_usage is not None:
            usage = Usage(
                prompt_tokens=getattr(raw_usage, "prompt_tokens", None),
                completion_tokens=getattr(raw_usage, "completion_tokens", None),
                total_tokens=getattr(raw_usage, "total_tokens", None),
            )
        return CompletionResponse(
            content=tuple(parts),
            model=getattr(response, "model", None) or self.name,
            usage=usage,
        )


__all__ = [
    "CompletionModel",
    "OpenAICompletionModel",
    "complete_text",
    "parse_tool_arguments",
    "to_openai_messages",
]
