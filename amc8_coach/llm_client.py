"""Chat-model wrapper for the optional online question author and advisor.

Exposes a callable runner ``(agent_name, system_prompt, user_prompt) -> str``
plus ``run_stage``, which swaps in a fallback value when the online call
fails. Without credentials ``get_llm_runner`` returns None and callers stay
offline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Callable, List, Optional, Tuple, TypeVar

from .config import Settings, get_settings

T = TypeVar("T")
LLMRun = Callable[[str, str, str], str]

_logger = logging.getLogger("amc8.provider")


def short_error(exc: BaseException, max_len: int = 240) -> str:
    text = " ".join(str(exc).split()) or type(exc).__name__
    if len(text) <= max_len:
        return text
    return f"{text[: max_len - 3].rstrip()}..."


def _as_text(value: Any) -> str:
    """Best-effort extraction of text payloads across SDK response shapes."""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        parts = [_as_text(item) for item in value]
        return "\n".join([p for p in parts if p.strip()])
    if isinstance(value, dict):
        for key in ("content", "text", "output_text", "value"):
            v = value.get(key)
            if isinstance(v, (str, list, dict)):
                text = _as_text(v)
                if text.strip():
                    return text
        return ""
    for attr in ("content", "text", "output_text", "value"):
        v = getattr(value, attr, None)
        if isinstance(v, (str, list, dict)):
            text = _as_text(v)
            if text.strip():
                return text
    return ""


def extract_response_text(response: Any) -> str:
    """Normalize the text of a chat completion response."""
    choices = getattr(response, "choices", None)
    if choices is None and isinstance(response, dict):
        choices = response.get("choices")
    if isinstance(choices, list) and choices:
        first = choices[0]
        message = (
            first.get("message") if isinstance(first, dict)
            else getattr(first, "message", None)
        )
        text = _as_text(message)
        if text.strip():
            return text

    text = _as_text(response)
    if text.strip():
        return text
    raise ValueError("Model response contained no text.")


@dataclass
class LLMRunner:
    """Callable wrapper around an OpenAI-compatible chat client."""

    client: Any
    model: str

    def __call__(self, agent_name: str, system_prompt: str, user_prompt: str) -> str:
        started = perf_counter()
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": f"Agent: {agent_name}\n\n{user_prompt}"},
            ],
            response_format={"type": "json_object"},
        )
        _logger.info(
            "llm_call_completed",
            extra={
                "event": "llm_call_completed",
                "agent": agent_name,
                "model": self.model,
                "latency_ms": round((perf_counter() - started) * 1000, 2),
            },
        )
        return extract_response_text(response)


def _build_client(settings: Settings) -> Tuple[Any, str]:
    if settings.azure_openai_endpoint and settings.azure_openai_deployment:
        from openai import AzureOpenAI

        client = AzureOpenAI(
            azure_endpoint=settings.azure_openai_endpoint,
            api_key=settings.azure_openai_api_key,
            api_version=settings.azure_openai_api_version,
        )
        return client, settings.azure_openai_deployment

    from openai import OpenAI

    return OpenAI(api_key=settings.openai_api_key), settings.openai_model


def get_llm_runner(settings: Optional[Settings] = None) -> Optional[LLMRunner]:
    """Return a runner when credentials are configured, otherwise None."""
    settings = settings or get_settings()
    if not settings.online_configured:
        _logger.info(
            "llm_offline",
            extra={"event": "llm_offline", "reason": "no credentials configured"},
        )
        return None
    try:
        client, model = _build_client(settings)
    except Exception as exc:
        _logger.warning(
            "llm_init_failed",
            extra={"event": "llm_init_failed", "error": short_error(exc)},
        )
        return None
    return LLMRunner(client=client, model=model)


def run_stage(
    stage_name: str,
    run_online: Callable[[], T],
    fallback: Callable[[], T],
    warnings: Optional[List[str]] = None,
) -> Tuple[T, bool]:
    """Run ``run_online``; on any failure log it and return ``fallback()``.

    Returns (value, used_fallback).
    """
    try:
        return run_online(), False
    except Exception as exc:
        reason = short_error(exc)
        _logger.warning(
            "provider_fallback",
            extra={"event": "provider_fallback", "stage": stage_name, "error": reason},
        )
        if warnings is not None:
            warnings.append(f"{stage_name} failed online; used fallback. ({reason})")
        return fallback(), True
