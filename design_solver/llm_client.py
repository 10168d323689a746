"""Model collaborator: ``generate(prompt, shape_hint=None) -> text``."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Optional, Protocol, runtime_checkable

from openai import (
    APIConnectionError,
    AsyncOpenAI,
    InternalServerError,
    RateLimitError,
)

import config.feature_flags as ff
from core.prompts import example_payload
from utils.config import SolverSettings
from utils.errors import TransientCallError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are one specialist in a multi-agent product design studio. "
    "Answer only with what the task asks for."
)


@runtime_checkable
class ModelClient(Protocol):
    async def generate(self, prompt: str, shape_hint: dict[str, Any] | None = None) -> str:
        ...


def extract_text(resp: Any) -> Optional[str]:
    """Return the main text content of a Chat Completions response."""
    if resp is None:
        return None
    try:
        choice = resp.choices[0]
    except (AttributeError, IndexError, TypeError):
        return None
    return getattr(getattr(choice, "message", None), "content", None) or getattr(choice, "text", None)


class OpenAIModel:
    """Async OpenAI chat model; JSON mode is requested when a shape hint is given."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        *,
        temperature: float = 0.7,
        timeout: float = 60.0,
        api_key: str | None = None,
        client: Any = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self.client = client or AsyncOpenAI(api_key=api_key or os.getenv("OPENAI_API_KEY"))

    async def generate(self, prompt: str, shape_hint: dict[str, Any] | None = None) -> str:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        params: dict[str, Any] = {}
        if shape_hint is not None:
            params["response_format"] = {"type": "json_object"}
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                timeout=self.timeout,
                **params,
            )
        except (APIConnectionError, RateLimitError, InternalServerError) as e:
            raise TransientCallError(f"{type(e).__name__}: {e}") from e
        text = extract_text(resp)
        if not text or not text.strip():
            raise TransientCallError("empty model response")
        logger.debug("generate model=%s chars=%d json=%s", self.model, len(text), shape_hint is not None)
        return text


class DryRunModel:
    """Offline model producing deterministic output from the shape hint."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def generate(self, prompt: str, shape_hint: dict[str, Any] | None = None) -> str:
        self.calls.append(prompt)
        head = prompt.strip().splitlines()[0][:120] if prompt.strip() else "ok"
        if shape_hint is None:
            return (
                "<!DOCTYPE html><html><head><title>Dry run prototype</title>"
                '<script src="https://cdn.tailwindcss.com"></script></head>'
                f'<body class="p-8"><h1 class="text-2xl">[DRY_RUN]</h1><p>{head}</p></body></html>'
            )
        payload = example_payload(shape_hint)
        if isinstance(payload, dict) and "summary" in payload:
            payload["summary"] = f"[DRY_RUN] {head}"
        return json.dumps(payload, ensure_ascii=False)


def get_model(settings: SolverSettings | None = None, *, dry_run: bool | None = None) -> ModelClient:
    """Return the configured model client.

    The dry-run client is used when requested, when ``DRY_RUN=true`` or when
    no ``OPENAI_API_KEY`` is set.
    """
    settings = settings or SolverSettings.from_config()
    if dry_run is None:
        dry_run = ff.DRY_RUN or not os.getenv("OPENAI_API_KEY")
    if dry_run:
        logger.info("model=dry-run")
        return DryRunModel()
    return OpenAIModel(
        settings.model_name,
        temperature=settings.temperature,
        timeout=settings.timeout_s,
    )


__all__ = ["ModelClient", "OpenAIModel", "DryRunModel", "extract_text", "get_model"]
