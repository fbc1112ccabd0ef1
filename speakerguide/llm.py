"""Generation backends: the capability the pipeline calls to turn a prompt into raw model text."""
from __future__ import annotations

import math
import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import requests

from .errors import (
    AuthenticationMissing,
    MalformedResponseError,
    QuotaExceeded,
    RateLimited,
    UpstreamUnavailable,
)
from .logging_utils import get_logger
from .pipeline_request import GuideRequest

logger = get_logger("llm")

DEFAULT_API_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"
DEFAULT_MODEL = "google/gemini-2.5-flash"
DEFAULT_TIMEOUT = 60.0


@dataclass
class LLMConfig:
    api_key: str = ""
    api_url: str = DEFAULT_API_URL
    model: str = DEFAULT_MODEL
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, **overrides: Any) -> "LLMConfig":
        """Build a config from SPEAKERGUIDE_* environment variables; non-empty overrides win."""
        timeout_raw = os.environ.get("SPEAKERGUIDE_TIMEOUT", "")
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT
        except ValueError:
            logger.warning("Ignoring invalid SPEAKERGUIDE_TIMEOUT=%r", timeout_raw)
            timeout = DEFAULT_TIMEOUT
        cfg = cls(
            api_key=os.environ.get("SPEAKERGUIDE_API_KEY") or os.environ.get("LOVABLE_API_KEY", ""),
            api_url=os.environ.get("SPEAKERGUIDE_API_URL") or DEFAULT_API_URL,
            model=os.environ.get("SPEAKERGUIDE_MODEL") or DEFAULT_MODEL,
            timeout=timeout,
        )
        for key, value in overrides.items():
            if value not in (None, ""):
                setattr(cfg, key, value)
        return cfg


class GenerationBackend(ABC):
    """Anything that can answer a GuideRequest with raw completion text.

    Implementations raise TransportError subclasses on failure and never retry.
    """

    @abstractmethod
    def generate(self, request: GuideRequest) -> str:
        raise NotImplementedError


def _retry_after_seconds(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    if not math.isfinite(seconds):
        return None
    return max(0.0, seconds)


def extract_completion(data: Any) -> str:
    """Pull choices[0].message.content out of a chat-completions body."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        raise MalformedResponseError("No content in AI response.")
    if isinstance(content, list):
        # some providers return a list of content parts
        content = "".join(part.get("text", "") for part in content if isinstance(part, dict))
    if not isinstance(content, str) or not content.strip():
        raise MalformedResponseError("No content in AI response.")
    return content


class ChatCompletionsClient(GenerationBackend):
    """OpenAI-compatible chat-completions endpoint over requests."""

    def __init__(self, config: LLMConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self._session = session or requests.Session()

    def generate(self, request: GuideRequest) -> str:
        if not self.config.api_key:
            raise AuthenticationMissing()

        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        payload = {"model": self.config.model, "messages": request.messages()}

        logger.info("Requesting guides for %d slides from %s", request.slide_count, self.config.model)
        started = time.monotonic()
        try:
            r = self._session.post(self.config.api_url, headers=headers, json=payload, timeout=self.config.timeout)
        except requests.Timeout as exc:
            logger.error("Generation request timed out after %.0fs", self.config.timeout)
            raise UpstreamUnavailable(reason="request timed out") from exc
        except requests.RequestException as exc:
            logger.error("Generation request failed: %s", type(exc).__name__)
            raise UpstreamUnavailable(reason="connection failed") from exc
        elapsed = time.monotonic() - started

        if r.status_code == 429:
            logger.warning("Generation rate limited (429) after %.1fs", elapsed)
            raise RateLimited(retry_after=_retry_after_seconds(r.headers.get("Retry-After")))
        if r.status_code == 402:
            logger.warning("Generation usage limit reached (402)")
            raise QuotaExceeded()
        if not 200 <= r.status_code < 300:
            logger.error("Generation gateway error: %s", r.status_code)
            logger.debug("Gateway error body: %s", (r.text or "")[:500])
            raise UpstreamUnavailable(status_code=r.status_code)

        try:
            data = r.json()
        except ValueError as exc:
            raise MalformedResponseError("Generation response was not valid JSON.") from exc
        content = extract_completion(data)
        logger.info("Generation response received in %.1fs (%d chars)", elapsed, len(content))
        return content


def init_llm(config: LLMConfig) -> GenerationBackend:
    return ChatCompletionsClient(config)
