from __future__ import annotations

import logging
import os

from .config import XeenapsConfig
from .storage import StorageClient, is_success

DEFAULT_PROXY_MODEL = "gemini"
DEFAULT_OPENAI_MODEL = "gpt-4.1-mini"
DEFAULT_ANTHROPIC_MODEL = "claude-haiku-4-5"
SUPPORTED_PROVIDERS = ("proxy", "openai", "anthropic")

SYSTEM_PROMPT = "You are a research assistant for an academic knowledge base."

logger = logging.getLogger(__name__)


class AiClient:
    """Text generation behind the Co-Pilot, synthesis and gap analysis.

    ``proxy`` sends prompts to the storage endpoint's ``aiProxy`` action, which
    holds the provider keys server side. ``openai`` and ``anthropic`` call the
    vendor SDKs directly with a local key.
    """

    def __init__(self, config: XeenapsConfig, storage: StorageClient | None = None) -> None:
        provider = (config.ai_provider or "proxy").lower()
        if provider not in SUPPORTED_PROVIDERS:
            logger.warning(
                "ai: unknown provider, falling back to proxy", extra={"provider": provider}
            )
            provider = "proxy"
        self.provider = provider
        self.storage = storage
        self.max_chars = config.ai_max_chars
        self.max_tokens = config.ai_max_tokens
        self.api_key = config.ai_api_key
        self.client: object | None = None
        if provider == "proxy":
            self.model = config.ai_model or DEFAULT_PROXY_MODEL
            return
        if provider == "anthropic":
            self.model = config.ai_model or DEFAULT_ANTHROPIC_MODEL
            if not self.api_key:
                self.api_key = os.getenv("ANTHROPIC_API_KEY")
            if not self.api_key:
                logger.warning("ai auth: missing anthropic api key")
                return
            try:
                import anthropic  # type: ignore

                self.client = anthropic.Anthropic(api_key=self.api_key)
            except Exception as exc:  # pragma: no cover
                logger.exception("ai auth: anthropic client init failed", exc_info=exc)
                self.client = None
            return
        self.model = config.ai_model or DEFAULT_OPENAI_MODEL
        if not self.api_key:
            self.api_key = os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            logger.warning("ai auth: missing openai api key")
            return
        try:
            from openai import OpenAI  # type: ignore

            self.client = OpenAI(api_key=self.api_key)
        except Exception as exc:  # pragma: no cover
            logger.exception("ai auth: openai client init failed", exc_info=exc)
            self.client = None

    def generate(self, prompt: str) -> str | None:
        if self.max_chars > 0 and len(prompt) > self.max_chars:
            prompt = prompt[: self.max_chars]
        if self.provider == "proxy":
            return self._call_proxy(prompt)
        if not self.client:
            logger.warning("ai: missing client", extra={"provider": self.provider})
            return None
        try:
            if self.provider == "anthropic":
                resp = self.client.messages.create(  # type: ignore[attr-defined]
                    model=self.model,
                    system=SYSTEM_PROMPT,
                    messages=[{"role": "user", "content": prompt}],
                    max_tokens=self.max_tokens,
                    temperature=0.3,
                )
                return resp.content[0].text
            resp = self.client.chat.completions.create(  # type: ignore[attr-defined]
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.3,
                max_tokens=self.max_tokens,
            )
            return resp.choices[0].message.content
        except Exception as exc:
            logger.exception(
                "ai call failed",
                extra={"provider": self.provider, "model": self.model},
                exc_info=exc,
            )
            return None

    def _call_proxy(self, prompt: str) -> str | None:
        if self.storage is None or not self.storage.configured:
            logger.warning("ai proxy: storage endpoint not configured")
            return None
        result = self.storage.post_action("aiProxy", provider=self.model, prompt=prompt)
        if result is None or not is_success(result):
            logger.warning("ai proxy call failed", extra={"model": self.model})
            return None
        data = result.get("data")
        return data if isinstance(data, str) else None
