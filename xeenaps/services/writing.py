from __future__ import annotations

import logging

from ..ai import AiClient
from ..prompts import RefineMode, refine_prompt, translate_prompt

logger = logging.getLogger(__name__)


class WritingAssistant:
    """Single-field translate / rewrite / expand shared by Tracer and Brainstorming."""

    def __init__(self, ai: AiClient) -> None:
        self.ai = ai

    def translate(self, text: str, target_lang: str) -> str | None:
        if not text:
            return None
        response = self.ai.generate(translate_prompt(text, target_lang))
        if not response:
            logger.warning("translation returned nothing", extra={"target_lang": target_lang})
            return None
        return response.strip()

    def refine(
        self,
        field_name: str,
        current_value: str,
        context: dict[str, str],
        mode: RefineMode | str,
    ) -> str | None:
        mode = RefineMode(mode)
        response = self.ai.generate(refine_prompt(field_name, current_value, context, mode))
        if not response:
            logger.warning(
                "refine returned nothing", extra={"field": field_name, "mode": mode.value}
            )
            return None
        return response.strip()
