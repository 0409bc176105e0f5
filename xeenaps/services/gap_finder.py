from __future__ import annotations

import logging

from ..ai import AiClient
from ..prompts import extract_json_object, gap_analysis_prompt
from ..storage import StorageClient
from ..types import LibraryItem

logger = logging.getLogger(__name__)

SNIPPET_MAX_CHARS = 7500
ANALYSIS_KEYS = ("findings", "methodology", "limitations")


class GapFinder:
    """Reads a library source and asks the model what it found, how, and what it missed."""

    def __init__(self, storage: StorageClient, ai: AiClient) -> None:
        self.storage = storage
        self.ai = ai

    def fetch_snippet(self, item: LibraryItem) -> str | None:
        text = ""
        if item.extracted_json_id:
            content = self.storage.fetch_file_content(
                item.extracted_json_id, item.storage_node_url or None
            )
            if content:
                text = str(content.get("fullText") or content.get("text") or "")
        if not text.strip():
            text = item.abstract or ""
        text = text.strip()
        if not text:
            return None
        return text[:SNIPPET_MAX_CHARS]

    def analyze_source(self, snippet: str, title: str) -> dict[str, str] | None:
        data = extract_json_object(self.ai.generate(gap_analysis_prompt(snippet, title)))
        if data is None:
            logger.warning("gap analysis returned no json object", extra={"source_title": title})
            return None
        return {key: str(data.get(key) or "") for key in ANALYSIS_KEYS}
