from __future__ import annotations

import json
from enum import Enum
from typing import Any

from .types import BrainstormingItem

NO_LONG_DASH_RULE = (
    "STRICT RULE: DO NOT USE the long dash character '—'. Use standard hyphens '-' instead."
)

SYNTHESIS_FIELDS = (
    "proposedTitle",
    "problemStatement",
    "researchGap",
    "researchQuestion",
    "methodology",
    "population",
    "keywords",
    "pillars",
)


class RefineMode(str, Enum):
    REWRITE = "REWRITE"
    EXPAND = "EXPAND"


def translate_prompt(text: str, target_lang: str) -> str:
    return (
        f"TRANSLATE THE FOLLOWING TEXT TO {target_lang}.\n"
        "REQUIREMENTS:\n"
        "1. Maintain academic tone and nuance.\n"
        "2. Preserve any HTML tags if present (e.g. <b>, <i>).\n"
        "3. RETURN ONLY THE TRANSLATED TEXT. NO CONVERSATIONAL FILLER.\n\n"
        f'TEXT:\n"{text}"'
    )


def refine_context(
    *,
    title: str,
    problem: str,
    gap: str,
    question: str,
    methodology: str,
    population: str,
) -> dict[str, str]:
    return {
        "title": title,
        "problem": problem,
        "gap": gap,
        "question": question,
        "methodology": methodology,
        "population": population,
    }


def refine_prompt(
    field_name: str,
    current_value: str,
    context: dict[str, str],
    mode: RefineMode,
) -> str:
    if mode is RefineMode.REWRITE:
        instruction = (
            f"Please REWRITE the '{field_name}' field. Make it more academic, concise, "
            "and scientifically aligned with the Research Question."
        )
    else:
        instruction = (
            f"Please EXPAND the '{field_name}' field. Add detail, depth, and rigorous academic "
            "nuance. CRITICAL: Ensure it is consistent with the Research Question and Problem "
            "Statement."
        )
    return (
        "ACT AS A SENIOR RESEARCH CO-PILOT.\n"
        "Based on the full project context below, perform the following action on the "
        "specific field.\n\n"
        f"CONTEXT JSON:\n{json.dumps(context, ensure_ascii=False)}\n\n"
        f'TARGET FIELD: "{field_name}"\n'
        f'CURRENT VALUE: "{current_value}"\n'
        f"ACTION: {mode.value}\n\n"
        f"INSTRUCTION: {instruction}\n\n"
        "--- RULES ---\n"
        "1. RETURN ONLY THE NEW TEXT STRING for the field. NO CONVERSATION. NO JSON.\n"
        "2. STRICTLY DO NOT USE Markdown symbols like **, #, or -. Use standard text or "
        "HTML <b> if strictly necessary for emphasis.\n"
        "3. LANGUAGE: English (Academic)."
    )


def synthesis_prompt(rough_idea: str) -> str:
    return (
        "ACT AS A SENIOR RESEARCH STRATEGIST.\n"
        "TRANSFORM THE FOLLOWING ROUGH IDEA INTO A STRUCTURED RESEARCH FRAMEWORK.\n\n"
        f'ROUGH IDEA:\n"{rough_idea}"\n\n'
        "--- REQUIREMENTS ---\n"
        "1. RESPONSE MUST BE RAW JSON ONLY.\n"
        "2. LANGUAGE: ENGLISH BY DEFAULT.\n"
        f"3. {NO_LONG_DASH_RULE}\n"
        "4. FIELDS TO FILL:\n"
        "   - proposedTitle: High-impact academic title.\n"
        "   - problemStatement: Concise justification of the study.\n"
        "   - researchGap: What previous studies missed.\n"
        "   - researchQuestion: Primary investigation question.\n"
        "   - methodology: Proposed technical approach.\n"
        "   - population: Targeted subjects or data sources.\n"
        "   - keywords: Array of 5 core academic keywords.\n"
        "   - pillars: Array of EXACTLY 10 main discussion pillars for the paper.\n\n"
        "EXPECTED JSON STRUCTURE:\n"
        '{"proposedTitle": "...", "problemStatement": "...", "researchGap": "...", '
        '"researchQuestion": "...", "methodology": "...", "population": "...", '
        '"keywords": ["..."], "pillars": ["..."]}'
    )


def abstract_prompt(item: BrainstormingItem) -> str:
    return (
        "ACT AS A SENIOR ACADEMIC WRITER.\n"
        "COMPOSE A FORMAL ACADEMIC ABSTRACT BASED ON THESE RESEARCH ELEMENTS:\n\n"
        f"TITLE: {item.proposed_title}\n"
        f"PROBLEM: {item.problem_statement}\n"
        f"GAP: {item.research_gap}\n"
        f"QUESTION: {item.research_question}\n"
        f"METHODOLOGY: {item.methodology}\n"
        f"PILLARS: {', '.join(item.pillars)}\n\n"
        "--- RULES ---\n"
        "- NO CONVERSATION. ONLY TEXT.\n"
        "- USE ACADEMIC TONE.\n"
        "- MAX 250 WORDS.\n"
        f"- {NO_LONG_DASH_RULE}\n"
        "- RETURN PLAIN STRING."
    )


def gap_analysis_prompt(snippet: str, title: str) -> str:
    return (
        "ACT AS A SYSTEMATIC REVIEW ANALYST.\n"
        f'ANALYSE THE FOLLOWING EXCERPT FROM THE SOURCE "{title}".\n\n'
        f"EXCERPT:\n{snippet}\n\n"
        "--- REQUIREMENTS ---\n"
        "1. RESPONSE MUST BE RAW JSON ONLY.\n"
        f"2. {NO_LONG_DASH_RULE}\n"
        "3. FIELDS:\n"
        "   - findings: Key findings of the source.\n"
        "   - methodology: Study design and methods used.\n"
        "   - limitations: Weaknesses or open gaps the source leaves.\n\n"
        'EXPECTED JSON STRUCTURE:\n{"findings": "...", "methodology": "...", "limitations": "..."}'
    )


def extract_json_object(text: str | None) -> dict[str, Any] | None:
    if not text:
        return None
    cleaned = text.strip()
    if "{" in cleaned:
        cleaned = cleaned[cleaned.index("{") : cleaned.rfind("}") + 1]
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None
