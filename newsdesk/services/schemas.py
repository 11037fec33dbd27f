from __future__ import annotations
from typing import Dict, Any

# JSON Schemas for every structured LLM reply the pipeline consumes.
# Replies are validated against these before anything is persisted.

KEYWORDS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "keywords": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["keywords"],
    "additionalProperties": False,
}

RELEVANCY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "is_relevant": {"type": "boolean"},
        "reason": {"type": "string"},
    },
    "required": ["is_relevant", "reason"],
    "additionalProperties": False,
}

RANKING_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "category": {"type": "string"},
        "score": {"type": "number", "description": "Fit score from 1 (poor) to 10 (must read)."},
        "tier": {"type": "string", "enum": ["Essential", "Important", "Optional"]},
        "key_findings": {"type": "array", "items": {"type": "string"}},
        "key_entities": {"type": "array", "items": {"type": "string"}},
        "rationale": {"type": "string"},
        "suggested_header": {"type": "string"},
    },
    "required": ["category", "score", "tier", "key_findings", "key_entities", "rationale", "suggested_header"],
    "additionalProperties": False,
}

SUMMARY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "summary_text": {"type": "string"},
        "why_it_matters": {"type": "array", "items": {"type": "string"}},
        "implications": {"type": "string"},
    },
    "required": ["summary_text", "why_it_matters"],
    "additionalProperties": False,
}
