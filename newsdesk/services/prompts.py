"""Prompt templates for the AI-assisted phases.

Placeholders use ``{{NAME}}`` and are filled with :func:`fill_template`.
"""

from __future__ import annotations
from typing import Dict

KEYWORDS_SYSTEM = (
    "You generate relevant search keywords for finding articles about a given topic. "
    "Return 5-10 specific, diverse keywords that would help find relevant articles."
)
KEYWORDS_USER = 'Generate search keywords for this newsletter topic: "{{TOPIC}}"'

RELEVANCY_SYSTEM = (
    "You screen candidate articles for a topical newsletter. Decide whether the article "
    "is substantively about the newsletter topic or its keywords. Passing mentions, "
    "job ads, event listings and site chrome are not relevant. Reply with JSON only."
)
RELEVANCY_USER = """Newsletter topic: {{TOPIC}}
Keywords: {{KEYWORDS}}

Article title: {{TITLE}}
Article content (truncated):
{{CONTENT_PREVIEW}}
"""

RANKING_SYSTEM = (
    "You are the editor of a topical newsletter. Rank the article for inclusion. "
    "Score its fit from 1 (poor) to 10 (must read) and assign a tier: Essential, "
    "Important or Optional. List the key findings and the key entities (people, "
    "companies, products) it mentions, give a one-paragraph rationale and suggest "
    "a short section header. Reply with JSON only."
)
RANKING_USER = """Newsletter topic: {{TOPIC}}

Title: {{TITLE}}
Domain: {{DOMAIN}}
URL: {{URL}}
Word count: {{WORD_COUNT}}

Content (truncated):
{{CONTENT}}
"""

SUMMARY_SYSTEM = (
    "You write concise newsletter summaries. Summarise the article in 2-4 sentences, "
    "list 2-4 bullet points on why it matters to readers following the topic, and "
    "optionally note wider implications. Reply with JSON only."
)
SUMMARY_USER = """Newsletter topic: {{TOPIC}}
Editorial tier: {{TIER}} (score {{SCORE}})

Title: {{TITLE}}
Content (truncated):
{{CONTENT}}
"""

def fill_template(template: str, values: Dict[str, str]) -> str:
    out = template
    for key, value in values.items():
        out = out.replace("{{" + key + "}}", value)
    return out
