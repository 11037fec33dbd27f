from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from functools import cmp_to_key
from typing import List, Optional, Sequence

from jinja2 import Environment, BaseLoader

from newsdesk.models import Article, ArticleRanking, ArticleSummary, utcnow

TIER_ORDER = {"Essential": 0, "Important": 1, "Optional": 2, "Unranked": 3}

@dataclass
class NewsletterEntry:
    article: Article
    summary: ArticleSummary
    ranking: Optional[ArticleRanking] = None

    @property
    def tier(self) -> str:
        return self.ranking.tier if self.ranking is not None else "Unranked"

    @property
    def score(self) -> float:
        return self.ranking.score if self.ranking is not None else 0.0

def compare_entries(a: NewsletterEntry, b: NewsletterEntry) -> int:
    # manual curation wins whenever both sides carry a sort_index
    if a.article.sort_index is not None and b.article.sort_index is not None:
        return a.article.sort_index - b.article.sort_index
    ta, tb = TIER_ORDER.get(a.tier, 3), TIER_ORDER.get(b.tier, 3)
    if ta != tb:
        return ta - tb
    if a.score != b.score:
        return -1 if a.score > b.score else 1
    return 0

def order_entries(entries: Sequence[NewsletterEntry]) -> List[NewsletterEntry]:
    return sorted(entries, key=cmp_to_key(compare_entries))

def newsletter_title(topic: str) -> str:
    return f"{topic} Newsletter"

NEWSLETTER_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>{{ title }}</title>
  <style>
    body { font-family: -apple-system, "Segoe UI", Roboto, sans-serif; max-width: 720px; margin: 0 auto; padding: 2rem 1rem; color: #1a1a2e; line-height: 1.6; }
    h1 { border-bottom: 3px solid #0f3460; padding-bottom: .4rem; }
    .article { margin: 1.8rem 0; }
    .meta { color: #666; font-size: .85rem; }
    .tier { font-weight: 700; text-transform: uppercase; font-size: .75rem; letter-spacing: .06em; color: #0f3460; }
  </style>
</head>
<body>
  <h1>{{ title }}</h1>
  <p class="meta">Generated {{ generated_at.strftime("%Y-%m-%d %H:%M") }} UTC &middot; {{ entries|length }} articles</p>
  {% for e in entries %}
  <div class="article">
    <div class="tier">{{ e.tier }}{% if e.ranking %} &middot; {{ "%.1f"|format(e.score) }}{% endif %}</div>
    <h2>{% if e.ranking and e.ranking.suggested_header %}{{ e.ranking.suggested_header }}{% else %}{{ e.article.title or e.article.url }}{% endif %}</h2>
    <p class="meta"><a href="{{ e.article.url }}">{{ e.article.title or e.article.url }}</a> &middot; {{ e.article.domain }}</p>
    <p>{{ e.summary.summary_text }}</p>
    {% if e.summary.why_it_matters %}
    <p><strong>Why it matters</strong></p>
    <ul>
      {% for point in e.summary.why_it_matters %}<li>{{ point }}</li>{% endfor %}
    </ul>
    {% endif %}
    {% if e.summary.implications %}<p><em>{{ e.summary.implications }}</em></p>{% endif %}
  </div>
  {% endfor %}
</body>
</html>
"""

_env = Environment(loader=BaseLoader(), autoescape=True)

def render_newsletter_html(title: str, entries: Sequence[NewsletterEntry], generated_at: Optional[datetime] = None) -> str:
    template = _env.from_string(NEWSLETTER_TEMPLATE)
    return template.render(title=title, entries=list(entries), generated_at=generated_at or utcnow())
