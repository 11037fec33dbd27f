from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from newsdesk.models import Article, ArticleRanking

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

@dataclass
class Eligible:
    article: Article
    ranking: Optional[ArticleRanking] = None

    @property
    def score(self) -> Optional[float]:
        return self.ranking.score if self.ranking is not None else None

    @property
    def domain(self) -> str:
        return self.article.domain or "unknown"

    @property
    def discovered(self) -> tuple:
        return (self.article.created_at or _EPOCH, self.article.id or 0)

@dataclass
class CapOutcome:
    kept: List[Eligible] = field(default_factory=list)
    dropped_by_domain: Dict[str, List[Eligible]] = field(default_factory=dict)
    dropped_by_total: List[Eligible] = field(default_factory=list)

    @property
    def dropped(self) -> List[Eligible]:
        out = [e for group in self.dropped_by_domain.values() for e in group]
        return out + self.dropped_by_total

def _domain_order(e: Eligible):
    # ranked first by score desc, then unranked by discovery time
    if e.score is not None:
        return (0, -e.score, e.discovered)
    return (1, 0.0, e.discovered)

def _total_order(e: Eligible):
    # unranked items have no score to compare; they keep their relative order
    return (0, -e.score) if e.score is not None else (1, 0.0)

def apply_caps(eligible: Sequence[Eligible], max_per_domain: int, max_total: int) -> CapOutcome:
    """Per-domain cap, then total cap.

    Kept items come back in input order, or in score order when the total cap
    had to drop something.
    """
    outcome = CapOutcome()

    by_domain: Dict[str, List[Eligible]] = {}
    for e in eligible:
        by_domain.setdefault(e.domain, []).append(e)

    kept_ids = set()
    for domain, group in by_domain.items():
        ordered = sorted(group, key=_domain_order)
        kept_ids.update(id(e) for e in ordered[:max_per_domain])
        dropped = ordered[max_per_domain:]
        if dropped:
            outcome.dropped_by_domain[domain] = dropped

    survivors = [e for e in eligible if id(e) in kept_ids]
    if len(survivors) > max_total:
        ordered = sorted(survivors, key=_total_order)
        outcome.dropped_by_total = ordered[max_total:]
        survivors = ordered[:max_total]

    outcome.kept = survivors
    return outcome
