"""Duplicate detection over a run's surviving articles.

Two passes, both "earlier-created wins":

1. exact match on canonical URL (falling back to the normalized URL);
2. pairwise title Jaccard similarity among pass-1 survivors.

Pass 2 is O(n^2). It runs after relevance filtering, so n is the number of
relevant candidates of a single run.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Protocol, Sequence, Optional
import logging

from newsdesk.services.similarity import DUPLICATE_THRESHOLD, title_similarity

logger = logging.getLogger(__name__)

class DedupCandidate(Protocol):
    id: Optional[int]
    url: str
    canonical_url: Optional[str]
    title: Optional[str]

@dataclass
class DuplicateMark:
    article_id: int
    duplicate_of_id: int
    reason: str  # "canonical" | "title"

def dedup_key(article: DedupCandidate) -> str:
    return article.canonical_url or article.url

def find_duplicates(articles: Sequence[DedupCandidate], threshold: float = DUPLICATE_THRESHOLD) -> List[DuplicateMark]:
    """Return one mark per duplicate. `articles` must be in creation order."""
    marks: List[DuplicateMark] = []

    groups: Dict[str, List[DedupCandidate]] = {}
    for art in articles:
        groups.setdefault(dedup_key(art), []).append(art)

    dupe_ids = set()
    for group in groups.values():
        first = group[0]
        for other in group[1:]:
            dupe_ids.add(other.id)
            marks.append(DuplicateMark(other.id, first.id, "canonical"))

    remaining = [a for a in articles if a.id not in dupe_ids]
    for i, a in enumerate(remaining):
        if a.id in dupe_ids or not a.title:
            continue
        for b in remaining[i + 1:]:
            if b.id in dupe_ids or not b.title:
                continue
            if title_similarity(a.title, b.title) > threshold:
                dupe_ids.add(b.id)
                marks.append(DuplicateMark(b.id, a.id, "title"))

    logger.debug("Dedup: %d candidates, %d duplicates", len(articles), len(marks))
    return marks
