from __future__ import annotations
import re
from typing import Set

# Titles scoring strictly above this are treated as the same story
DUPLICATE_THRESHOLD = 0.7

_PUNCT_RE = re.compile(r"[^\w\s]")

def tokenize(text: str) -> Set[str]:
    words = _PUNCT_RE.sub("", (text or "").lower()).split()
    return {w for w in words if len(w) > 2}

def title_similarity(a: str, b: str) -> float:
    """Jaccard similarity of the title token sets (tokens longer than 2 chars)."""
    ta, tb = tokenize(a), tokenize(b)
    if not ta and not tb:
        return 1.0
    if not ta or not tb:
        return 0.0
    return len(ta & tb) / len(ta | tb)
