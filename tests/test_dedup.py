from dataclasses import dataclass
from typing import Optional

from newsdesk.services.dedup import find_duplicates

@dataclass
class Art:
    id: int
    url: str
    canonical_url: Optional[str] = None
    title: Optional[str] = None

def test_canonical_groups_earlier_wins():
    a = Art(1, "https://a.com/1", "https://x.com/story", "First")
    b = Art(2, "https://b.com/2", "https://x.com/story", "Second")
    c = Art(3, "https://c.com/3", "https://y.com/other", "Third")
    marks = find_duplicates([a, b, c])
    assert [(m.article_id, m.duplicate_of_id, m.reason) for m in marks] == [(2, 1, "canonical")]

def test_url_used_when_no_canonical():
    a = Art(1, "https://a.com/1", None, "Alpha")
    b = Art(2, "https://a.com/1", None, "Beta")
    marks = find_duplicates([a, b])
    assert [(m.article_id, m.duplicate_of_id) for m in marks] == [(2, 1)]

def test_similar_titles_marked():
    a = Art(1, "https://a.com/1", title="Google announces Gemini update for developers")
    b = Art(2, "https://b.com/2", title="Google announces Gemini update for developers today")
    c = Art(3, "https://c.com/3", title="Completely unrelated gardening advice")
    marks = find_duplicates([a, b, c])
    assert [(m.article_id, m.duplicate_of_id, m.reason) for m in marks] == [(2, 1, "title")]

def test_threshold_is_strict():
    # 7 shared tokens of 10 distinct -> exactly 0.7, not a duplicate
    a = Art(1, "https://a.com/1", title="alpha bravo charlie delta echo foxtrot golf hotel")
    b = Art(2, "https://b.com/2", title="alpha bravo charlie delta echo foxtrot golf india juliet")
    assert find_duplicates([a, b]) == []

def test_empty_titles_never_match():
    a = Art(1, "https://a.com/1", title="")
    b = Art(2, "https://b.com/2", title="")
    assert find_duplicates([a, b]) == []

def test_duplicate_never_becomes_a_reference():
    a = Art(1, "https://a.com/1", "https://x.com/s", "Markets rally on rate cut hopes")
    b = Art(2, "https://b.com/2", "https://x.com/s", "Something else entirely here")
    c = Art(3, "https://c.com/3", None, "Something else entirely here")
    marks = find_duplicates([a, b, c])
    assert [(m.article_id, m.duplicate_of_id) for m in marks] == [(2, 1)]
