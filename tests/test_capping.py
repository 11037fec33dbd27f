from datetime import datetime, timedelta, timezone

from newsdesk.models import Article, ArticleRanking
from newsdesk.services.capping import Eligible, apply_caps

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)

def eligible(i, domain, score=None):
    art = Article(id=i, run_id=1, url=f"https://{domain}/{i}", domain=domain, created_at=T0 + timedelta(minutes=i))
    ranking = None
    if score is not None:
        ranking = ArticleRanking(article_id=i, category="c", score=score, tier="Important")
    return Eligible(art, ranking)

def ids(items):
    return [e.article.id for e in items]

def test_per_domain_keeps_highest_scores():
    items = [eligible(1, "a.com", 5), eligible(2, "a.com", 9), eligible(3, "a.com", 7), eligible(4, "b.com", 6)]
    out = apply_caps(items, max_per_domain=2, max_total=10)
    assert ids(out.kept) == [2, 3, 4]
    assert ids(out.dropped_by_domain["a.com"]) == [1]
    assert out.dropped_by_total == []

def test_unranked_ordered_by_discovery_after_ranked():
    items = [eligible(1, "a.com"), eligible(2, "a.com"), eligible(3, "a.com", 2)]
    out = apply_caps(items, max_per_domain=2, max_total=10)
    assert sorted(ids(out.kept)) == [1, 3]
    assert ids(out.dropped) == [2]

def test_total_cap_by_score():
    items = [eligible(1, "a.com", 3), eligible(2, "b.com", 8), eligible(3, "c.com", 6), eligible(4, "d.com")]
    out = apply_caps(items, max_per_domain=4, max_total=2)
    assert ids(out.kept) == [2, 3]
    assert ids(out.dropped_by_total) == [1, 4]

def test_total_cap_unranked_stable():
    items = [eligible(i, f"d{i}.com") for i in range(1, 6)]
    out = apply_caps(items, max_per_domain=4, max_total=3)
    assert ids(out.kept) == [1, 2, 3]

def test_missing_domain_grouped_as_unknown():
    items = [eligible(1, ""), eligible(2, ""), eligible(3, "")]
    out = apply_caps(items, max_per_domain=2, max_total=10)
    assert ids(out.dropped_by_domain["unknown"]) == [3]

def test_nothing_dropped_under_caps():
    items = [eligible(1, "a.com", 7), eligible(2, "b.com", 8)]
    out = apply_caps(items, max_per_domain=4, max_total=12)
    assert ids(out.kept) == [1, 2]
    assert out.dropped == []
