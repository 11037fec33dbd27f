from newsdesk.models import Article, ArticleRanking, ArticleSummary
from newsdesk.services.newsletter import NewsletterEntry, newsletter_title, order_entries, render_newsletter_html

def entry(i, tier=None, score=None, sort_index=None, title=None):
    art = Article(id=i, run_id=1, url=f"https://ex.com/a/{i}", domain="ex.com", title=title or f"Story {i}", sort_index=sort_index)
    summary = ArticleSummary(article_id=i, summary_text=f"Summary {i}", why_it_matters=[f"Point {i}"])
    ranking = None
    if tier is not None:
        ranking = ArticleRanking(article_id=i, category="c", score=score, tier=tier, suggested_header=f"Header {i}")
    return NewsletterEntry(art, summary, ranking)

def ids(entries):
    return [e.article.id for e in entries]

def test_tier_then_score():
    entries = [
        entry(1, "Optional", 9),
        entry(2, "Essential", 7),
        entry(3, None),
        entry(4, "Essential", 8),
        entry(5, "Important", 6),
    ]
    assert ids(order_entries(entries)) == [4, 2, 5, 1, 3]

def test_sort_index_wins_when_both_set():
    entries = [entry(1, "Essential", 9, sort_index=2), entry(2, "Optional", 1, sort_index=1)]
    assert ids(order_entries(entries)) == [2, 1]

def test_title():
    assert newsletter_title("Climate") == "Climate Newsletter"

def test_render_escapes_and_lists_points():
    e = entry(1, "Essential", 9.5, title="<script>alert(1)</script>")
    e.ranking.suggested_header = ""
    html = render_newsletter_html("Weekly <AI>", [e])
    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html
    assert "Weekly &lt;AI&gt;" in html
    assert "<li>Point 1</li>" in html
    assert "9.5" in html

def test_render_unranked_entry():
    html = render_newsletter_html("T", [entry(7)])
    assert "Unranked" in html
    assert "Summary 7" in html
