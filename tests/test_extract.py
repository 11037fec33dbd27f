from datetime import datetime, timezone

from newsdesk.services.extract import extract_content, extract_links, is_probable_article, parse_date

def test_extract_content(make_article_html):
    html = make_article_html(
        "Quantum chips get faster",
        "Researchers report a large speedup in quantum error correction.",
        canonical="/2024/quantum-chips",
        published="2024-03-01T12:00:00+02:00",
    )
    out = extract_content(html, "https://example.com/2024/quantum-chips?utm_source=x")
    assert out.title == "Quantum chips get faster"
    assert "quantum error correction" in out.text
    assert "Copyright" not in out.text
    assert out.canonical_url == "https://example.com/2024/quantum-chips"
    assert out.publish_date == "2024-03-01T12:00:00+02:00"
    assert out.word_count == len(out.text.split())

def test_publish_date_from_jsonld_graph():
    html = """<html><head><title>T</title>
    <script type="application/ld+json">{"@context": "https://schema.org", "@graph": [
        {"@type": "WebPage"}, {"@type": "NewsArticle", "datePublished": "2024-05-06"}]}</script>
    </head><body><p>Body text for the article goes here.</p></body></html>"""
    assert extract_content(html, "https://example.com/a/b").publish_date == "2024-05-06"

def test_publish_date_from_time_tag():
    html = "<html><body><time datetime='2023-12-24T08:00:00Z'>Dec 24</time><p>Text.</p></body></html>"
    assert extract_content(html, "https://example.com/a/b").publish_date == "2023-12-24T08:00:00Z"

def test_parse_date_normalises_to_utc():
    assert parse_date("2024-03-01T12:00:00+02:00") == datetime(2024, 3, 1, 10, 0, 0, tzinfo=timezone.utc)
    assert parse_date("2024-03-01 12:00").tzinfo == timezone.utc
    assert parse_date("not a date") is None
    assert parse_date(None) is None

def test_is_probable_article():
    assert is_probable_article("https://example.com/2024/some-story")
    assert not is_probable_article("https://example.com/story")
    assert not is_probable_article("https://example.com/tag/ai")
    assert not is_probable_article("https://example.com/files/report.pdf")
    assert not is_probable_article("mailto:someone@example.com")

def test_extract_links_resolves_and_filters():
    html = """<html><body>
      <a href="/2024/first-story">one</a>
      <a href="/2024/first-story#comments">one again</a>
      <a href="https://other.org/news/second-story">two</a>
      <a href="/about/team">about</a>
      <a href="/single">single segment</a>
      <a href="/media/photo.JPG">photo</a>
    </body></html>"""
    assert extract_links(html, "https://example.com/news/") == [
        "https://example.com/2024/first-story",
        "https://other.org/news/second-story",
    ]
