from datetime import datetime, timezone

from newsdesk.services.feeds import is_feed, parse_feed

RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example News</title>
    <link>https://example.com/</link>
    <item>
      <title>First story</title>
      <link>https://example.com/2024/first-story</link>
      <pubDate>Mon, 01 Jan 2024 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>No link here</title>
    </item>
  </channel>
</rss>
"""

ATOM = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Example</title>
  <entry>
    <title>Atom entry</title>
    <link href="https://blog.example.org/posts/atom-entry"/>
    <updated>2024-02-03T04:05:06Z</updated>
  </entry>
</feed>
"""

def test_is_feed_detects_rss_and_atom():
    assert is_feed(RSS)
    assert is_feed("\n\n   " + ATOM)

def test_is_feed_rejects_html():
    assert not is_feed("<!doctype html><html><head><title>rss feeds</title></head></html>")

def test_is_feed_only_looks_at_document_head():
    assert not is_feed("<html>" + " " * 600 + "<rss version='2.0'>")

def test_parse_rss_items():
    items = parse_feed(RSS)
    assert [i.url for i in items] == ["https://example.com/2024/first-story"]
    assert items[0].title == "First story"
    assert items[0].published == datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)

def test_parse_atom_items():
    items = parse_feed(ATOM)
    assert len(items) == 1
    assert items[0].url == "https://blog.example.org/posts/atom-entry"
    assert items[0].published == datetime(2024, 2, 3, 4, 5, 6, tzinfo=timezone.utc)
