"""RSS/Atom detection and item extraction."""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional
import logging
import re

import feedparser

logger = logging.getLogger(__name__)

_FEED_SIGNATURE_RE = re.compile(r"<(rss|feed)[\s>]", re.IGNORECASE)

@dataclass
class FeedItem:
    url: str
    title: str
    published: Optional[datetime] = None

def is_feed(text: str) -> bool:
    """True when the document starts like an RSS or Atom feed."""
    head = (text or "").lstrip()[:500]
    return bool(_FEED_SIGNATURE_RE.search(head))

def _entry_date(entry) -> Optional[datetime]:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if not parsed:
        return None
    # feedparser normalises to a UTC struct_time
    return datetime(*parsed[:6], tzinfo=timezone.utc)

def parse_feed(text: str) -> List[FeedItem]:
    # bytes so feedparser never treats the document as a URL or file path
    feed = feedparser.parse(text.encode("utf-8"))
    if feed.bozo and not feed.entries:
        logger.warning("Feed could not be parsed: %s", feed.get("bozo_exception"))
    items: List[FeedItem] = []
    for entry in feed.entries:
        link = (entry.get("link") or "").strip()
        if not link:
            continue
        items.append(FeedItem(url=link, title=(entry.get("title") or "").strip(), published=_entry_date(entry)))
    return items
