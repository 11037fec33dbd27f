from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import urljoin, urlsplit
import logging
import re

from bs4 import BeautifulSoup
from dateutil import parser as date_parser
from readability import Document
from readability.readability import Unparseable

from newsdesk.services.jsonld_extract import extract_onpage_jsonld

logger = logging.getLogger(__name__)

BLOCK_TAGS = {"nav", "footer", "header", "aside"}
STRIP_TAGS = {"script", "style", "noscript", "form", "template"}

# Checked in order, first non-empty content wins
PUBLISH_DATE_SELECTORS = [
    'meta[property="article:published_time"]',
    'meta[name="article:published_time"]',
    'meta[property="og:article:published_time"]',
    'meta[name="datePublished"]',
    'meta[property="datePublished"]',
    'meta[name="date"]',
    'meta[name="DC.date.issued"]',
    'meta[property="article:modified_time"]',
]

NON_ARTICLE_SEGMENTS = {
    "tag", "category", "author", "page", "search",
    "login", "signup", "about", "contact", "privacy", "terms",
}
BINARY_EXT_RE = re.compile(r"\.(pdf|zip|png|jpe?g|gif|mp4|mp3)$", re.IGNORECASE)

@dataclass
class ExtractedContent:
    title: str
    text: str
    publish_date: Optional[str] = None
    canonical_url: Optional[str] = None

    @property
    def word_count(self) -> int:
        return len(self.text.split())

def readability_skim(html: str, url: Optional[str] = None) -> tuple[str, str]:
    """
    Use readability-lxml to get (short title, main content HTML).
    """
    doc = Document(html, url=url)
    title = doc.short_title() or ""
    if title == "[no-title]":
        title = ""
    return title, doc.summary(html_partial=True)

def strip_noise(html: str) -> str:
    """
    Remove scripts/styles/forms and common chrome (nav/footer/header/aside).
    """
    soup = BeautifulSoup(html, "lxml")
    for tg in STRIP_TAGS | BLOCK_TAGS:
        for el in soup.find_all(tg):
            el.decompose()
    for el in soup.select(
        "[role=navigation], .nav, .navbar, .site-header, .site-footer, .footer, .breadcrumb, .breadcrumbs, .cookie, .cookie-banner, .banner, .ads, .ad, .promo"
    ):
        el.decompose()
    return str(soup)

def html_to_text(html: str) -> str:
    soup = BeautifulSoup(html, "lxml")
    text = soup.get_text(separator="\n", strip=True)
    lines = [ln.strip() for ln in text.splitlines()]
    return "\n".join(ln for ln in lines if ln)

def find_canonical(soup: BeautifulSoup, url: str) -> Optional[str]:
    for link in soup.find_all("link", href=True):
        rel = link.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        if "canonical" in [r.lower() for r in rel]:
            href = link["href"].strip()
            if href:
                return urljoin(url, href)
    return None

def find_publish_date(soup: BeautifulSoup, html: str) -> Optional[str]:
    for selector in PUBLISH_DATE_SELECTORS:
        el = soup.select_one(selector)
        content = el.get("content") if el else None
        if content and content.strip():
            return content.strip()

    for block in extract_onpage_jsonld(html):
        if block.get("datePublished"):
            return str(block["datePublished"])
        for node in block.get("@graph") or []:
            if isinstance(node, dict) and node.get("datePublished"):
                return str(node["datePublished"])

    el = soup.find("time", attrs={"datetime": True})
    if el and el["datetime"].strip():
        return el["datetime"].strip()
    return None

def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a free-form date string into aware UTC, or None. Naive input is taken as UTC."""
    if not value:
        return None
    try:
        dt = date_parser.parse(value)
    except (ValueError, OverflowError):
        logger.debug("Unparseable date %r", value)
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)

def extract_content(html: str, url: str) -> ExtractedContent:
    """
    Pull main text, title, canonical URL and publish date out of a page.
    """
    soup = BeautifulSoup(html, "lxml")
    canonical = find_canonical(soup, url)
    published = find_publish_date(soup, html)

    try:
        title, main_html = readability_skim(html, url=url)
        text = html_to_text(strip_noise(main_html))
    except Unparseable as e:
        logger.info("Readability could not parse %s (%s), using whole page text", url, e)
        title, text = "", html_to_text(strip_noise(html))

    if not title and soup.title and soup.title.string:
        title = soup.title.string.strip()

    return ExtractedContent(title=title, text=text, publish_date=published, canonical_url=canonical)

def is_probable_article(url: str) -> bool:
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return False
    segments = [s for s in parts.path.split("/") if s]
    if len(segments) < 2:
        return False
    if any(s.lower() in NON_ARTICLE_SEGMENTS for s in segments):
        return False
    if BINARY_EXT_RE.search(parts.path):
        return False
    return True

def extract_links(html: str, base_url: str) -> List[str]:
    """
    Absolute links on an index page that look like articles, in page order.
    """
    soup = BeautifulSoup(html, "lxml")
    out: List[str] = []
    seen = set()
    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if not href:
            continue
        try:
            resolved = urljoin(base_url, href).split("#", 1)[0]
        except ValueError:
            continue
        if resolved in seen or not is_probable_article(resolved):
            continue
        seen.add(resolved)
        out.append(resolved)
    return out
