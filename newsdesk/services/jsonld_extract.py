from __future__ import annotations
from typing import List, Dict, Any
from bs4 import BeautifulSoup
import json

def extract_onpage_jsonld(html: str) -> List[Dict[str, Any]]:
    """
    Return the JSON-LD objects found in <script type="application/ld+json"> tags.
    Top-level arrays are flattened; blocks that are not valid JSON are ignored.
    """
    soup = BeautifulSoup(html, "lxml")
    out: List[Dict[str, Any]] = []
    for tag in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            payload = json.loads(tag.string or tag.get_text() or "")
        except json.JSONDecodeError:
            continue
        if isinstance(payload, list):
            out.extend(item for item in payload if isinstance(item, dict))
        elif isinstance(payload, dict):
            out.append(payload)
    return out
