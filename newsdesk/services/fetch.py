from __future__ import annotations
import logging
import httpx

from newsdesk.errors import FetchError
from newsdesk.settings_models import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 8.0
ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

def make_http_client(user_agent: str = DEFAULT_USER_AGENT, **kwargs) -> httpx.AsyncClient:
    headers = {"User-Agent": user_agent, "Accept": ACCEPT}
    return httpx.AsyncClient(headers=headers, follow_redirects=True, **kwargs)

async def fetch_html(client: httpx.AsyncClient, url: str, timeout_s: float = DEFAULT_TIMEOUT_S) -> str:
    """
    GET a page and return its body text. Any non-2xx status or transport
    error is raised as FetchError.
    """
    try:
        r = await client.get(url, timeout=timeout_s, follow_redirects=True)
    except httpx.HTTPError as e:
        raise FetchError(f"{type(e).__name__} for {url}: {e}") from e
    if not r.is_success:
        raise FetchError(f"HTTP {r.status_code} for {url}")
    logger.debug("Fetched %s (%d bytes)", url, len(r.content))
    return r.text
