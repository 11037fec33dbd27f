from __future__ import annotations
import asyncio
import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from sqlalchemy.pool import NullPool

from newsdesk.db import init_db, make_engine, make_sessionmaker
from newsdesk.phases.deps import PipelineDeps
from newsdesk.services.ai import LLMClient
from newsdesk.services.providers import LLMProvider

class ScriptedLLM(LLMProvider):
    """Answers by looking at which schema is being asked for.

    `replies` maps a required property name ("is_relevant", "score", ...) to
    either a JSON-able value or a callable(user_prompt) returning one. An
    Exception instance (or callable result) is raised instead of returned.
    """
    name = "scripted"

    def __init__(self, replies: Dict[str, Any]):
        self.replies = replies
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, system_prompt, user_prompt, *, response_schema=None, temperature=0.3, model=None):
        self.calls.append({"system": system_prompt, "user": user_prompt, "schema": response_schema})
        required = (response_schema or {}).get("required") or [None]
        reply = self.replies.get(required[0])
        if callable(reply):
            reply = reply(user_prompt)
        if isinstance(reply, Exception):
            raise reply
        return reply if isinstance(reply, str) else json.dumps(reply)

async def _no_sleep(_seconds):
    return None

def make_llm(replies: Dict[str, Any], max_attempts: int = 3) -> LLMClient:
    return LLMClient(ScriptedLLM(replies), max_attempts=max_attempts, sleep=_no_sleep)

def make_deps(pages: Dict[str, Any], replies: Dict[str, Any]) -> PipelineDeps:
    """Deps with an in-memory web (`pages`: url -> html or status code) and a scripted LLM."""
    def handler(request: httpx.Request) -> httpx.Response:
        page = pages.get(str(request.url))
        if page is None:
            return httpx.Response(404, text="not found")
        if isinstance(page, int):
            return httpx.Response(page, text="error")
        return httpx.Response(200, text=page, headers={"content-type": "text/html"})

    return PipelineDeps(
        http=httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True),
        llm=make_llm(replies),
    )

@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'newsdesk-test.db'}"

@pytest.fixture
def run_db(db_url) -> Callable:
    """Run `scenario(session)` against a fresh database and return its result."""
    def runner(scenario):
        async def main():
            engine = make_engine(db_url, poolclass=NullPool)
            await init_db(engine)
            Session = make_sessionmaker(engine)
            try:
                async with Session() as session:
                    return await scenario(session)
            finally:
                await engine.dispose()
        return asyncio.run(main())
    return runner

@pytest.fixture
def scripted():
    return make_llm

@pytest.fixture
def deps_factory():
    return make_deps

def article_html(title: str, body: str, canonical: Optional[str] = None, published: Optional[str] = None) -> str:
    head = f"<title>{title}</title>"
    if canonical:
        head += f'<link rel="canonical" href="{canonical}">'
    if published:
        head += f'<meta property="article:published_time" content="{published}">'
    paragraphs = "".join(f"<p>{body} Paragraph {i} adds more detail to the story for readers.</p>" for i in range(6))
    return (
        f"<html><head>{head}</head><body>"
        "<nav><a href='/'>Home</a></nav>"
        f"<article><h1>{title}</h1>{paragraphs}</article>"
        "<footer>Copyright</footer></body></html>"
    )

@pytest.fixture
def make_article_html():
    return article_html
