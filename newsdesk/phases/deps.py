from __future__ import annotations
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.services.ai import LLMClient
from newsdesk.services.fetch import DEFAULT_TIMEOUT_S, make_http_client
from newsdesk.services.providers import get_provider
from newsdesk.services.settings import get_settings

# Truncation applied to article text before it goes into a prompt
RELEVANCY_CHARS = 2000
RANKING_CHARS = 6000
SUMMARY_CHARS = 4000

@dataclass
class PipelineDeps:
    """External collaborators a phase handler may call."""
    http: httpx.AsyncClient
    llm: LLMClient
    fetch_timeout_s: float = DEFAULT_TIMEOUT_S
    fetch_concurrency: int = 5
    llm_concurrency: int = 3

@asynccontextmanager
async def open_pipeline_deps(session: AsyncSession) -> AsyncIterator[PipelineDeps]:
    s = await get_settings(session)
    llm = LLMClient(get_provider(s.provider, model=s.provider_model))
    async with make_http_client(user_agent=s.user_agent) as http:
        yield PipelineDeps(
            http=http,
            llm=llm,
            fetch_timeout_s=s.fetch_timeout_s,
            fetch_concurrency=s.fetch_concurrency,
            llm_concurrency=s.llm_concurrency,
        )
