from __future__ import annotations
from typing import Optional
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from newsdesk.settings_models import Settings

logger = logging.getLogger(__name__)

async def get_settings(session: AsyncSession) -> Settings:
    res = await session.execute(select(Settings).limit(1))
    s = res.scalars().first()
    if s is None:
        s = Settings()
        session.add(s)
        await session.commit()
        await session.refresh(s)
        logger.info("Created default settings row (provider=%s)", s.provider)
    return s

async def update_settings(
    session: AsyncSession,
    provider: Optional[str] = None,
    provider_model: Optional[str] = None,
    fetch_timeout_s: Optional[float] = None,
    user_agent: Optional[str] = None,
    fetch_concurrency: Optional[int] = None,
    llm_concurrency: Optional[int] = None,
) -> Settings:
    s = await get_settings(session)
    if provider is not None:
        s.provider = provider
    if provider_model is not None:
        s.provider_model = provider_model
    if fetch_timeout_s is not None:
        s.fetch_timeout_s = fetch_timeout_s
    if user_agent is not None:
        s.user_agent = user_agent
    if fetch_concurrency is not None:
        s.fetch_concurrency = max(1, fetch_concurrency)
    if llm_concurrency is not None:
        s.llm_concurrency = max(1, llm_concurrency)
    session.add(s)
    await session.commit()
    await session.refresh(s)
    return s
