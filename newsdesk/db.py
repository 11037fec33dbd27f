
from __future__ import annotations
from typing import AsyncGenerator
from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession
from sqlalchemy.orm import sessionmaker
import os

DB_URL = os.getenv("NEWSDESK_DB_URL", "sqlite+aiosqlite:///./newsdesk.db")

def make_engine(url: str = DB_URL, **kwargs) -> AsyncEngine:
    return create_async_engine(url, echo=False, future=True, **kwargs)

def make_sessionmaker(bind: AsyncEngine) -> sessionmaker:
    return sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)

engine = make_engine()
AsyncSessionLocal = make_sessionmaker(engine)

async def init_db(bind: AsyncEngine = engine) -> None:
    # models must be imported so their tables are registered on the metadata
    from newsdesk import models, settings_models  # noqa: F401
    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
