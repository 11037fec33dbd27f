from __future__ import annotations
from typing import Optional
from sqlmodel import SQLModel, Field

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; NewsdeskBot/1.0; +https://github.com/newsdesk)"

class Settings(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # LLM provider defaults
    provider: str = Field(default="gemini")
    provider_model: Optional[str] = Field(default=None)

    # Fetching
    fetch_timeout_s: float = Field(default=8.0)
    user_agent: str = Field(default=DEFAULT_USER_AGENT)

    # Worker pool sizes (fetch and LLM pools are independent)
    fetch_concurrency: int = Field(default=5)
    llm_concurrency: int = Field(default=3)
