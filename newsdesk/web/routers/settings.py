from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.db import get_session
from newsdesk.services.providers import PROVIDERS
from newsdesk.services.settings import get_settings, update_settings
from newsdesk.web.auth import require_admin

router = APIRouter(prefix="/api/settings")

class SettingsUpdate(BaseModel):
    provider: Optional[str] = None
    provider_model: Optional[str] = None
    fetch_timeout_s: Optional[float] = Field(default=None, gt=0)
    user_agent: Optional[str] = None
    fetch_concurrency: Optional[int] = Field(default=None, ge=1)
    llm_concurrency: Optional[int] = Field(default=None, ge=1)

@router.get("")
async def settings_show(session: AsyncSession = Depends(get_session)):
    s = await get_settings(session)
    return {**s.model_dump(mode="json"), "providers": PROVIDERS}

@router.put("", dependencies=[Depends(require_admin)])
async def settings_save(body: SettingsUpdate, session: AsyncSession = Depends(get_session)):
    fields = body.model_dump(exclude_unset=True)
    provider = (fields.get("provider") or "").strip().lower() or None
    if provider is not None and provider not in PROVIDERS:
        raise ValueError(f"unknown provider {provider}")
    fields["provider"] = provider
    if "provider_model" in fields:
        # plain string; empty clears back to the provider default
        fields["provider_model"] = (fields["provider_model"] or "").strip()
    s = await update_settings(session, **fields)
    return s.model_dump(mode="json")
