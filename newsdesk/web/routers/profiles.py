from __future__ import annotations
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.db import get_session
from newsdesk.services.runs import create_profile, delete_profile, get_profile, list_profiles, update_profile
from newsdesk.web.auth import require_admin

router = APIRouter(prefix="/api/profiles")

class ProfileCreate(BaseModel):
    name: str
    default_source_urls: List[str] = Field(default_factory=list)
    default_keywords: List[str] = Field(default_factory=list)
    trends_to_watch: List[str] = Field(default_factory=list)
    competitors_to_monitor: List[str] = Field(default_factory=list)

class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    default_source_urls: Optional[List[str]] = None
    default_keywords: Optional[List[str]] = None
    trends_to_watch: Optional[List[str]] = None
    competitors_to_monitor: Optional[List[str]] = None

@router.get("")
async def profiles_index(session: AsyncSession = Depends(get_session)):
    return {"profiles": [p.model_dump(mode="json") for p in await list_profiles(session)]}

@router.get("/{profile_id}")
async def profiles_detail(profile_id: int, session: AsyncSession = Depends(get_session)):
    return (await get_profile(session, profile_id)).model_dump(mode="json")

@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def profiles_create(body: ProfileCreate, session: AsyncSession = Depends(get_session)):
    return (await create_profile(session, **body.model_dump())).model_dump(mode="json")

@router.put("/{profile_id}", dependencies=[Depends(require_admin)])
async def profiles_update(profile_id: int, body: ProfileUpdate, session: AsyncSession = Depends(get_session)):
    return (await update_profile(session, profile_id, **body.model_dump(exclude_unset=True))).model_dump(mode="json")

@router.delete("/{profile_id}", dependencies=[Depends(require_admin)])
async def profiles_delete(profile_id: int, session: AsyncSession = Depends(get_session)):
    await delete_profile(session, profile_id)
    return {"deleted": profile_id}
