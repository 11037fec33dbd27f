from __future__ import annotations
from typing import AsyncIterator, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import HTMLResponse

from newsdesk.db import get_session
from newsdesk.phases.deps import PipelineDeps, open_pipeline_deps
from newsdesk.phases.pipeline import run_from, run_phase
from newsdesk.services.export import export_run_json
from newsdesk.services.runs import create_run, get_run_detail, list_runs, newsletter_html, update_articles
from newsdesk.services.store import RunStore
from newsdesk.web.auth import require_admin

router = APIRouter(prefix="/api/runs")

async def get_pipeline_deps(session: AsyncSession = Depends(get_session)) -> AsyncIterator[PipelineDeps]:
    async with open_pipeline_deps(session) as deps:
        yield deps

class RunCreate(BaseModel):
    run_name: str
    topic: str
    keywords: List[str] = Field(default_factory=list)
    specific_urls: List[str] = Field(default_factory=list)
    source_urls: List[str] = Field(default_factory=list)
    lookback_days: int = Field(default=7, ge=1)
    mode: str = "auto"
    min_fit_score: float = 6.0
    max_total_articles: int = Field(default=12, ge=1)
    max_per_domain: int = Field(default=4, ge=1)
    ranking_enabled: bool = True
    profile_id: Optional[int] = None

class PhaseRequest(BaseModel):
    runAll: bool = False

class ArticleEdit(BaseModel):
    id: int
    is_kept: Optional[bool] = None
    sort_index: Optional[int] = None

class ArticlesPatch(BaseModel):
    articles: List[ArticleEdit]

@router.get("")
async def runs_index(limit: int = 100, session: AsyncSession = Depends(get_session)):
    return {"runs": await list_runs(session, limit=limit)}

@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def runs_create(body: RunCreate, session: AsyncSession = Depends(get_session)):
    run = await create_run(session, **body.model_dump())
    return await get_run_detail(session, run.id)

@router.get("/{run_id}")
async def runs_detail(run_id: int, session: AsyncSession = Depends(get_session)):
    return await get_run_detail(session, run_id)

@router.post("/{run_id}/phase/{phase_name}", dependencies=[Depends(require_admin)])
async def runs_phase(
    run_id: int,
    phase_name: str,
    body: Optional[PhaseRequest] = None,
    session: AsyncSession = Depends(get_session),
    deps: PipelineDeps = Depends(get_pipeline_deps),
):
    store = RunStore(session)
    if body is not None and body.runAll:
        return {"results": await run_from(store, run_id, phase_name, deps)}
    return (await run_phase(store, run_id, phase_name, deps)).as_dict()

@router.patch("/{run_id}/articles", dependencies=[Depends(require_admin)])
async def runs_articles_patch(run_id: int, body: ArticlesPatch, session: AsyncSession = Depends(get_session)):
    updated = await update_articles(session, run_id, [a.model_dump(exclude_unset=True) for a in body.articles])
    return {"updated": updated}

@router.get("/{run_id}/newsletter", response_class=HTMLResponse)
async def runs_newsletter(run_id: int, session: AsyncSession = Depends(get_session)):
    _, html = await newsletter_html(session, run_id)
    return HTMLResponse(html)

@router.get("/{run_id}/export/json")
async def runs_export_json(run_id: int, session: AsyncSession = Depends(get_session)):
    return await export_run_json(session, run_id)
