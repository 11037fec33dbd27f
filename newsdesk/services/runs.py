from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.errors import NotFound
from newsdesk.models import Article, ArticleRanking, ArticleSummary, Newsletter, Profile, Run, RunPhase
from newsdesk.phases.generate_newsletter import load_entries
from newsdesk.phases.guard import PhaseName
from newsdesk.services.newsletter import newsletter_title, render_newsletter_html
from newsdesk.services.store import RunStore

RUN_MODES = ("auto", "guided")

def _dump(obj) -> dict:
    return obj.model_dump(mode="json") if obj is not None else None

async def create_run(
    session: AsyncSession,
    *,
    run_name: str,
    topic: str,
    keywords: Optional[List[str]] = None,
    specific_urls: Optional[List[str]] = None,
    source_urls: Optional[List[str]] = None,
    lookback_days: int = 7,
    mode: str = "auto",
    min_fit_score: float = 6.0,
    max_total_articles: int = 12,
    max_per_domain: int = 4,
    ranking_enabled: bool = True,
    profile_id: Optional[int] = None,
) -> Run:
    """Create a run with all of its phases pending.

    A profile fills in source URLs and keywords the caller left empty.
    """
    run_name, topic = (run_name or "").strip(), (topic or "").strip()
    if not run_name or not topic:
        raise ValueError("run_name and topic are required")
    if mode not in RUN_MODES:
        raise ValueError(f"mode must be one of {', '.join(RUN_MODES)}")

    keywords = [k.strip() for k in keywords or [] if k and k.strip()]
    source_urls = [u.strip() for u in source_urls or [] if u and u.strip()]
    if profile_id is not None:
        profile = await session.get(Profile, profile_id)
        if profile is None:
            raise NotFound(f"Profile {profile_id} not found")
        if not source_urls:
            source_urls = list(profile.default_source_urls or [])
        if not keywords:
            keywords = list(profile.default_keywords or [])

    run = Run(
        run_name=run_name,
        topic=topic,
        keywords=keywords,
        specific_urls=[u.strip() for u in specific_urls or [] if u and u.strip()],
        source_urls=source_urls,
        lookback_days=lookback_days,
        mode=mode,
        min_fit_score=min_fit_score,
        max_total_articles=max_total_articles,
        max_per_domain=max_per_domain,
        ranking_enabled=ranking_enabled,
        profile_id=profile_id,
    )
    session.add(run)
    await session.flush()
    for name in PhaseName.ordered():
        session.add(RunPhase(run_id=run.id, phase_name=name.value))
    await session.commit()
    await session.refresh(run)
    return run

async def _phases(session: AsyncSession, run_ids: Sequence[int]) -> Dict[int, List[RunPhase]]:
    out: Dict[int, List[RunPhase]] = {rid: [] for rid in run_ids}
    if not run_ids:
        return out
    res = await session.execute(select(RunPhase).where(RunPhase.run_id.in_(list(run_ids))))
    for p in res.scalars().all():
        out[p.run_id].append(p)
    for phases in out.values():
        phases.sort(key=lambda p: PhaseName.parse(p.phase_name).position)
    return out

async def list_runs(session: AsyncSession, limit: int = 100) -> List[dict]:
    res = await session.execute(select(Run).order_by(Run.created_at.desc(), Run.id.desc()).limit(limit))
    runs = res.scalars().all()
    ids = [r.id for r in runs]
    phases = await _phases(session, ids)
    counts: Dict[int, int] = {}
    if ids:
        res = await session.execute(
            select(Article.run_id, func.count(Article.id)).where(Article.run_id.in_(ids)).group_by(Article.run_id)
        )
        counts = dict(res.all())
    return [
        {
            **_dump(r),
            "phases": {p.phase_name: p.status for p in phases[r.id]},
            "article_count": counts.get(r.id, 0),
        }
        for r in runs
    ]

async def get_run(session: AsyncSession, run_id: int) -> Run:
    run = await session.get(Run, run_id)
    if run is None:
        raise NotFound(f"Run {run_id} not found")
    return run

async def run_articles(session: AsyncSession, run_id: int) -> List[dict]:
    """Articles in curated order (sort_index, then discovery) with ranking and summary attached."""
    res = await session.execute(
        select(Article)
        .where(Article.run_id == run_id)
        .order_by(Article.sort_index.is_(None), Article.sort_index, Article.created_at, Article.id)
    )
    articles = res.scalars().all()
    ids = [a.id for a in articles]
    rankings: Dict[int, ArticleRanking] = {}
    summaries: Dict[int, ArticleSummary] = {}
    if ids:
        res = await session.execute(select(ArticleRanking).where(ArticleRanking.article_id.in_(ids)))
        rankings = {r.article_id: r for r in res.scalars().all()}
        res = await session.execute(select(ArticleSummary).where(ArticleSummary.article_id.in_(ids)))
        summaries = {s.article_id: s for s in res.scalars().all()}
    return [
        {**_dump(a), "ranking": _dump(rankings.get(a.id)), "summary": _dump(summaries.get(a.id))}
        for a in articles
    ]

async def latest_newsletter(session: AsyncSession, run_id: int) -> Optional[Newsletter]:
    res = await session.execute(
        select(Newsletter).where(Newsletter.run_id == run_id).order_by(Newsletter.created_at.desc(), Newsletter.id.desc())
    )
    return res.scalars().first()

async def get_run_detail(session: AsyncSession, run_id: int) -> dict:
    run = await get_run(session, run_id)
    phases = (await _phases(session, [run_id]))[run_id]
    newsletter = await latest_newsletter(session, run_id)
    return {
        **_dump(run),
        "phases": [_dump(p) for p in phases],
        "articles": await run_articles(session, run_id),
        "newsletter": _dump(newsletter),
    }

async def update_articles(session: AsyncSession, run_id: int, updates: Sequence[Dict[str, Any]]) -> int:
    """Apply manual curation (is_kept / sort_index) to articles of a run.

    Every id must belong to the run; nothing is written otherwise.
    """
    await get_run(session, run_id)
    ids = [u["id"] for u in updates]
    res = await session.execute(select(Article).where(Article.run_id == run_id, Article.id.in_(ids)))
    by_id = {a.id: a for a in res.scalars().all()}
    missing = [i for i in ids if i not in by_id]
    if missing:
        raise NotFound(f"Articles not in run {run_id}: {missing}")
    for u in updates:
        article = by_id[u["id"]]
        if "is_kept" in u and u["is_kept"] is not None:
            article.is_kept = bool(u["is_kept"])
        if "sort_index" in u:
            article.sort_index = u["sort_index"]
        session.add(article)
    await session.commit()
    return len(updates)

async def newsletter_html(session: AsyncSession, run_id: int) -> Tuple[str, str]:
    """(title, html) of the latest stored newsletter, rendered on the fly when none exists."""
    run = await get_run(session, run_id)
    newsletter = await latest_newsletter(session, run_id)
    if newsletter is not None:
        return newsletter.title, newsletter.html_content
    title = newsletter_title(run.topic)
    entries = await load_entries(RunStore(session), run_id)
    return title, render_newsletter_html(title, entries)

# profiles

PROFILE_FIELDS = ("name", "default_source_urls", "default_keywords", "trends_to_watch", "competitors_to_monitor")

async def list_profiles(session: AsyncSession) -> List[Profile]:
    res = await session.execute(select(Profile).order_by(Profile.name, Profile.id))
    return list(res.scalars().all())

async def get_profile(session: AsyncSession, profile_id: int) -> Profile:
    profile = await session.get(Profile, profile_id)
    if profile is None:
        raise NotFound(f"Profile {profile_id} not found")
    return profile

async def create_profile(session: AsyncSession, **fields: Any) -> Profile:
    name = (fields.get("name") or "").strip()
    if not name:
        raise ValueError("name is required")
    profile = Profile(**{k: v for k, v in fields.items() if k in PROFILE_FIELDS and v is not None})
    profile.name = name
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    return profile

async def update_profile(session: AsyncSession, profile_id: int, **fields: Any) -> Profile:
    profile = await get_profile(session, profile_id)
    if fields.get("name") is not None and not fields["name"].strip():
        raise ValueError("name is required")
    for k, v in fields.items():
        if k in PROFILE_FIELDS and v is not None:
            setattr(profile, k, v.strip() if k == "name" else list(v))
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    return profile

async def delete_profile(session: AsyncSession, profile_id: int) -> None:
    profile = await get_profile(session, profile_id)
    # runs keep their copied defaults; only the reference goes
    res = await session.execute(select(Run).where(Run.profile_id == profile_id))
    for run in res.scalars().all():
        run.profile_id = None
        session.add(run)
    await session.delete(profile)
    await session.commit()
