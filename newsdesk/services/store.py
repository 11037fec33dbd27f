"""Persistence operations used by the phase handlers.

A phase fans out work over many coroutines but owns a single AsyncSession,
which must not be used concurrently. Every RunStore call takes the store lock
and commits before returning, so each call is atomic on its own and
concurrent workers never interleave on the session.
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Sequence, TypeVar
import asyncio
import logging

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.errors import NotFound
from newsdesk.models import (
    Article, ArticleRanking, ArticleSummary, Newsletter, Profile, Run, RunPhase, PhaseStatus, utcnow,
)

logger = logging.getLogger(__name__)

M = TypeVar("M")

# statuses a phase may be (re)started from
CLAIMABLE = (PhaseStatus.pending.value, PhaseStatus.failed.value)

class RunStore:
    def __init__(self, session: AsyncSession):
        self.session = session
        self._lock = asyncio.Lock()

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    # runs & phases

    async def get_run(self, run_id: int) -> Run:
        async with self._lock:
            run = await self.session.get(Run, run_id, populate_existing=True)
        if run is None:
            raise NotFound(f"Run {run_id} not found")
        return run

    async def get_profile(self, profile_id: int) -> Optional[Profile]:
        async with self._lock:
            return await self.session.get(Profile, profile_id)

    async def update_run(self, run: Run, **fields: Any) -> Run:
        async with self._lock:
            for k, v in fields.items():
                setattr(run, k, v)
            self.session.add(run)
            await self._commit()
        return run

    async def get_phase(self, run_id: int, phase_name: str) -> Optional[RunPhase]:
        async with self._lock:
            res = await self.session.execute(
                select(RunPhase).where(RunPhase.run_id == run_id, RunPhase.phase_name == phase_name)
            )
            phase = res.scalars().first()
            if phase is not None:
                await self.session.refresh(phase)
            return phase

    async def claim_phase(self, phase: RunPhase) -> bool:
        """Move a pending/failed phase to in_progress in one conditional UPDATE.

        Returns False when another caller changed the status first; the
        phase object is refreshed either way.
        """
        async with self._lock:
            res = await self.session.execute(
                update(RunPhase)
                .where(RunPhase.id == phase.id, RunPhase.status.in_(CLAIMABLE))
                .values(status=PhaseStatus.in_progress.value, started_at=utcnow(), error=None)
                .execution_options(synchronize_session=False)
            )
            await self._commit()
            await self.session.refresh(phase)
            return res.rowcount == 1

    async def finish_phase(self, phase: RunPhase, status: PhaseStatus, logs: Sequence[str], error: Optional[str] = None) -> RunPhase:
        async with self._lock:
            phase.status = status.value
            phase.logs = "\n".join(logs)
            if status == PhaseStatus.failed:
                phase.error = error
            else:
                phase.completed_at = utcnow()
            self.session.add(phase)
            await self._commit()
        return phase

    async def set_phase_status(self, run_id: int, phase_name: str, status: PhaseStatus) -> None:
        async with self._lock:
            await self.session.execute(
                update(RunPhase)
                .where(RunPhase.run_id == run_id, RunPhase.phase_name == phase_name)
                .values(status=status.value)
                .execution_options(synchronize_session=False)
            )
            await self._commit()

    # articles

    async def list_articles(
        self,
        run_id: int,
        *,
        is_fetched: Optional[bool] = None,
        is_kept: Optional[bool] = None,
        is_relevant: Any = ...,
        is_duplicate: Optional[bool] = None,
        is_shortlisted: Optional[bool] = None,
        has_text: bool = False,
        unranked: bool = False,
        unsummarised: bool = False,
        summarised: bool = False,
    ) -> List[Article]:
        """Articles of a run in creation order, filtered by flag values.

        `is_relevant` is tri-state: pass None to select unclassified articles,
        leave it out to not filter on it at all.
        """
        stmt = select(Article).where(Article.run_id == run_id)
        for col, val in (
            (Article.is_fetched, is_fetched),
            (Article.is_kept, is_kept),
            (Article.is_duplicate, is_duplicate),
            (Article.is_shortlisted, is_shortlisted),
        ):
            if val is not None:
                stmt = stmt.where(col.is_(val))
        if is_relevant is not ...:
            stmt = stmt.where(Article.is_relevant.is_(is_relevant))
        if has_text:
            stmt = stmt.where(Article.content_text.is_not(None))
        if unranked:
            stmt = stmt.where(Article.id.not_in(select(ArticleRanking.article_id)))
        if unsummarised:
            stmt = stmt.where(Article.id.not_in(select(ArticleSummary.article_id)))
        if summarised:
            stmt = stmt.where(Article.id.in_(select(ArticleSummary.article_id)))
        stmt = stmt.order_by(Article.created_at, Article.id)
        async with self._lock:
            res = await self.session.execute(stmt)
            return list(res.scalars().all())

    async def update_article(self, article: Article, **fields: Any) -> Article:
        async with self._lock:
            for k, v in fields.items():
                setattr(article, k, v)
            self.session.add(article)
            await self._commit()
        return article

    async def insert_articles_if_absent(self, run_id: int, rows: Iterable[Dict[str, Any]]) -> int:
        """Insert new articles, skipping URLs the run already has. Returns the insert count."""
        rows = list(rows)
        if not rows:
            return 0
        async with self._lock:
            res = await self.session.execute(select(Article.url).where(Article.run_id == run_id))
            existing = set(res.scalars().all())
            created = 0
            for row in rows:
                if row["url"] in existing:
                    continue
                existing.add(row["url"])
                self.session.add(Article(run_id=run_id, **row))
                created += 1
            await self._commit()
        return created

    async def count_articles(self, run_id: int, *, kept_with_summary: bool = False) -> int:
        stmt = select(func.count(Article.id)).where(Article.run_id == run_id)
        if kept_with_summary:
            stmt = stmt.where(Article.is_kept.is_(True), Article.id.in_(select(ArticleSummary.article_id)))
        async with self._lock:
            return (await self.session.execute(stmt)).scalar_one()

    # rankings, summaries, newsletters

    async def add(self, obj: M) -> M:
        async with self._lock:
            self.session.add(obj)
            await self._commit()
            await self.session.refresh(obj)
        return obj

    async def rankings_for(self, article_ids: Sequence[int]) -> Dict[int, ArticleRanking]:
        if not article_ids:
            return {}
        async with self._lock:
            res = await self.session.execute(select(ArticleRanking).where(ArticleRanking.article_id.in_(list(article_ids))))
            return {r.article_id: r for r in res.scalars().all()}

    async def summaries_for(self, article_ids: Sequence[int]) -> Dict[int, ArticleSummary]:
        if not article_ids:
            return {}
        async with self._lock:
            res = await self.session.execute(select(ArticleSummary).where(ArticleSummary.article_id.in_(list(article_ids))))
            return {s.article_id: s for s in res.scalars().all()}

    async def count_newsletters(self, run_id: int) -> int:
        async with self._lock:
            res = await self.session.execute(select(func.count(Newsletter.id)).where(Newsletter.run_id == run_id))
            return res.scalar_one()
