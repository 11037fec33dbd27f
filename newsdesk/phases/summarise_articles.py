from __future__ import annotations
from typing import Dict, List, Optional
import logging

from newsdesk.errors import LLMError
from newsdesk.models import ArticleRanking, ArticleSummary, PhaseStatus, Run
from newsdesk.phases.deps import SUMMARY_CHARS, PipelineDeps
from newsdesk.phases.guard import PhaseContext, PhaseName, PhaseResult, guarded
from newsdesk.services.capping import Eligible, apply_caps
from newsdesk.services.pool import bounded_gather
from newsdesk.services.prompts import SUMMARY_SYSTEM, SUMMARY_USER, fill_template
from newsdesk.services.schemas import SUMMARY_SCHEMA
from newsdesk.services.store import RunStore

logger = logging.getLogger(__name__)

async def select_final(store: RunStore, run: Run, ctx: PhaseContext) -> List[Eligible]:
    """Pick the articles that make the newsletter and apply the volume caps.

    The shortlist only counts when ranking actually ran; otherwise every
    relevant, unique, kept article is a candidate.
    """
    rank_phase = await store.get_phase(run.id, PhaseName.rank_articles.value)
    use_shortlist = run.ranking_enabled and rank_phase is not None and rank_phase.status == PhaseStatus.completed
    if use_shortlist:
        articles = await store.list_articles(run.id, is_shortlisted=True, is_kept=True)
        ctx.log(f"{len(articles)} shortlisted articles")
    else:
        articles = await store.list_articles(run.id, is_relevant=True, is_duplicate=False, is_kept=True)
        ctx.log(f"Ranking not used, {len(articles)} relevant articles are candidates")

    rankings = await store.rankings_for([a.id for a in articles])
    outcome = apply_caps(
        [Eligible(a, rankings.get(a.id)) for a in articles],
        max_per_domain=run.max_per_domain,
        max_total=run.max_total_articles,
    )
    for domain, dropped in outcome.dropped_by_domain.items():
        ctx.log(f"Domain cap: dropped {len(dropped)} from {domain} (max {run.max_per_domain})")
    if outcome.dropped_by_total:
        ctx.log(f"Total cap: dropped {len(outcome.dropped_by_total)} (max {run.max_total_articles})")
    for e in outcome.dropped:
        if e.article.is_shortlisted:
            await store.update_article(e.article, is_shortlisted=False)
    return outcome.kept

async def summarise_articles(store: RunStore, run_id: int, deps: PipelineDeps) -> PhaseResult:
    async def work(ctx: PhaseContext) -> None:
        run = await store.get_run(run_id)
        final = await select_final(store, run, ctx)

        existing = await store.summaries_for([e.article.id for e in final])
        todo = [e for e in final if e.article.id not in existing]
        ctx.log(f"Summarising {len(todo)} articles ({len(final) - len(todo)} already done)")

        async def summarise(e: Eligible) -> bool:
            ranking: Optional[ArticleRanking] = e.ranking
            user = fill_template(SUMMARY_USER, {
                "TOPIC": run.topic,
                "TIER": ranking.tier if ranking else "Unranked",
                "SCORE": f"{ranking.score:g}" if ranking else "N/A",
                "TITLE": e.article.title or "",
                "CONTENT": (e.article.content_text or "")[:SUMMARY_CHARS],
            })
            try:
                data: Dict = await deps.llm.generate_structured(SUMMARY_SYSTEM, user, SUMMARY_SCHEMA)
            except LLMError as err:
                ctx.log(f"FAILED: {e.article.url} — {err}")
                logger.warning("Summary failed for article %s: %s", e.article.id, err)
                return False
            await store.add(ArticleSummary(
                article_id=e.article.id,
                summary_text=data["summary_text"],
                why_it_matters=data["why_it_matters"],
                implications=data.get("implications") or None,
            ))
            return True

        results = await bounded_gather(todo, summarise, deps.llm_concurrency)
        for e, r in zip(todo, results):
            if isinstance(r, BaseException):
                ctx.log(f"FAILED: {e.article.url} — {r}")
        ctx.log(f"Summarised {sum(1 for r in results if r is True)}/{len(todo)}")

    return await guarded(store, run_id, PhaseName.summarise_articles, work)
