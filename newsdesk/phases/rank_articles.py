from __future__ import annotations
import logging

from newsdesk.errors import LLMError
from newsdesk.models import Article, ArticleRanking
from newsdesk.phases.deps import RANKING_CHARS, PipelineDeps
from newsdesk.phases.guard import PhaseContext, PhaseName, PhaseResult, guarded
from newsdesk.services.pool import bounded_gather
from newsdesk.services.prompts import RANKING_SYSTEM, RANKING_USER, fill_template
from newsdesk.services.schemas import RANKING_SCHEMA
from newsdesk.services.store import RunStore

logger = logging.getLogger(__name__)

async def rank_articles(store: RunStore, run_id: int, deps: PipelineDeps) -> PhaseResult:
    async def work(ctx: PhaseContext) -> None:
        run = await store.get_run(run_id)
        if not run.ranking_enabled:
            ctx.skip("Ranking disabled for this run")
            return

        articles = await store.list_articles(
            run_id, is_relevant=True, is_duplicate=False, is_kept=True, has_text=True, unranked=True,
        )
        ctx.log(f"Ranking {len(articles)} articles (shortlist at score >= {run.min_fit_score})")

        async def rank_one(article: Article) -> bool:
            user = fill_template(RANKING_USER, {
                "TOPIC": run.topic,
                "TITLE": article.title or "",
                "DOMAIN": article.domain,
                "URL": article.url,
                "WORD_COUNT": str(article.word_count or 0),
                "CONTENT": (article.content_text or "")[:RANKING_CHARS],
            })
            try:
                verdict = await deps.llm.generate_structured(RANKING_SYSTEM, user, RANKING_SCHEMA)
            except LLMError as e:
                ctx.log(f"FAILED: {article.url} — {e}")
                logger.warning("Ranking failed for article %s: %s", article.id, e)
                return False
            await store.add(ArticleRanking(
                article_id=article.id,
                category=verdict["category"],
                score=float(verdict["score"]),
                tier=verdict["tier"],
                key_findings=verdict["key_findings"],
                key_entities=verdict["key_entities"],
                rationale=verdict["rationale"],
                suggested_header=verdict["suggested_header"],
                raw_json=verdict,
            ))
            shortlisted = float(verdict["score"]) >= run.min_fit_score
            await store.update_article(article, is_shortlisted=shortlisted)
            ctx.log(f"{verdict['tier']} {float(verdict['score']):.1f}: {article.title or article.url}")
            return shortlisted

        results = await bounded_gather(articles, rank_one, deps.llm_concurrency)
        for article, r in zip(articles, results):
            if isinstance(r, BaseException):
                ctx.log(f"FAILED: {article.url} — {r}")
        ctx.log(f"Shortlisted {sum(1 for r in results if r is True)}/{len(articles)}")

    return await guarded(store, run_id, PhaseName.rank_articles, work)
