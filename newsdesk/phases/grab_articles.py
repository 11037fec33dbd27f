"""Fetch, screen and deduplicate a run's discovered articles.

Three sub-stages, each a barrier and each only picking up articles not yet
past it, so a retried phase resumes where it stopped:

1. fetch + extract   (articles not fetched yet)
2. relevancy check   (fetched, kept, with text, not yet classified)
3. dedup             (fetched, relevant, kept, not already a duplicate)
"""

from __future__ import annotations
import logging

from newsdesk.errors import LLMError
from newsdesk.models import Article, Run
from newsdesk.phases.deps import RELEVANCY_CHARS, PipelineDeps
from newsdesk.phases.guard import PhaseContext, PhaseName, PhaseResult, guarded
from newsdesk.services.dedup import find_duplicates
from newsdesk.services.extract import extract_content, parse_date
from newsdesk.services.fetch import fetch_html
from newsdesk.services.pool import bounded_gather
from newsdesk.services.prompts import RELEVANCY_SYSTEM, RELEVANCY_USER, fill_template
from newsdesk.services.schemas import RELEVANCY_SCHEMA
from newsdesk.services.store import RunStore
from newsdesk.services.urls import normalize_url

logger = logging.getLogger(__name__)

async def fetch_stage(store: RunStore, run_id: int, deps: PipelineDeps, ctx: PhaseContext) -> None:
    articles = await store.list_articles(run_id, is_fetched=False)
    ctx.log(f"Fetching {len(articles)} articles")

    async def fetch_one(article: Article) -> bool:
        try:
            html = await fetch_html(deps.http, article.url, timeout_s=deps.fetch_timeout_s)
            content = extract_content(html, article.url)
        except Exception as e:
            ctx.log(f"FAILED: {article.url} — {e}")
            logger.warning("Fetch failed for %s: %s", article.url, e)
            await store.update_article(article, is_fetched=True, is_kept=False)
            return False
        await store.update_article(
            article,
            is_fetched=True,
            title=content.title or article.title,
            content_text=content.text,
            word_count=content.word_count,
            canonical_url=normalize_url(content.canonical_url) if content.canonical_url else None,
            publish_date=parse_date(content.publish_date) or article.publish_date,
        )
        if not content.text:
            ctx.log(f"No text extracted from {article.url}")
        return True

    results = await bounded_gather(articles, fetch_one, deps.fetch_concurrency)
    ok = sum(1 for r in results if r is True)
    for article, r in zip(articles, results):
        if isinstance(r, BaseException):
            ctx.log(f"FAILED: {article.url} — {r}")
    ctx.log(f"Fetched {ok}/{len(articles)}")

async def relevancy_stage(store: RunStore, run: Run, deps: PipelineDeps, ctx: PhaseContext) -> None:
    articles = await store.list_articles(run.id, is_fetched=True, is_kept=True, has_text=True, is_relevant=None)
    ctx.log(f"Checking relevancy of {len(articles)} articles")
    keywords = ", ".join(run.keywords or [])

    async def classify(article: Article) -> bool:
        user = fill_template(RELEVANCY_USER, {
            "TOPIC": run.topic,
            "KEYWORDS": keywords,
            "TITLE": article.title or "",
            "CONTENT_PREVIEW": (article.content_text or "")[:RELEVANCY_CHARS],
        })
        try:
            verdict = await deps.llm.generate_structured(RELEVANCY_SYSTEM, user, RELEVANCY_SCHEMA)
        except LLMError as e:
            # fail open: an unscreened article stays in the pipeline
            ctx.log(f"Relevancy check failed for {article.url}, keeping it: {e}")
            await store.update_article(article, is_relevant=True)
            return True
        relevant = bool(verdict["is_relevant"])
        await store.update_article(article, is_relevant=relevant)
        if not relevant:
            ctx.log(f"Not relevant: {article.url} ({verdict.get('reason', '')})")
        return relevant

    results = await bounded_gather(articles, classify, deps.llm_concurrency)
    for article, r in zip(articles, results):
        if isinstance(r, BaseException):
            ctx.log(f"FAILED: {article.url} — {r}")
    ctx.log(f"Relevant: {sum(1 for r in results if r is True)}/{len(articles)}")

async def dedup_stage(store: RunStore, run_id: int, ctx: PhaseContext) -> None:
    articles = await store.list_articles(run_id, is_fetched=True, is_relevant=True, is_kept=True, is_duplicate=False)
    marks = find_duplicates(articles)
    by_id = {a.id: a for a in articles}
    for mark in marks:
        await store.update_article(by_id[mark.article_id], is_duplicate=True, duplicate_of_id=mark.duplicate_of_id)
        ctx.log(f"Duplicate ({mark.reason}): {by_id[mark.article_id].url} of #{mark.duplicate_of_id}")
    ctx.log(f"Marked {len(marks)} duplicates among {len(articles)} articles")

async def grab_articles(store: RunStore, run_id: int, deps: PipelineDeps) -> PhaseResult:
    async def work(ctx: PhaseContext) -> None:
        run = await store.get_run(run_id)
        await fetch_stage(store, run_id, deps, ctx)
        await relevancy_stage(store, run, deps, ctx)
        await dedup_stage(store, run_id, ctx)

    return await guarded(store, run_id, PhaseName.grab_articles, work)
