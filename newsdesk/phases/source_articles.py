from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional
import logging

from newsdesk.models import utcnow
from newsdesk.phases.deps import PipelineDeps
from newsdesk.phases.guard import PhaseContext, PhaseName, PhaseResult, guarded
from newsdesk.services.extract import extract_links
from newsdesk.services.feeds import is_feed, parse_feed
from newsdesk.services.fetch import fetch_html
from newsdesk.services.pool import bounded_gather
from newsdesk.services.store import RunStore
from newsdesk.services.urls import extract_domain, normalize_url

logger = logging.getLogger(__name__)

@dataclass
class Candidate:
    url: str
    title: Optional[str] = None
    published: Optional[datetime] = None

@dataclass
class SourceHarvest:
    source_url: str
    kind: str  # feed | page
    candidates: List[Candidate] = field(default_factory=list)
    too_old: int = 0

async def harvest_source(deps: PipelineDeps, source_url: str, lookback_days: int) -> SourceHarvest:
    """Fetch one source and list the article URLs it points to."""
    body = await fetch_html(deps.http, source_url, timeout_s=deps.fetch_timeout_s)
    if not is_feed(body):
        links = extract_links(body, source_url)
        return SourceHarvest(source_url, "page", [Candidate(u) for u in links])

    cutoff = utcnow() - timedelta(days=lookback_days)
    harvest = SourceHarvest(source_url, "feed")
    for item in parse_feed(body):
        if item.published is not None and item.published < cutoff:
            harvest.too_old += 1
            continue
        harvest.candidates.append(Candidate(item.url, item.title or None, item.published))
    return harvest

async def source_articles(store: RunStore, run_id: int, deps: PipelineDeps) -> PhaseResult:
    async def work(ctx: PhaseContext) -> None:
        run = await store.get_run(run_id)

        # normalized url -> row, first discovery wins
        found: Dict[str, dict] = {}

        def add(raw_url: str, title: Optional[str], source_url: Optional[str], published: Optional[datetime] = None) -> None:
            url = normalize_url(raw_url)
            if url in found:
                return
            found[url] = {
                "url": url, "title": title, "source_url": source_url,
                "domain": extract_domain(url), "publish_date": published,
            }

        if run.specific_urls:
            ctx.log(f"Using {len(run.specific_urls)} specific URLs")
            for u in run.specific_urls:
                add(u, None, None)
        else:
            sources = list(run.source_urls or [])
            ctx.log(f"Fetching {len(sources)} sources")
            results = await bounded_gather(
                sources,
                lambda s: harvest_source(deps, s, run.lookback_days),
                deps.fetch_concurrency,
            )
            failed = 0
            for source_url, res in zip(sources, results):
                if isinstance(res, BaseException):
                    failed += 1
                    ctx.log(f"FAILED: {source_url} — {res}")
                    logger.warning("Source %s failed: %s", source_url, res)
                    continue
                before = len(found)
                for c in res.candidates:
                    add(c.url, c.title, source_url, c.published)
                line = f"{source_url} ({res.kind}): {len(found) - before} new URLs"
                if res.too_old:
                    line += f", {res.too_old} older than {run.lookback_days} days skipped"
                ctx.log(line)
            ctx.log(f"Sources failed: {failed}/{len(sources)}")

        ctx.log(f"Discovered {len(found)} unique URLs")
        created = await store.insert_articles_if_absent(run_id, found.values())
        ctx.log(f"Stored {created} new articles")

    return await guarded(store, run_id, PhaseName.source_articles, work)
