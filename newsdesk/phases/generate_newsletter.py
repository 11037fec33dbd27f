from __future__ import annotations

from newsdesk.models import Newsletter
from newsdesk.phases.deps import PipelineDeps
from newsdesk.phases.guard import PhaseContext, PhaseName, PhaseResult, guarded
from newsdesk.services.newsletter import NewsletterEntry, newsletter_title, order_entries, render_newsletter_html
from newsdesk.services.store import RunStore

def curated_order(article) -> tuple:
    # manual sort_index first, then discovery order
    return (article.sort_index is None, article.sort_index or 0, article.created_at, article.id)

async def load_entries(store: RunStore, run_id: int):
    articles = sorted(await store.list_articles(run_id, is_kept=True, summarised=True), key=curated_order)
    ids = [a.id for a in articles]
    summaries = await store.summaries_for(ids)
    rankings = await store.rankings_for(ids)
    return order_entries([NewsletterEntry(a, summaries[a.id], rankings.get(a.id)) for a in articles])

async def generate_final_newsletter(store: RunStore, run_id: int, deps: PipelineDeps) -> PhaseResult:
    async def work(ctx: PhaseContext) -> None:
        run = await store.get_run(run_id)
        entries = await load_entries(store, run_id)
        if not entries:
            ctx.log("No summarised articles, no newsletter generated")
            return
        title = newsletter_title(run.topic)
        html = render_newsletter_html(title, entries)
        newsletter = await store.add(Newsletter(run_id=run_id, title=title, html_content=html))
        ctx.log(f"Newsletter #{newsletter.id} '{title}' with {len(entries)} articles")

    return await guarded(store, run_id, PhaseName.generate_final_newsletter, work)
