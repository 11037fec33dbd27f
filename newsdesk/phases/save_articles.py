from __future__ import annotations

from newsdesk.models import RunStatus
from newsdesk.phases.deps import PipelineDeps
from newsdesk.phases.guard import PhaseContext, PhaseName, PhaseResult, guarded
from newsdesk.services.store import RunStore

async def save_articles(store: RunStore, run_id: int, deps: PipelineDeps) -> PhaseResult:
    async def work(ctx: PhaseContext) -> None:
        run = await store.get_run(run_id)
        kept = await store.count_articles(run_id, kept_with_summary=True)
        newsletters = await store.count_newsletters(run_id)
        await store.update_run(run, status=RunStatus.completed.value)
        ctx.log(f"Saved {kept} summarised articles and {newsletters} newsletter(s)")
        ctx.log(f"Export: /api/runs/{run_id}/export/json")
        ctx.log(f"Newsletter: /api/runs/{run_id}/newsletter")

    return await guarded(store, run_id, PhaseName.save_articles, work)
