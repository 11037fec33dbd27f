from __future__ import annotations
from newsdesk.models import RunStatus
from newsdesk.phases.deps import PipelineDeps
from newsdesk.phases.guard import PhaseContext, PhaseName, PhaseResult, guarded
from newsdesk.services.prompts import KEYWORDS_SYSTEM, KEYWORDS_USER, fill_template
from newsdesk.services.schemas import KEYWORDS_SCHEMA
from newsdesk.services.store import RunStore

async def extract_information(store: RunStore, run_id: int, deps: PipelineDeps) -> PhaseResult:
    async def work(ctx: PhaseContext) -> None:
        run = await store.get_run(run_id)
        ctx.log(f"Topic: {run.topic}")

        if run.keywords:
            ctx.log(f"Keywords: {', '.join(run.keywords)}")
        else:
            ctx.log("No keywords given, generating from topic")
            data = await deps.llm.generate_structured(
                KEYWORDS_SYSTEM,
                fill_template(KEYWORDS_USER, {"TOPIC": run.topic}),
                KEYWORDS_SCHEMA,
            )
            keywords = [k.strip() for k in data["keywords"] if k and k.strip()]
            await store.update_run(run, keywords=keywords)
            ctx.log(f"Generated keywords: {', '.join(keywords)}")

        if run.specific_urls:
            ctx.log(f"Specific URLs: {len(run.specific_urls)}")
        elif run.source_urls:
            ctx.log(f"Source URLs: {len(run.source_urls)}")
        else:
            profile = await store.get_profile(run.profile_id) if run.profile_id else None
            if profile is not None and profile.default_source_urls:
                await store.update_run(run, source_urls=list(profile.default_source_urls))
                ctx.log(f"Inherited {len(profile.default_source_urls)} source URLs from profile '{profile.name}'")
            else:
                ctx.log("WARNING: no specific or source URLs configured, nothing will be sourced")

        await store.update_run(run, status=RunStatus.running.value)

    return await guarded(store, run_id, PhaseName.extract_information, work)
