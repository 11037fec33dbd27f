import pytest

from newsdesk.errors import Conflict, NotFound, PhaseFailure
from newsdesk.models import PhaseStatus, RunStatus
from newsdesk.phases.guard import ALREADY_COMPLETED, PhaseName, guarded
from newsdesk.services.runs import create_run
from newsdesk.services.store import RunStore

def test_phase_order():
    assert PhaseName.ordered()[0] is PhaseName.extract_information
    assert PhaseName.ordered()[-1] is PhaseName.save_articles
    assert PhaseName.rank_articles.following() == [
        PhaseName.rank_articles,
        PhaseName.summarise_articles,
        PhaseName.generate_final_newsletter,
        PhaseName.save_articles,
    ]
    assert PhaseName.grab_articles < PhaseName.rank_articles

def test_parse_unknown_phase():
    with pytest.raises(ValueError):
        PhaseName.parse("bake_cake")

def test_success_then_idempotent(run_db):
    calls = []

    async def work(ctx):
        calls.append(1)
        ctx.log("did the thing")

    async def scenario(session):
        run = await create_run(session, run_name="r", topic="t")
        store = RunStore(session)
        first = await guarded(store, run.id, PhaseName.extract_information, work)
        phase = await store.get_phase(run.id, "extract_information")
        second = await guarded(store, run.id, PhaseName.extract_information, work)
        run = await store.get_run(run.id)
        return first, phase, second, run

    first, phase, second, run = run_db(scenario)
    assert first.status == "completed"
    assert first.logs == ["did the thing"]
    assert phase.status == PhaseStatus.completed
    assert phase.logs == "did the thing"
    assert phase.started_at is not None and phase.completed_at is not None
    assert second.status == ALREADY_COMPLETED
    assert len(calls) == 1
    assert run.status == RunStatus.running

def test_in_progress_conflict_leaves_timestamps(run_db):
    async def work(ctx):
        raise AssertionError("must not run")

    async def scenario(session):
        run = await create_run(session, run_name="r", topic="t")
        store = RunStore(session)
        await store.set_phase_status(run.id, "source_articles", PhaseStatus.in_progress)
        with pytest.raises(Conflict):
            await guarded(store, run.id, PhaseName.source_articles, work)
        return await store.get_phase(run.id, "source_articles")

    phase = run_db(scenario)
    assert phase.status == PhaseStatus.in_progress
    assert phase.started_at is None
    assert phase.completed_at is None

def test_failure_records_error_and_allows_retry(run_db):
    attempts = []

    async def work(ctx):
        attempts.append(1)
        ctx.log("starting")
        if len(attempts) == 1:
            raise RuntimeError("upstream exploded")
        ctx.log("second time lucky")

    async def scenario(session):
        run = await create_run(session, run_name="r", topic="t")
        store = RunStore(session)
        with pytest.raises(PhaseFailure) as exc:
            await guarded(store, run.id, PhaseName.grab_articles, work)
        failed_phase = await store.get_phase(run.id, "grab_articles")
        failed = (failed_phase.status, failed_phase.error, failed_phase.logs, (await store.get_run(run.id)).status)
        retry = await guarded(store, run.id, PhaseName.grab_articles, work)
        ok_phase = await store.get_phase(run.id, "grab_articles")
        return exc.value, failed, retry, ok_phase, await store.get_run(run.id)

    exc, failed, retry, ok_phase, run = run_db(scenario)
    assert exc.phase == "grab_articles"
    assert exc.message == "upstream exploded"
    assert exc.logs == ["starting", "ERROR: upstream exploded"]
    assert isinstance(exc.__cause__, RuntimeError)
    assert failed == ("failed", "upstream exploded", "starting\nERROR: upstream exploded", "failed")
    assert retry.status == "completed"
    assert ok_phase.error is None
    assert run.status == RunStatus.running

def test_skip(run_db):
    async def work(ctx):
        ctx.skip("not applicable")

    async def scenario(session):
        run = await create_run(session, run_name="r", topic="t")
        store = RunStore(session)
        res = await guarded(store, run.id, PhaseName.rank_articles, work)
        again = await guarded(store, run.id, PhaseName.rank_articles, work)
        return res, again, await store.get_phase(run.id, "rank_articles")

    res, again, phase = run_db(scenario)
    assert res.status == "skipped"
    assert again.status == ALREADY_COMPLETED
    assert phase.status == PhaseStatus.skipped

def test_missing_phase(run_db):
    async def work(ctx):
        pass

    async def scenario(session):
        with pytest.raises(NotFound):
            await guarded(RunStore(session), 999, PhaseName.extract_information, work)

    run_db(scenario)
