from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from newsdesk.models import Article, PhaseStatus
from newsdesk.services.runs import create_run
from newsdesk.services.store import RunStore

UTC = timezone.utc

def test_timestamps_are_stored_and_loaded_as_utc(run_db):
    async def scenario(session):
        run = await create_run(session, run_name="r", topic="t")
        session.add(Article(run_id=run.id, url="https://a.com/naive", publish_date=datetime(2024, 1, 1, 12, 0)))
        session.add(Article(
            run_id=run.id, url="https://a.com/offset",
            publish_date=datetime(2024, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2))),
        ))
        await session.commit()

        store = RunStore(session)
        phase = await store.get_phase(run.id, "source_articles")
        assert await store.claim_phase(phase)
        await store.finish_phase(phase, PhaseStatus.completed, ["done"])

        res = await session.execute(
            select(Article).where(Article.run_id == run.id).order_by(Article.id)
            .execution_options(populate_existing=True)
        )
        articles = list(res.scalars().all())
        await session.refresh(run)
        return run, await store.get_phase(run.id, "source_articles"), articles

    run, phase, articles = run_db(scenario)
    assert run.created_at.tzinfo == UTC
    assert phase.started_at.tzinfo == UTC
    assert phase.completed_at >= phase.started_at
    assert [a.publish_date for a in articles] == [datetime(2024, 1, 1, 12, 0, tzinfo=UTC)] * 2
    assert all(a.created_at.tzinfo == UTC for a in articles)
