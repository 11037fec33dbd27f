from __future__ import annotations
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.models import utcnow
from newsdesk.services.runs import get_run_detail
from newsdesk.services.store import RunStore

async def export_run_json(session: AsyncSession, run_id: int) -> dict:
    """Everything a downstream consumer needs about one run, JSON-ready."""
    detail = await get_run_detail(session, run_id)
    newsletter = detail.pop("newsletter")
    articles = detail.pop("articles")
    phases = detail.pop("phases")
    return {
        "exported_at": utcnow().isoformat(),
        "run": detail,
        "phases": phases,
        "articles": articles,
        "summary": {
            "total": len(articles),
            "kept": sum(1 for a in articles if a["is_kept"]),
            "shortlisted": sum(1 for a in articles if a["is_shortlisted"]),
            "summarised": sum(1 for a in articles if a["summary"] is not None),
        },
        "newsletter_count": await RunStore(session).count_newsletters(run_id),
        "latest_newsletter": newsletter,
    }
