from __future__ import annotations
from typing import Awaitable, Callable, Dict, List, Union
import logging

from newsdesk.errors import PhaseFailure
from newsdesk.phases.deps import PipelineDeps
from newsdesk.phases.extract_information import extract_information
from newsdesk.phases.generate_newsletter import generate_final_newsletter
from newsdesk.phases.grab_articles import grab_articles
from newsdesk.phases.guard import PhaseName, PhaseResult
from newsdesk.phases.rank_articles import rank_articles
from newsdesk.phases.save_articles import save_articles
from newsdesk.phases.source_articles import source_articles
from newsdesk.phases.summarise_articles import summarise_articles
from newsdesk.services.store import RunStore

logger = logging.getLogger(__name__)

PhaseHandler = Callable[[RunStore, int, PipelineDeps], Awaitable[PhaseResult]]

PHASE_HANDLERS: Dict[PhaseName, PhaseHandler] = {
    PhaseName.extract_information: extract_information,
    PhaseName.source_articles: source_articles,
    PhaseName.grab_articles: grab_articles,
    PhaseName.rank_articles: rank_articles,
    PhaseName.summarise_articles: summarise_articles,
    PhaseName.generate_final_newsletter: generate_final_newsletter,
    PhaseName.save_articles: save_articles,
}

async def run_phase(store: RunStore, run_id: int, phase_name: Union[str, PhaseName], deps: PipelineDeps) -> PhaseResult:
    """Run one phase. Unknown names raise ValueError; a failing phase raises PhaseFailure."""
    phase = phase_name if isinstance(phase_name, PhaseName) else PhaseName.parse(phase_name)
    logger.info("Run %s: phase %s", run_id, phase.value)
    return await PHASE_HANDLERS[phase](store, run_id, deps)

async def run_from(store: RunStore, run_id: int, phase_name: Union[str, PhaseName], deps: PipelineDeps) -> List[dict]:
    """Run a phase and every later one in order, stopping at the first failure."""
    start = phase_name if isinstance(phase_name, PhaseName) else PhaseName.parse(phase_name)
    results: List[dict] = []
    for phase in start.following():
        try:
            result = await run_phase(store, run_id, phase, deps)
        except PhaseFailure as e:
            results.append({"phase": phase.value, "status": "failed", "logs": e.logs, "error": e.message})
            logger.warning("Run %s stopped at %s: %s", run_id, phase.value, e.message)
            break
        results.append({"phase": phase.value, **result.as_dict()})
    return results
