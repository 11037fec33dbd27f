"""Phase state machine.

Every phase handler runs inside :func:`guarded`, which owns the phase row's
status transitions:

    pending/failed --claim--> in_progress --ok--> completed | skipped
                                         \\--error--> failed

Completed (and skipped) phases are never re-run; an in-progress phase can't
be entered a second time.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional
import logging

from newsdesk.errors import Conflict, NotFound, PhaseFailure
from newsdesk.models import PhaseStatus, RunStatus
from newsdesk.services.store import RunStore

logger = logging.getLogger(__name__)

class PhaseName(str, Enum):
    extract_information = "extract_information"
    source_articles = "source_articles"
    grab_articles = "grab_articles"
    rank_articles = "rank_articles"
    summarise_articles = "summarise_articles"
    generate_final_newsletter = "generate_final_newsletter"
    save_articles = "save_articles"

    @classmethod
    def ordered(cls) -> List["PhaseName"]:
        return list(cls)

    @property
    def position(self) -> int:
        return PhaseName.ordered().index(self)

    def following(self) -> List["PhaseName"]:
        """This phase and every phase after it, in pipeline order."""
        return PhaseName.ordered()[self.position:]

    def __lt__(self, other):
        if isinstance(other, PhaseName):
            return self.position < other.position
        return NotImplemented

    @classmethod
    def parse(cls, name: str) -> "PhaseName":
        try:
            return cls(name)
        except ValueError:
            raise ValueError(f"Unknown phase: {name}") from None

ALREADY_COMPLETED = "already_completed"

@dataclass
class PhaseResult:
    status: str  # completed | skipped | already_completed | failed
    logs: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def as_dict(self) -> dict:
        out = {"status": self.status, "logs": self.logs}
        if self.error is not None:
            out["error"] = self.error
        return out

class PhaseContext:
    """Handed to phase work: a log sink plus a way to declare the phase inapplicable."""

    def __init__(self, run_id: int, phase: PhaseName):
        self.run_id = run_id
        self.phase = phase
        self.logs: List[str] = []
        self.skipped = False

    def log(self, line: str) -> None:
        self.logs.append(line)
        logger.info("[run %s %s] %s", self.run_id, self.phase.value, line)

    def skip(self, reason: str) -> None:
        self.log(reason)
        self.skipped = True

PhaseWork = Callable[[PhaseContext], Awaitable[None]]

async def guarded(store: RunStore, run_id: int, phase_name: PhaseName, work: PhaseWork) -> PhaseResult:
    phase = await store.get_phase(run_id, phase_name.value)
    if phase is None:
        raise NotFound(f"Phase {phase_name.value} not found for run {run_id}")

    if phase.status in (PhaseStatus.completed, PhaseStatus.skipped):
        return PhaseResult(ALREADY_COMPLETED, ["Phase already completed"])
    if phase.status == PhaseStatus.in_progress:
        raise Conflict(f"Phase {phase_name.value} is already in progress")

    if not await store.claim_phase(phase):
        # lost a race: someone else moved the status between our read and write
        if phase.status in (PhaseStatus.completed, PhaseStatus.skipped):
            return PhaseResult(ALREADY_COMPLETED, ["Phase already completed"])
        raise Conflict(f"Phase {phase_name.value} is already in progress")

    run = await store.get_run(run_id)
    if run.status in (RunStatus.created, RunStatus.failed):
        await store.update_run(run, status=RunStatus.running.value)

    ctx = PhaseContext(run_id, phase_name)
    try:
        await work(ctx)
    except Exception as e:
        message = str(e) or type(e).__name__
        ctx.logs.append(f"ERROR: {message}")
        logger.exception("Phase %s failed for run %s", phase_name.value, run_id)
        await store.finish_phase(phase, PhaseStatus.failed, ctx.logs, error=message)
        await store.update_run(run, status=RunStatus.failed.value)
        raise PhaseFailure(phase_name.value, message, ctx.logs) from e

    status = PhaseStatus.skipped if ctx.skipped else PhaseStatus.completed
    await store.finish_phase(phase, status, ctx.logs)
    return PhaseResult(status.value, ctx.logs)
