from __future__ import annotations
from typing import List, Optional

class NewsdeskError(Exception):
    """Base class for errors raised by the pipeline."""

class NotFound(NewsdeskError):
    pass

class Conflict(NewsdeskError):
    pass

class ExternalCallFailure(NewsdeskError):
    """An HTTP fetch or LLM call failed. Handled per item, never fatal to a phase."""

class FetchError(ExternalCallFailure):
    pass

class LLMError(ExternalCallFailure):
    pass

class PhaseFailure(NewsdeskError):
    def __init__(self, phase: str, message: str, logs: Optional[List[str]] = None):
        super().__init__(message)
        self.phase = phase
        self.message = message
        self.logs = list(logs or [])
