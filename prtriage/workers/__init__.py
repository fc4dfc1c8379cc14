"""Background workers."""

from .triage_worker import RefreshResult, TriageWorker

__all__ = ["RefreshResult", "TriageWorker"]
