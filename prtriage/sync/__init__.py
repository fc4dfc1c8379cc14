"""PR synchronization engine."""

from .engine import OptimisticUpdate, SyncEngine
from .merge_queue import MERGE_QUEUE_ERROR_PATTERNS, choose_merge_method, is_merge_queue_error
from .normalization import normalize_pull_request, normalize_search

__all__ = [
    "MERGE_QUEUE_ERROR_PATTERNS",
    "OptimisticUpdate",
    "SyncEngine",
    "choose_merge_method",
    "is_merge_queue_error",
    "normalize_pull_request",
    "normalize_search",
]
