from .coordinator import FeedResult, RunCoordinator, RunReport, run_once
from .synchronizer import FeedSynchronizer, matches_filters

__all__ = [
    "FeedSynchronizer",
    "FeedResult",
    "RunCoordinator",
    "RunReport",
    "matches_filters",
    "run_once",
]
