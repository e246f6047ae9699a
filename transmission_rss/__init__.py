from .config import Config, FeedSource, load_config
from .core import RunCoordinator, RunReport, run_once
from .version import __version__

__all__ = [
    "Config",
    "FeedSource",
    "RunCoordinator",
    "RunReport",
    "load_config",
    "run_once",
    "__version__",
]
