from ._schema import Added, Duplicate, Failed, SubmissionOutcome
from .backend import DownloadBackend
from .client import SESSION_ID_HEADER, TransmissionClient

__all__ = [
    "Added",
    "Duplicate",
    "Failed",
    "SubmissionOutcome",
    "DownloadBackend",
    "TransmissionClient",
    "SESSION_ID_HEADER",
]
