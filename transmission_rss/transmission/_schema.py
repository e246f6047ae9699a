from dataclasses import dataclass
from typing import Literal, TypeAlias


@dataclass(frozen=True)
class Added:
    fingerprint: str
    name: str = ""
    type: Literal["added"] = "added"


@dataclass(frozen=True)
class Duplicate:
    fingerprint: str
    name: str = ""
    type: Literal["duplicate"] = "duplicate"


@dataclass(frozen=True)
class Failed:
    reason: str
    type: Literal["failed"] = "failed"


SubmissionOutcome: TypeAlias = Added | Duplicate | Failed
