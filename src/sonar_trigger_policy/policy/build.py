"""Read-only view of a CI build, as seen by the trigger policy.

The host owns the real build objects. The policy only depends on the narrow
protocols below, so any host adapter (or a test double) can be plugged in.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class BuildResult(str, Enum):
    """Build outcome on the host's severity scale."""

    SUCCESS = "SUCCESS"
    UNSTABLE = "UNSTABLE"
    FAILURE = "FAILURE"
    NOT_BUILT = "NOT_BUILT"
    ABORTED = "ABORTED"

    @property
    def ordinal(self) -> int:
        return _SEVERITY[self]

    def is_worse_than(self, other: BuildResult) -> bool:
        return self.ordinal > other.ordinal

    @classmethod
    def parse(cls, name: str) -> BuildResult:
        try:
            return cls(name.strip().upper())
        except ValueError:
            raise ValueError(f"Unknown build result: {name!r}") from None

    def __str__(self) -> str:
        return self.value


_SEVERITY: dict[BuildResult, int] = {
    BuildResult.SUCCESS: 0,
    BuildResult.UNSTABLE: 1,
    BuildResult.FAILURE: 2,
    BuildResult.NOT_BUILT: 3,
    BuildResult.ABORTED: 4,
}


class CauseKind(str, Enum):
    SCM = "scm"
    UPSTREAM = "upstream"
    USER = "user"
    TIMER = "timer"
    REMOTE = "remote"
    # Build started by the analysis step itself.
    ANALYSIS = "analysis"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class Cause:
    """Why a build started."""

    kind: CauseKind
    description: str = ""

    def is_scm_cause(self) -> bool:
        return self.kind is CauseKind.SCM

    def is_upstream_cause(self) -> bool:
        return self.kind is CauseKind.UPSTREAM


class BuildContext(Protocol):
    """What the policy needs to know about a build."""

    @property
    def result(self) -> BuildResult | None:
        """Outcome, or None while the build is still running."""
        ...

    @property
    def causes(self) -> Sequence[Cause]: ...

    @property
    def start_time_millis(self) -> int:
        """Build start time in epoch milliseconds."""
        ...

    @property
    def previous_build(self) -> BuildContext | None: ...

    def resolve_variable(self, name: str) -> str | None: ...


class BadgeLookup(Protocol):
    """Tells whether the analysis step ran during a build."""

    def has_analysis_badge(self, build: BuildContext) -> bool: ...
