"""In-memory build history, loaded from a JSON file.

This is a minimal host adapter: it lets the policy be evaluated outside a CI
server, e.g. from the CLI or in tests.

File format:

    {
      "builds": [
        {
          "number": 42,
          "result": "SUCCESS",
          "causes": [{"kind": "scm", "description": "Started by an SCM change"}],
          "start_time_millis": 1700000000000,
          "badges": ["sonar"],
          "variables": {"SKIP_SONAR": "false"}
        }
      ]
    }

Builds are chained by descending `number`; the highest number is the build
under evaluation.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import cast

from pydantic import BaseModel, Field, ValidationError, field_validator

from .build import BuildContext, BuildResult, Cause, CauseKind

logger = logging.getLogger(__name__)


class HistoryError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class BuildRecord:
    """A single build. Satisfies `BuildContext`."""

    number: int
    result: BuildResult | None = None
    causes: tuple[Cause, ...] = ()
    start_time_millis: int = 0
    badges: frozenset[str] = frozenset()
    variables: Mapping[str, str] = field(default_factory=dict, hash=False)
    # Excluded from repr/eq so long histories don't recurse.
    previous_build: BuildRecord | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Read-only view; the record is immutable and hashable.
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))

    def resolve_variable(self, name: str) -> str | None:
        return self.variables.get(name)


@dataclass(frozen=True, slots=True)
class MarkerBadgeLookup:
    """Badge lookup over `BuildRecord.badges`."""

    marker: str = "sonar"

    def has_analysis_badge(self, build: BuildContext) -> bool:
        badges = getattr(build, "badges", ())
        return self.marker in badges


class CauseEntry(BaseModel):
    kind: CauseKind = CauseKind.OTHER
    description: str = ""

    @field_validator("kind", mode="before")
    @classmethod
    def _lower_kind(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value


class BuildEntry(BaseModel):
    number: int = Field(ge=0)
    result: BuildResult | None = None
    causes: list[CauseEntry] = Field(default_factory=list)
    start_time_millis: int = Field(default=0, ge=0)
    badges: list[str] = Field(default_factory=list)
    variables: dict[str, str] = Field(default_factory=dict)

    @field_validator("result", mode="before")
    @classmethod
    def _parse_result(cls, value: object) -> object:
        if isinstance(value, str):
            return BuildResult.parse(value)
        return value


class HistoryFile(BaseModel):
    builds: list[BuildEntry]


def chain_builds(entries: Sequence[BuildEntry]) -> BuildRecord:
    """Link entries oldest-to-newest and return the newest build."""

    if not entries:
        raise HistoryError("History contains no builds")

    counts = Counter(e.number for e in entries)
    duplicates = sorted(n for n, count in counts.items() if count > 1)
    if duplicates:
        raise HistoryError(f"Duplicate build numbers in history: {duplicates}")

    previous: BuildRecord | None = None
    for entry in sorted(entries, key=lambda e: e.number):
        previous = BuildRecord(
            number=entry.number,
            result=entry.result,
            causes=tuple(Cause(kind=c.kind, description=c.description) for c in entry.causes),
            start_time_millis=entry.start_time_millis,
            badges=frozenset(entry.badges),
            variables=dict(entry.variables),
            previous_build=previous,
        )
    # Non-empty entries always produce a record.
    return cast(BuildRecord, previous)


def parse_history(data: object) -> BuildRecord:
    try:
        history = HistoryFile.model_validate(data)
    except ValidationError as e:
        raise HistoryError(f"Invalid build history: {e}") from e
    return chain_builds(history.builds)


def load_history(path: Path) -> BuildRecord:
    """Load a history file and return the build under evaluation."""

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise HistoryError(f"History file is not valid JSON: {path}: {e}") from e

    build = parse_history(raw)
    logger.debug("Loaded build history", extra={"path": str(path), "build": build.number})
    return build
