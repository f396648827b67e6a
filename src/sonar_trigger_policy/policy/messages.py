"""Human-readable skip reasons.

Messages are looked up through a `MessageCatalog` so hosts can supply localized
strings. `TemplateMessageCatalog` covers the common case of plain `str.format`
templates keyed by message id.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class SkipCode(str, Enum):
    TIMEOUT_NOT_ELAPSED = "timeout_not_elapsed"
    BAD_BUILD_STATUS = "bad_build_status"
    SKIPPING_ANALYSIS = "skipping_analysis"


@dataclass(frozen=True, slots=True)
class SkipReason:
    """Why the analysis step was not run."""

    code: SkipCode
    message: str

    def __str__(self) -> str:
        return self.message


class MessageCatalog(Protocol):
    def timeout_not_elapsed(self, elapsed: str, timeout: str) -> str: ...

    def bad_build_status(self, result: str) -> str: ...

    def skipping_analysis(self) -> str: ...


DEFAULT_TEMPLATES: dict[str, str] = {
    SkipCode.TIMEOUT_NOT_ELAPSED.value: (
        "Skipping Sonar analysis: {elapsed} since the last analysis, timeout is {timeout}"
    ),
    SkipCode.BAD_BUILD_STATUS.value: "Skipping Sonar analysis due to bad build status {result}",
    SkipCode.SKIPPING_ANALYSIS.value: "Skipping Sonar analysis",
}


class TemplateMessageCatalog:
    """Message catalog backed by `str.format` templates.

    Templates missing from `templates` fall back to the English defaults.
    """

    def __init__(self, templates: Mapping[str, str] | None = None) -> None:
        self._templates = {**DEFAULT_TEMPLATES, **(templates or {})}

    def _render(self, code: SkipCode, **values: str) -> str:
        return self._templates[code.value].format(**values)

    def timeout_not_elapsed(self, elapsed: str, timeout: str) -> str:
        return self._render(SkipCode.TIMEOUT_NOT_ELAPSED, elapsed=elapsed, timeout=timeout)

    def bad_build_status(self, result: str) -> str:
        return self._render(SkipCode.BAD_BUILD_STATUS, result=result)

    def skipping_analysis(self) -> str:
        return self._render(SkipCode.SKIPPING_ANALYSIS)


def millis_to_human_readable(millis: int) -> str:
    """Render a duration as whole seconds, truncating toward zero."""

    seconds = abs(millis) // 1000
    return f"{-seconds if millis < 0 else seconds} s"
