"""Decide whether the analysis step should be skipped for a build.

Rules are checked in a fixed order and the first match wins:
1. the skip timeout since the last analysed build has not elapsed
2. the build result is worse than UNSTABLE
3. the configured build variable resolves to "true"
4. every cause of the build is blacklisted (or there are no causes)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from .build import BadgeLookup, BuildContext, BuildResult
from .config import TriggersConfig
from .messages import (
    MessageCatalog,
    SkipCode,
    SkipReason,
    TemplateMessageCatalog,
    millis_to_human_readable,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def system_clock() -> int:
    """Current wall-clock time in epoch milliseconds."""

    return time.time_ns() // 1_000_000


def last_analysis_time_millis(build: BuildContext, badges: BadgeLookup) -> int:
    """Start time of the most recent earlier build in which the analysis ran.

    Walks the previous-build chain iteratively. Returns 0 (the epoch) when no
    earlier build carries the analysis badge.
    """

    previous = build.previous_build
    visited = 0
    while previous is not None:
        visited += 1
        if badges.has_analysis_badge(previous):
            logger.debug(
                "Found last analysed build",
                extra={"builds_visited": visited, "start_time_millis": previous.start_time_millis},
            )
            return previous.start_time_millis
        previous = previous.previous_build

    logger.debug("No analysed build in history", extra={"builds_visited": visited})
    return 0


class TriggerPolicy:
    """Skip/allow decision for the analysis step.

    The policy keeps no per-call state; `evaluate` is reentrant.
    """

    def __init__(
        self,
        config: TriggersConfig,
        *,
        badges: BadgeLookup,
        messages: MessageCatalog | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config
        self._badges = badges
        self._messages: MessageCatalog = messages or TemplateMessageCatalog()
        self._clock: Clock = clock or system_clock

    def evaluate(self, build: BuildContext) -> SkipReason | None:
        """Return why the analysis should be skipped, or None to proceed."""

        reason = self._check(build)
        if reason is not None:
            logger.info("Skipping analysis", extra={"code": reason.code.value})
        return reason

    def should_skip(self, build: BuildContext) -> bool:
        return self.evaluate(build) is not None

    def _check(self, build: BuildContext) -> SkipReason | None:
        timeout_millis = self.config.skip_timeout_millis
        elapsed = self._clock() - last_analysis_time_millis(build, self._badges)
        if elapsed < timeout_millis:
            return SkipReason(
                SkipCode.TIMEOUT_NOT_ELAPSED,
                self._messages.timeout_not_elapsed(
                    millis_to_human_readable(elapsed), millis_to_human_readable(timeout_millis)
                ),
            )

        # UNSTABLE still means the build completed; only worse results are skipped.
        result = build.result
        if result is not None and result.is_worse_than(BuildResult.UNSTABLE):
            return SkipReason(
                SkipCode.BAD_BUILD_STATUS, self._messages.bad_build_status(str(result))
            )

        env_var = self.config.env_var
        if env_var is not None:
            value = build.resolve_variable(env_var)
            if value is not None and value.lower() == "true":
                return self._skipping()

        remaining = [
            cause
            for cause in build.causes
            if not (cause.is_scm_cause() and self.config.skip_on_scm_cause)
            and not (cause.is_upstream_cause() and self.config.skip_on_upstream_cause)
        ]
        if not remaining:
            return self._skipping()
        return None

    def _skipping(self) -> SkipReason:
        return SkipReason(SkipCode.SKIPPING_ANALYSIS, self._messages.skipping_analysis())
