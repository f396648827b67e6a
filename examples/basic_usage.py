#!/usr/bin/env python3
"""Programmatic policy evaluation example.

This demonstrates using the policy components directly:

* configure the four trigger settings
* build a short in-memory history
* ask whether the newest build should be analysed
"""

from __future__ import annotations

import time

from sonar_trigger_policy.policy.build import BuildResult, Cause, CauseKind
from sonar_trigger_policy.policy.config import TriggersConfig
from sonar_trigger_policy.policy.history import BuildRecord, MarkerBadgeLookup
from sonar_trigger_policy.policy.logging import configure_logging
from sonar_trigger_policy.policy.triggers import TriggerPolicy


def main() -> int:
    configure_logging("INFO")

    now = time.time_ns() // 1_000_000
    analysed = BuildRecord(
        number=1,
        result=BuildResult.SUCCESS,
        causes=(Cause(CauseKind.USER, "Started by user admin"),),
        start_time_millis=now - 90 * 60 * 1000,
        badges=frozenset({"sonar"}),
    )
    current = BuildRecord(
        number=2,
        result=BuildResult.UNSTABLE,
        causes=(Cause(CauseKind.SCM, "Started by an SCM change"),),
        start_time_millis=now,
        previous_build=analysed,
    )

    config = TriggersConfig(skip_on_scm_cause=False, skip_timeout="60")
    policy = TriggerPolicy(config, badges=MarkerBadgeLookup())

    reason = policy.evaluate(current)
    print(f"Build #{current.number}: {reason or 'run analysis'}")

    config.skip_on_scm_cause = True
    reason = policy.evaluate(current)
    print(f"Build #{current.number} with skipOnScmCause: {reason or 'run analysis'}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
