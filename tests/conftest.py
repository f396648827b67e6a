"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable

import pytest
from builders import NOW_MILLIS

from sonar_trigger_policy.policy.config import TriggersConfig
from sonar_trigger_policy.policy.history import MarkerBadgeLookup
from sonar_trigger_policy.policy.triggers import TriggerPolicy


@pytest.fixture
def badges() -> MarkerBadgeLookup:
    """Provide the default analysis-badge lookup."""
    return MarkerBadgeLookup(marker="sonar")


@pytest.fixture
def make_policy(badges: MarkerBadgeLookup) -> Callable[..., TriggerPolicy]:
    """Build a policy with a fixed clock at NOW_MILLIS."""

    def _make(**fields: object) -> TriggerPolicy:
        return TriggerPolicy(
            TriggersConfig(**fields),
            badges=badges,
            clock=lambda: NOW_MILLIS,
        )

    return _make
