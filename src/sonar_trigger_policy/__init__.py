"""Sonar trigger policy.

Decides whether the code-analysis step should run for a completed CI build:
- configuration for the four trigger settings
- an ordered, short-circuiting skip/allow decision
- a small JSON-history adapter and CLI for driving it outside a CI host
"""

__version__ = "0.1.0"

from sonar_trigger_policy.policy.config import TriggersConfig
from sonar_trigger_policy.policy.triggers import TriggerPolicy

__all__ = ["__version__", "TriggerPolicy", "TriggersConfig"]
