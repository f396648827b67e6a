"""Console script entrypoint.

The CLI is implemented in `sonar_trigger_policy.policy.main`.
"""

from __future__ import annotations

from sonar_trigger_policy.policy.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
