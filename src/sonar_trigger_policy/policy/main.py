"""CLI entrypoint for evaluating the trigger policy against a build history."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from sonar_trigger_policy import __version__
from sonar_trigger_policy.policy.config import PolicySettings, TriggersConfig
from sonar_trigger_policy.policy.history import HistoryError, MarkerBadgeLookup, load_history
from sonar_trigger_policy.policy.logging import configure_logging
from sonar_trigger_policy.policy.triggers import TriggerPolicy

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sonar-trigger-policy",
        description="Decide whether the Sonar analysis step should run for a build",
    )
    parser.add_argument(
        "--version", action="version", version=f"sonar-trigger-policy {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    evaluate = subparsers.add_parser(
        "evaluate",
        help="Evaluate the newest build of a JSON build history",
    )
    evaluate.add_argument(
        "--history",
        type=Path,
        required=True,
        help="Path to the JSON build history",
    )
    evaluate.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON file with skipOnScmCause, skipOnUpstreamCause, envVarName, skipTimeout",
    )
    evaluate.add_argument(
        "--skip-scm-cause",
        action="store_true",
        default=None,
        help="Skip builds started only by an SCM change",
    )
    evaluate.add_argument(
        "--skip-upstream-cause",
        action="store_true",
        default=None,
        help="Skip builds started only by an upstream job",
    )
    evaluate.add_argument(
        "--env-var",
        default=None,
        help="Build variable which skips the analysis when it is 'true'",
    )
    evaluate.add_argument(
        "--skip-timeout",
        default=None,
        help="Minutes that must pass since the last analysed build",
    )
    evaluate.add_argument(
        "--marker",
        default=None,
        help="Badge name marking analysed builds (defaults to SONAR_TRIGGER_ANALYSIS_MARKER)",
    )

    return parser


def load_triggers_config(args: argparse.Namespace) -> TriggersConfig:
    """Read the optional config file, then apply command-line overrides."""

    config = TriggersConfig()
    if args.config is not None:
        raw = json.loads(args.config.read_text(encoding="utf-8"))
        config = TriggersConfig.model_validate(raw)

    if args.skip_scm_cause is not None:
        config.skip_on_scm_cause = args.skip_scm_cause
    if args.skip_upstream_cause is not None:
        config.skip_on_upstream_cause = args.skip_upstream_cause
    if args.env_var is not None:
        config.env_var_name = args.env_var
    if args.skip_timeout is not None:
        config.skip_timeout = args.skip_timeout
    return config


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = PolicySettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    try:
        if args.command == "evaluate":
            try:
                config = load_triggers_config(args)
                build = load_history(args.history)
            except (HistoryError, ValueError, OSError) as e:
                logger.warning("Invalid input", extra={"error": str(e)})
                print(str(e), file=sys.stderr)
                return 2

            badges = MarkerBadgeLookup(marker=args.marker or settings.analysis_marker)
            policy = TriggerPolicy(config, badges=badges)
            reason = policy.evaluate(build)

            print(
                json.dumps(
                    {
                        "skip": reason is not None,
                        "code": reason.code.value if reason else None,
                        "reason": reason.message if reason else None,
                        "build": build.number,
                    },
                    ensure_ascii=False,
                )
            )
            return 0

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
