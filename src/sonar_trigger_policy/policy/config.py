"""Configuration for the analysis trigger policy.

Two layers live here:
- `TriggersConfig`: the four per-job trigger settings edited through the host's UI.
  Field values are kept exactly as entered so they round-trip through the host's
  persistence; normalisation happens in read-only properties.
- `PolicySettings`: process-level settings for the CLI, loaded from environment
  variables and a local `.env` file (if present).
"""

from __future__ import annotations

import re

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MILLIS_PER_MINUTE = 60 * 1000

# Largest value a signed 64-bit long holds.
LONG_MAX = 2**63 - 1

# Optional sign followed by ASCII digits, nothing else.
_WHOLE_NUMBER = re.compile(r"[+-]?[0-9]+")


def parse_timeout_minutes(text: str | None) -> int:
    """Best-effort parse of a timeout in minutes.

    Malformed, missing, negative or out-of-range values coerce to 0 instead of
    raising. A value is out of range when it, or its length in milliseconds, does
    not fit a signed 64-bit long.
    """

    if text is None or not _WHOLE_NUMBER.fullmatch(text):
        return 0
    minutes = int(text)
    if minutes < 0 or minutes * MILLIS_PER_MINUTE > LONG_MAX:
        return 0
    return minutes


def fix_empty_and_trim(value: str | None) -> str | None:
    """Trim surrounding whitespace; map an empty result to None."""

    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


class TriggersConfig(BaseModel):
    """Per-job conditions under which the analysis step is skipped.

    Wire names (used by `model_dump(by_alias=True)`):
    - skipOnScmCause
    - skipOnUpstreamCause
    - envVarName
    - skipTimeout

    Older configurations saved as `skipScmCause`, `skipUpstreamCause` and `envVar`
    are still accepted on input.
    """

    model_config = ConfigDict(validate_assignment=True, extra="ignore")

    skip_on_scm_cause: bool = Field(
        default=False,
        validation_alias=AliasChoices("skip_on_scm_cause", "skipOnScmCause", "skipScmCause"),
        serialization_alias="skipOnScmCause",
        description="Skip builds started only by an SCM change",
    )
    skip_on_upstream_cause: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "skip_on_upstream_cause", "skipOnUpstreamCause", "skipUpstreamCause"
        ),
        serialization_alias="skipOnUpstreamCause",
        description="Skip builds started only by an upstream job",
    )
    env_var_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("env_var_name", "envVarName", "envVar"),
        serialization_alias="envVarName",
        description="Build variable which skips the analysis when it resolves to 'true'",
    )
    skip_timeout: str | None = Field(
        default=None,
        validation_alias=AliasChoices("skip_timeout", "skipTimeout"),
        serialization_alias="skipTimeout",
        description="Minutes that must pass since the last analysed build (free text)",
    )

    @field_validator("skip_timeout", mode="before")
    @classmethod
    def _timeout_as_text(cls, value: object) -> object:
        # Numbers coming from JSON are kept as text; coercion happens on read.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def env_var(self) -> str | None:
        """Normalised variable name, or None when no variable check applies."""

        return fix_empty_and_trim(self.env_var_name)

    @property
    def skip_timeout_minutes(self) -> int:
        return parse_timeout_minutes(self.skip_timeout)

    @property
    def skip_timeout_millis(self) -> int:
        return self.skip_timeout_minutes * MILLIS_PER_MINUTE

    def to_wire(self) -> dict[str, object]:
        """Serialise using the host's field names."""

        return self.model_dump(by_alias=True)


class PolicySettings(BaseSettings):
    """Settings for the command-line tool.

    Environment variables:
    - LOG_LEVEL                      (optional)
    - SONAR_TRIGGER_ANALYSIS_MARKER  (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `PolicySettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    analysis_marker: str = Field(
        default="sonar",
        validation_alias="SONAR_TRIGGER_ANALYSIS_MARKER",
        description="Badge name marking builds in which the analysis step ran",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("analysis_marker")
    @classmethod
    def _require_marker(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("SONAR_TRIGGER_ANALYSIS_MARKER must not be empty")
        return value.strip()
