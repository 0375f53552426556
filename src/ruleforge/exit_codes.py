"""Standardized CLI exit codes and fatal errors for ruleforge.

Exit code scheme:

    0  SUCCESS          -- command completed
    1  GENERAL_ERROR    -- unexpected failure, crash, unhandled exception
    2  USAGE_ERROR      -- invalid arguments, bad flags (Click default)
    3  MALFORMED_INPUT  -- project model or rule list is not well-formed
    6  PARTIAL          -- completed, but with diagnostics (only under --strict)

Per-file and per-rule problems never produce a non-zero exit code on their
own; they are reported as diagnostics (see :mod:`ruleforge.diagnostics`).
"""

from __future__ import annotations

import click

# ---------------------------------------------------------------------------
# Exit code constants
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_ERROR: int = 1
EXIT_USAGE: int = 2
EXIT_MALFORMED_INPUT: int = 3
EXIT_PARTIAL: int = 6

DESCRIPTIONS: dict[int, str] = {
    EXIT_SUCCESS: "success",
    EXIT_ERROR: "unexpected error",
    EXIT_USAGE: "invalid usage (bad arguments or flags)",
    EXIT_MALFORMED_INPUT: "malformed input (project model or rules)",
    EXIT_PARTIAL: "partial results (completed with diagnostics)",
}

# ---------------------------------------------------------------------------
# Custom exceptions (caught by CLI error handler)
# ---------------------------------------------------------------------------


class RuleforgeError(click.ClickException):
    """Base class for ruleforge-specific errors with exit codes."""

    def __init__(self, message: str, exit_code: int = EXIT_ERROR):
        super().__init__(message)
        self.exit_code = exit_code

    def format_message(self) -> str:
        return self.message


class MalformedInputError(RuleforgeError):
    """Raised when a whole input (project model, rule list) is unusable.

    ``stage`` names the pipeline stage that rejected the input
    (``"model"``, ``"graph"``, ``"adapt"`` ...) and ``detail`` describes
    which part of the input was wrong.
    """

    def __init__(self, stage: str, detail: str):
        self.stage = stage
        self.detail = detail
        super().__init__(f"[{stage}] malformed input: {detail}", EXIT_MALFORMED_INPUT)


class RuleMetadataError(ValueError):
    """Raised when a single rule's front matter cannot be validated."""


class PartialResultError(RuleforgeError):
    """Raised under ``--strict`` when a command finished with diagnostics."""

    def __init__(self, message: str = "Completed with diagnostics."):
        super().__init__(message, EXIT_PARTIAL)
