"""Standardized terminal output for s3-upload.

Every user-facing message goes through these helpers so that styling,
stream selection and the dry-run prefix stay consistent:

    from s3upload.output import success, info, warn, error, detail

    info("Uploading build/site -> s3://releases/site")
    detail("1,024 / 4,096 bytes (25%)")
    success("Uploaded build/site to s3://releases/site (4,096 bytes)")
    info("Would upload dist/app.zip to s3://releases/app.zip", dry_run=True)
    # Output: → [DRY RUN] Would upload dist/app.zip to s3://releases/app.zip

When the CLI runs with ``--format json`` it calls ``set_quiet(True)`` so
that only the JSON envelope reaches stdout. Errors are never silenced.
"""

from __future__ import annotations

import sys
from typing import TextIO

import click

_STYLES = {
    "success": "green",
    "info": "blue",
    "warn": "yellow",
    "error": "red",
    "detail": "bright_black",
}

_PREFIXES = {
    "success": "✓",  # checkmark
    "info": "→",  # arrow
    "warn": "⚠",  # warning
    "error": "✗",  # X
    "detail": " ",
}

_quiet = False


def set_quiet(quiet: bool) -> None:
    """Suppress non-error messages (used for machine-readable output)."""
    global _quiet
    _quiet = quiet


def is_quiet() -> bool:
    return _quiet


def _output(
    message: str,
    style: str,
    *,
    file: TextIO | None = None,
    nl: bool = True,
    dry_run: bool = False,
) -> None:
    if _quiet and style != "error":
        return
    if dry_run:
        message = f"[DRY RUN] {message}"

    color = _STYLES[style]
    styled_prefix = click.style(_PREFIXES[style], fg=color)
    click.echo(f"{styled_prefix} {click.style(message, fg=color)}", file=file, nl=nl)


def success(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print a success message with a green checkmark (stdout)."""
    _output(message, "success", file=file, nl=nl, dry_run=dry_run)


def info(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print an info message with a blue arrow (stdout).

    Example:
        >>> info("Would upload app.zip to s3://bucket/app.zip", dry_run=True)
        → [DRY RUN] Would upload app.zip to s3://bucket/app.zip
    """
    _output(message, "info", file=file, nl=nl, dry_run=dry_run)


def warn(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print a warning with a yellow warning sign (stderr)."""
    _output(message, "warn", file=file or sys.stderr, nl=nl, dry_run=dry_run)


def error(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print an error with a red X (stderr). Shown even in quiet mode."""
    _output(message, "error", file=file or sys.stderr, nl=nl, dry_run=dry_run)


def detail(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print a dimmed detail/progress line (stdout)."""
    _output(message, "detail", file=file, nl=nl, dry_run=dry_run)
