"""s3-upload CLI - upload a file or directory tree to S3 from build scripts.

The CLI is a thin wrapper around the library (see execute.py).
Parameters come from CLI options, S3_UPLOAD_<KEY> environment variables or
the project config file; config.py resolves them.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

import click
from botocore.exceptions import BotoCoreError, ClientError

from s3upload.config import list_settings, load_invocation
from s3upload.errors import S3UploadError
from s3upload.execute import execute
from s3upload.json_output import ErrorDetail, error_envelope, success_envelope
from s3upload.output import detail, error, set_quiet

# Errors reported as a single failure message instead of a traceback
_REPORTED_ERRORS = (S3UploadError, BotoCoreError, ClientError)


def should_output_json(ctx: click.Context) -> bool:
    """True if the global --format option asked for JSON."""
    obj = ctx.find_root().obj or {}
    return obj.get("format", "text") == "json"


def output_json_envelope(envelope: Any) -> None:
    click.echo(envelope.to_json())


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _report_failure(ctx: click.Context, command: str, err: Exception) -> None:
    """Print the one failure message for a command and exit with status 1."""
    if should_output_json(ctx):
        output_json_envelope(error_envelope(command, [ErrorDetail.from_exception(err)]))
    else:
        error(str(err))
    raise SystemExit(1) from err


@click.group()
@click.version_option(package_name="s3-upload")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text"]),
    default="text",
    help="Output format (json for machine parsing, text for humans).",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug details to stderr.")
@click.pass_context
def cli(ctx: click.Context, output_format: str, verbose: bool) -> None:
    """s3-upload - Upload files and directories to S3."""
    ctx.ensure_object(dict)
    ctx.obj["format"] = output_format
    set_quiet(output_format == "json")
    _configure_logging(verbose)


_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Project config file (default: ./s3-upload.yaml).",
)


@cli.command()
@click.option("--source", "-s", help="The file or folder to upload.")
@click.option("--bucket-name", "-b", help="The bucket to upload into.")
@click.option("--destination", "-d", help="The key (file) or key prefix (folder) to create.")
@click.option("--access-key", help="Access key; used only together with --secret-key.")
@click.option("--secret-key", help="Secret key; used only together with --access-key.")
@click.option("--profile", help="AWS profile to get credentials from.")
@click.option("--region", help="Region of the destination bucket.")
@click.option("--endpoint", help="Custom S3 endpoint (e.g. http://localhost:9000).")
@click.option(
    "--recursive/--no-recursive",
    default=None,
    help="For a folder, also upload the contents of subfolders.  [default: no-recursive]",
)
@click.option(
    "--show-progress/--no-show-progress",
    default=None,
    help="Show progress while uploading.  [default: show-progress]",
)
@click.option(
    "--do-not-upload/--upload",
    "do_not_upload",
    default=None,
    help="Dry run: perform every check but skip the upload.  [default: upload]",
)
@_config_option
@click.pass_context
def upload(ctx: click.Context, config_path: Path | None, **cli_values: Any) -> None:
    """Upload a file or folder to s3://BUCKET-NAME/DESTINATION.

    Every option can also be set with an S3_UPLOAD_<OPTION> environment
    variable (e.g. S3_UPLOAD_BUCKET_NAME) or in the project config file.
    """
    try:
        invocation = load_invocation(cli_values, config_path)
        report = execute(invocation.request, invocation.credentials, invocation.endpoint)
    except _REPORTED_ERRORS as err:
        _report_failure(ctx, "upload", err)
        return

    if should_output_json(ctx):
        output_json_envelope(success_envelope("upload", report.to_dict()))


@cli.group()
def config() -> None:
    """Inspect s3-upload settings."""


@config.command("list")
@_config_option
@click.pass_context
def config_list(ctx: click.Context, config_path: Path | None) -> None:
    """Show every setting, its resolved value and where it comes from."""
    try:
        settings = list_settings(config_path=config_path)
    except S3UploadError as err:
        _report_failure(ctx, "config list", err)
        return

    if should_output_json(ctx):
        output_json_envelope(success_envelope("config list", {"settings": settings}))
        return

    for key, entry in settings.items():
        value = entry["value"]
        shown = "(not set)" if value is None else value
        click.echo(f"{key}: {shown}")
        detail(f"source: {entry['source']}")
