"""JSON output envelope for ``--format json``.

Every command prints exactly one envelope:

    {
        "success": true|false,
        "command": "upload",
        "data": { ... },
        "errors": [ ... ]  # Only present when success=false
    }

Usage:
    from s3upload.json_output import success_envelope, error_envelope, ErrorDetail

    envelope = success_envelope("upload", report.to_dict())
    click.echo(envelope.to_json())
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from s3upload.errors import S3UploadError


@dataclass
class ErrorDetail:
    """One entry of the errors array.

    Attributes:
        type: Exception class name (e.g., "BucketNotFoundError", "ClientError")
        message: Human-readable error description
        code: Structured error code, for s3-upload's own errors
    """

    type: str
    message: str
    code: str | None = None

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        result = {"type": self.type, "message": self.message}
        if self.code is not None:
            result["code"] = self.code
        return result

    @classmethod
    def from_exception(cls, exc: BaseException) -> ErrorDetail:
        if isinstance(exc, S3UploadError):
            return cls(type=type(exc).__name__, message=exc.message, code=exc.code)
        return cls(type=type(exc).__name__, message=str(exc))


@dataclass
class OutputEnvelope:
    """The wrapper structure for all JSON command output."""

    success: bool
    command: str
    data: dict[str, Any] | None
    errors: list[ErrorDetail] | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary; the errors key is omitted on success."""
        result: dict[str, Any] = {
            "success": self.success,
            "command": self.command,
            "data": self.data,
        }

        if self.errors is not None:
            result["errors"] = [e.to_dict() for e in self.errors]

        return result

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def success_envelope(command: str, data: dict[str, Any]) -> OutputEnvelope:
    return OutputEnvelope(success=True, command=command, data=data)


def error_envelope(
    command: str,
    errors: list[ErrorDetail],
    *,
    data: dict[str, Any] | None = None,
) -> OutputEnvelope:
    """Create an error envelope.

    Args:
        command: Name of the command (e.g., "upload")
        errors: ErrorDetail objects describing the failure
        data: Optional partial data to include (default: empty dict)
    """
    return OutputEnvelope(
        success=False,
        command=command,
        data=data if data is not None else {},
        errors=errors,
    )
