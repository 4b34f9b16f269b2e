"""Structured error codes for s3-upload.

All errors follow the format S3UP-{category}{number}:
- S3UP-CFG*: Configuration and pre-flight errors
- S3UP-TRN*: Transfer errors

Authentication and authorization failures are not wrapped: botocore's own
exceptions (ClientError, NoCredentialsError, ...) propagate unmodified.
"""

from __future__ import annotations

from typing import Any


class S3UploadError(Exception):
    """Base class for all s3-upload errors.

    All errors have:
    - code: Structured error code (e.g., S3UP-CFG001)
    - message: Human-readable error message
    """

    code: str = "S3UP-000"

    # Reserved attribute names that cannot be overwritten by context
    _RESERVED_ATTRS = frozenset({"code", "message", "context", "args"})

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize an s3-upload error.

        Args:
            message: Human-readable error message.
            **context: Additional context stored as error attributes.
                Reserved keys (code, message, context, args) are ignored.
        """
        self.message = message
        self.context = context
        for key, value in context.items():
            if key not in self._RESERVED_ATTRS:
                setattr(self, key, value)
        super().__init__(f"[{self.code}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert error to JSON-serializable dict."""
        return {
            "code": self.code,
            "message": self.message,
            "context": {key: str(value) for key, value in self.context.items()},
        }


# Configuration Errors (S3UP-CFG*)
class ConfigurationError(S3UploadError):
    """Base class for configuration and pre-flight errors.

    Always fatal; never retried.
    """

    code = "S3UP-CFG000"


class SourceNotFoundError(ConfigurationError):
    """Raised when the source path does not exist.

    Error code: S3UP-CFG001
    """

    code = "S3UP-CFG001"

    def __init__(self, source: str) -> None:
        super().__init__(f"File/folder does not exist: {source}", source=source)


class SourceTypeError(ConfigurationError):
    """Raised when the source is neither a regular file nor a directory.

    Error code: S3UP-CFG002
    """

    code = "S3UP-CFG002"

    def __init__(self, source: str) -> None:
        super().__init__(
            f"Source is neither a regular file nor a directory: {source}", source=source
        )


class BucketNotFoundError(ConfigurationError):
    """Raised when the destination bucket does not exist.

    Error code: S3UP-CFG003
    """

    code = "S3UP-CFG003"

    def __init__(self, bucket_name: str) -> None:
        super().__init__(f"Bucket doesn't exist: {bucket_name}", bucket_name=bucket_name)


class ProfileNotFoundError(ConfigurationError):
    """Raised when a named credentials profile is not configured.

    Error code: S3UP-CFG004
    """

    code = "S3UP-CFG004"

    def __init__(self, profile: str) -> None:
        super().__init__(
            f"AWS profile '{profile}' not found (parameter: profile)", profile=profile
        )


class MissingSettingError(ConfigurationError):
    """Raised when a required setting has no value from any source.

    Error code: S3UP-CFG005
    """

    code = "S3UP-CFG005"

    def __init__(self, key: str) -> None:
        super().__init__(f"Missing required parameter: {key}", key=key)


class InvalidSettingError(ConfigurationError):
    """Raised when a setting value cannot be interpreted.

    Error code: S3UP-CFG006
    """

    code = "S3UP-CFG006"

    def __init__(self, key: str, value: Any, expected: str) -> None:
        super().__init__(
            f"Invalid value for parameter {key}: {value!r} (expected {expected})",
            key=key,
            value=value,
            expected=expected,
        )


class ConfigParseError(ConfigurationError):
    """Raised when the project config file cannot be parsed.

    Error code: S3UP-CFG007
    """

    code = "S3UP-CFG007"

    def __init__(self, path: str, parse_error: str) -> None:
        super().__init__(
            f"Failed to parse config file {path}: {parse_error}",
            path=path,
            parse_error=parse_error,
        )


# Transfer Errors (S3UP-TRN*)
class TransferError(S3UploadError):
    """Base class for transfer errors."""

    code = "S3UP-TRN000"


class TransferIncompleteError(TransferError):
    """Raised when a transfer ends in any state other than completed.

    Error code: S3UP-TRN001
    """

    code = "S3UP-TRN001"

    def __init__(self, source: str, bucket_name: str, destination: str, state: str) -> None:
        super().__init__(
            f"Unable to upload {source} to s3://{bucket_name}/{destination} "
            f"(transfer {state.lower()})",
            source=source,
            bucket_name=bucket_name,
            destination=destination,
            state=state,
        )
