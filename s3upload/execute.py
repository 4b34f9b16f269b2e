"""Run one upload end to end: validate, resolve, check bucket, upload, report.

Stages:
    VALIDATING -> RESOLVING -> CHECKING_BUCKET -> (DRY_RUN | UPLOADING)
    -> REPORTING -> DONE

Any stage can end in FAILED, which is signalled by raising: s3-upload's own
errors for failed preconditions and incomplete transfers, botocore's
exceptions for authentication and authorization problems. A successful run
prints exactly one terminal message.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from s3upload.client import ClientHandle, bucket_exists, resolve_client
from s3upload.config import CredentialSpec, EndpointSpec, UploadRequest
from s3upload.errors import BucketNotFoundError, SourceNotFoundError, TransferIncompleteError
from s3upload.output import info, success
from s3upload.upload import TransferOutcome, upload

logger = logging.getLogger(__name__)

Resolver = Callable[[CredentialSpec, EndpointSpec], ClientHandle]
Uploader = Callable[..., TransferOutcome]


class Stage(Enum):
    """Where an invocation is (or stopped)."""

    VALIDATING = "validating"
    RESOLVING = "resolving"
    CHECKING_BUCKET = "checking_bucket"
    DRY_RUN = "dry_run"
    UPLOADING = "uploading"
    REPORTING = "reporting"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class UploadReport:
    """Summary of a finished invocation.

    Attributes:
        request: The request that was carried out.
        dry_run: True if the transfer was skipped.
        outcome: Transfer result; None for dry runs.
    """

    request: UploadRequest
    dry_run: bool
    outcome: TransferOutcome | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": str(self.request.source),
            "bucket_name": self.request.bucket_name,
            "destination": self.request.destination,
            "url": self.request.target_url,
            "dry_run": self.dry_run,
            "outcome": self.outcome.to_dict() if self.outcome else None,
        }


def _enter(stage: Stage) -> Stage:
    logger.debug("Stage: %s", stage.value)
    return stage


def execute(
    request: UploadRequest,
    credentials: CredentialSpec,
    endpoint: EndpointSpec,
    *,
    resolver: Resolver = resolve_client,
    uploader: Uploader = upload,
) -> UploadReport:
    """Carry out an upload request.

    Args:
        request: What to upload and where.
        credentials: Credential source for the S3 client.
        endpoint: Endpoint override and region pin.
        resolver: Builds the client handle (swappable in tests).
        uploader: Performs the transfer (swappable in tests).

    Returns:
        UploadReport for a dry run or a completed transfer.

    Raises:
        SourceNotFoundError: Source path is missing; no client is built.
        BucketNotFoundError: Bucket is missing; nothing is transferred.
        SourceTypeError: Source is neither file nor directory.
        TransferIncompleteError: The transfer did not complete.
        botocore.exceptions.BotoCoreError, botocore.exceptions.ClientError:
            Authentication or authorization failures, unmodified.
    """
    stage = _enter(Stage.VALIDATING)
    try:
        if not request.source.exists():
            raise SourceNotFoundError(str(request.source))

        stage = _enter(Stage.RESOLVING)
        handle = resolver(credentials, endpoint)

        stage = _enter(Stage.CHECKING_BUCKET)
        if not bucket_exists(handle.client, request.bucket_name):
            raise BucketNotFoundError(request.bucket_name)

        if request.dry_run:
            stage = _enter(Stage.DRY_RUN)
            info(f"Would upload {request.source} to {request.target_url}", dry_run=True)
            _enter(Stage.DONE)
            return UploadReport(request=request, dry_run=True)

        stage = _enter(Stage.UPLOADING)
        outcome = uploader(
            handle.client,
            request.source,
            request.bucket_name,
            request.destination,
            recursive=request.recursive,
            show_progress=request.show_progress,
        )
        if not outcome.completed:
            raise TransferIncompleteError(
                str(request.source),
                request.bucket_name,
                request.destination,
                state="incomplete",
            )
    except BaseException:
        logger.debug("Stage %s failed", stage.value)
        _enter(Stage.FAILED)
        raise

    _enter(Stage.REPORTING)
    success(
        f"Uploaded {request.source} to {request.target_url} "
        f"({outcome.bytes_transferred:,} bytes)"
    )
    _enter(Stage.DONE)
    return UploadReport(request=request, dry_run=False, outcome=outcome)
