"""Upload a file or directory to S3 through s3transfer's TransferManager.

A regular file becomes one object at ``destination``. A directory becomes
one object per file, keyed ``destination/<relative path>``; only top-level
files are included unless ``recursive`` is set. Every object is written with
the ``bucket-owner-full-control`` canned ACL, passed natively through the
transfer manager's ``extra_args``.

Multipart handling, retries and per-file concurrency are left to
s3transfer. From the caller's point of view ``upload`` is one blocking
call that returns a :class:`TransferOutcome`.

Basic Usage:
    from s3upload.upload import upload

    outcome = upload(client, Path("build/site"), "releases", "site", recursive=True)
    if outcome.completed:
        print(f"Uploaded {outcome.bytes_transferred} bytes")
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import CancelledError
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from s3transfer.futures import TransferFuture
from s3transfer.manager import TransferConfig, TransferManager
from s3transfer.subscribers import BaseSubscriber

from s3upload.constants import (
    BUCKET_OWNER_FULL_CONTROL,
    PROGRESS_POLL_INTERVAL_SECONDS,
    PROGRESS_THROTTLE_PERCENTAGE,
)
from s3upload.errors import SourceTypeError
from s3upload.output import detail, warn

logger = logging.getLogger(__name__)

ManagerFactory = Callable[..., TransferManager]


# =============================================================================
# Data Classes
# =============================================================================


class TransferState(Enum):
    """Lifecycle of a transfer; everything except IN_PROGRESS is terminal."""

    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    FAILED = "Failed"
    CANCELED = "Canceled"


@dataclass(frozen=True)
class TransferOutcome:
    """Result of one upload.

    Attributes:
        bytes_transferred: Final value of the transferred-bytes counter.
        completed: True only if the transfer reached the COMPLETED state.
        objects: Number of objects submitted for upload.
    """

    bytes_transferred: int
    completed: bool
    objects: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "bytes_transferred": self.bytes_transferred,
            "completed": self.completed,
            "objects": self.objects,
        }


@dataclass(frozen=True)
class PlannedObject:
    """A local file and the key it will be stored under."""

    path: Path
    key: str
    size: int


# =============================================================================
# Progress
# =============================================================================


class TransferProgress(BaseSubscriber):
    """Sums byte progress reported by every future of one transfer.

    s3transfer calls ``on_progress`` from its worker threads, and may report
    negative amounts when a part is retried.
    """

    def __init__(self, total_bytes: int) -> None:
        self.total_bytes = total_bytes
        self._bytes_transferred = 0
        self._lock = threading.Lock()

    def on_progress(self, future: TransferFuture, bytes_transferred: int, **kwargs: Any) -> None:
        with self._lock:
            self._bytes_transferred += bytes_transferred

    @property
    def bytes_transferred(self) -> int:
        with self._lock:
            return self._bytes_transferred


class ProgressReporter:
    """Prints a progress line each time another N percent has been sent."""

    def __init__(
        self, total_bytes: int, throttle_percentage: int = PROGRESS_THROTTLE_PERCENTAGE
    ) -> None:
        self._total_bytes = total_bytes
        self._throttle_percentage = max(1, min(int(throttle_percentage), 100))
        self._last_logged_percentage = -1

    def __call__(self, bytes_transferred: int) -> None:
        if self._total_bytes <= 0:
            return
        percentage = min(int(bytes_transferred * 100 / self._total_bytes), 100)

        should_log = (
            percentage >= self._last_logged_percentage + self._throttle_percentage
            and percentage < 100
        ) or (percentage == 100 and self._last_logged_percentage != 100)

        if should_log:
            detail(f"{bytes_transferred:,} / {self._total_bytes:,} bytes ({percentage}%)")
            self._last_logged_percentage = percentage


# =============================================================================
# Transfer
# =============================================================================


class Transfer:
    """All uploads of one invocation, tracked as a single unit.

    The transfer is done when every future is done, and COMPLETED only if
    every future succeeded. An empty transfer (empty directory) is
    vacuously complete.
    """

    def __init__(self, futures: list[TransferFuture], progress: TransferProgress) -> None:
        self._futures = futures
        self._progress = progress
        self._state = TransferState.IN_PROGRESS

    @property
    def state(self) -> TransferState:
        return self._state

    @property
    def progress(self) -> TransferProgress:
        return self._progress

    @property
    def bytes_transferred(self) -> int:
        return self._progress.bytes_transferred

    @property
    def total_bytes(self) -> int:
        return self._progress.total_bytes

    def __len__(self) -> int:
        return len(self._futures)

    def is_done(self) -> bool:
        return all(future.done() for future in self._futures)

    def wait_for_completion(self) -> None:
        """Block until every upload finishes.

        Raises:
            Exception: The first upload error (e.g. botocore ClientError),
                after all other uploads have finished.
        """
        first_error: Exception | None = None
        canceled = False
        for future in self._futures:
            try:
                future.result()
            except CancelledError:
                canceled = True
            except Exception as err:
                if first_error is None:
                    first_error = err

        if first_error is not None:
            self._state = TransferState.FAILED
            raise first_error
        self._state = TransferState.CANCELED if canceled else TransferState.COMPLETED


# =============================================================================
# Planning
# =============================================================================


def _build_target_key(file_path: Path, source: Path, prefix: str) -> str:
    """Build the object key for a file inside a directory upload.

    The prefix is used as given; a "/" separator is added only when the
    prefix is non-empty and does not already end with one.
    """
    rel_posix = file_path.relative_to(source).as_posix()
    if not prefix:
        return rel_posix
    if prefix.endswith("/"):
        return f"{prefix}{rel_posix}"
    return f"{prefix}/{rel_posix}"


def _find_files_to_upload(source: Path, recursive: bool) -> list[Path]:
    """Regular files under a directory, top level only unless recursive."""
    candidates = source.rglob("*") if recursive else source.iterdir()
    return sorted(f for f in candidates if f.is_file())


def plan_upload(source: Path, destination: str, recursive: bool) -> list[PlannedObject]:
    """Map the source to the objects that will be written.

    Raises:
        SourceTypeError: If source is neither a regular file nor a directory.
    """
    if source.is_file():
        return [PlannedObject(source, destination, source.stat().st_size)]

    if source.is_dir():
        return [
            PlannedObject(f, _build_target_key(f, source, destination), f.stat().st_size)
            for f in _find_files_to_upload(source, recursive)
        ]

    raise SourceTypeError(str(source))


# =============================================================================
# Upload
# =============================================================================


def _submit(
    manager: TransferManager, bucket_name: str, planned: list[PlannedObject]
) -> Transfer:
    progress = TransferProgress(sum(obj.size for obj in planned))
    futures = [
        manager.upload(
            str(obj.path),
            bucket_name,
            obj.key,
            extra_args={"ACL": BUCKET_OWNER_FULL_CONTROL},
            subscribers=[progress],
        )
        for obj in planned
    ]
    return Transfer(futures, progress)


def _wait_with_progress(transfer: Transfer, poll_interval: float) -> None:
    reporter = ProgressReporter(transfer.total_bytes)
    while not transfer.is_done():
        time.sleep(poll_interval)
        reporter(transfer.bytes_transferred)


def upload(
    client: Any,
    source: Path,
    bucket_name: str,
    destination: str,
    recursive: bool = False,
    show_progress: bool = True,
    *,
    poll_interval: float = PROGRESS_POLL_INTERVAL_SECONDS,
    transfer_config: TransferConfig | None = None,
    manager_factory: ManagerFactory = TransferManager,
) -> TransferOutcome:
    """Upload a file or directory and wait for the transfer to finish.

    The caller must already have checked that ``source`` exists and that
    the bucket exists.

    Args:
        client: boto3 S3 client.
        source: Local file or directory.
        bucket_name: Destination bucket.
        destination: Key for a file, key prefix for a directory.
        recursive: Include files in subdirectories of a directory source.
        show_progress: Poll and print progress every ``poll_interval`` seconds.
        poll_interval: Seconds between progress polls.
        transfer_config: s3transfer tuning (thresholds, concurrency).
        manager_factory: Builds the TransferManager (swappable in tests).

    Returns:
        TransferOutcome. ``completed`` is False if the transfer was canceled
        or interrupted with Ctrl-C; in that case objects already written are
        left in the bucket.

    Raises:
        SourceTypeError: If source is neither a regular file nor a directory.
        botocore.exceptions.ClientError: If S3 rejects an upload
            (e.g. invalid credentials or access denied).
    """
    planned = plan_upload(source, destination, recursive)
    logger.debug(
        "Transferring %d bytes in %d object(s)...",
        sum(obj.size for obj in planned),
        len(planned),
    )

    manager = manager_factory(client, config=transfer_config or TransferConfig())
    cancel = False
    try:
        transfer = _submit(manager, bucket_name, planned)
        try:
            if show_progress:
                _wait_with_progress(transfer, poll_interval)
            transfer.wait_for_completion()
        except KeyboardInterrupt:
            cancel = True
            warn("Upload interrupted; objects already written are left in the bucket")
            return TransferOutcome(
                bytes_transferred=transfer.bytes_transferred,
                completed=False,
                objects=len(transfer),
            )
    finally:
        manager.shutdown(cancel=cancel)

    logger.debug("Transfer finished in state %s", transfer.state.value)
    return TransferOutcome(
        bytes_transferred=transfer.bytes_transferred,
        completed=transfer.state is TransferState.COMPLETED,
        objects=len(transfer),
    )
