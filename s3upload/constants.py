"""Shared constants for s3-upload."""

from __future__ import annotations

# Canned ACL applied to every uploaded object
BUCKET_OWNER_FULL_CONTROL: str = "bucket-owner-full-control"

# Cadence of the progress display while a transfer is running
PROGRESS_POLL_INTERVAL_SECONDS: float = 0.25

# Progress lines are printed every N percent
PROGRESS_THROTTLE_PERCENTAGE: int = 5

# Project config file looked up in the working directory
CONFIG_FILENAME: str = "s3-upload.yaml"

# Environment variable prefix for settings (S3_UPLOAD_BUCKET_NAME, ...)
ENV_PREFIX: str = "S3_UPLOAD_"
