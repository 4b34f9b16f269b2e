"""s3-upload - Upload a file or directory tree to S3 from build scripts."""

from s3upload.config import (
    DefaultChain,
    EndpointSpec,
    ExplicitKeys,
    NamedProfile,
    UploadRequest,
)
from s3upload.execute import UploadReport, execute
from s3upload.upload import TransferOutcome, upload

__all__ = [
    "DefaultChain",
    "EndpointSpec",
    "ExplicitKeys",
    "NamedProfile",
    "TransferOutcome",
    "UploadReport",
    "UploadRequest",
    "execute",
    "upload",
]
