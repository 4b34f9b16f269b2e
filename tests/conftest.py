"""Shared pytest fixtures for s3-upload tests.

S3 is replaced by in-process fakes: ``FakeS3Client`` keeps buckets and
objects in dictionaries and ``FakeTransferManager`` writes uploads into it
synchronously, notifying subscribers the way s3transfer does.
"""

from __future__ import annotations

import functools
from pathlib import Path
from typing import TYPE_CHECKING, Any
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from s3upload.client import ClientHandle
from s3upload.output import set_quiet
from s3upload.upload import upload

if TYPE_CHECKING:
    from collections.abc import Iterator

TEST_BUCKET = "test-bucket"


# =============================================================================
# Fakes
# =============================================================================


class FakeS3Client:
    """Minimal stand-in for a boto3 S3 client."""

    def __init__(self, buckets: set[str] | None = None) -> None:
        self.buckets = set(buckets or ())
        self.objects: dict[tuple[str, str], bytes] = {}
        self.acls: dict[tuple[str, str], str | None] = {}

    def head_bucket(self, Bucket: str) -> dict[str, Any]:  # noqa: N803
        if Bucket not in self.buckets:
            raise ClientError(
                {"Error": {"Code": "404", "Message": "Not Found"}}, "HeadBucket"
            )
        return {}

    def put(self, bucket: str, key: str, data: bytes, acl: str | None) -> None:
        if bucket not in self.buckets:
            raise ClientError(
                {"Error": {"Code": "NoSuchBucket", "Message": "Bucket missing"}}, "PutObject"
            )
        self.objects[(bucket, key)] = data
        self.acls[(bucket, key)] = acl

    def keys(self, bucket: str = TEST_BUCKET) -> set[str]:
        return {key for (b, key) in self.objects if b == bucket}


class FakeFuture:
    """TransferFuture look-alike with a scripted outcome."""

    def __init__(self, error: BaseException | None = None, polls_until_done: int = 0) -> None:
        self._error = error
        self._polls_until_done = polls_until_done

    def done(self) -> bool:
        if self._polls_until_done > 0:
            self._polls_until_done -= 1
            return False
        return True

    def result(self) -> None:
        if self._error is not None:
            raise self._error


class FakeTransferManager:
    """Synchronous TransferManager that writes into a FakeS3Client.

    Class-level ``errors`` maps object keys to an exception the matching
    future raises from ``result()``; the object is then not written.
    """

    instances: list[FakeTransferManager] = []
    errors: dict[str, BaseException] = {}
    polls_until_done = 0

    def __init__(self, client: FakeS3Client, config: Any = None) -> None:
        self.client = client
        self.config = config
        self.uploads: list[dict[str, Any]] = []
        self.shutdown_calls: list[bool] = []
        FakeTransferManager.instances.append(self)

    def upload(
        self,
        fileobj: str,
        bucket: str,
        key: str,
        extra_args: dict[str, Any] | None = None,
        subscribers: list[Any] | None = None,
    ) -> FakeFuture:
        self.uploads.append(
            {"fileobj": fileobj, "bucket": bucket, "key": key, "extra_args": extra_args}
        )
        error = self.errors.get(key)
        if error is None:
            data = Path(fileobj).read_bytes()
            self.client.put(bucket, key, data, (extra_args or {}).get("ACL"))
            for subscriber in subscribers or []:
                subscriber.on_progress(future=None, bytes_transferred=len(data))
        return FakeFuture(error=error, polls_until_done=self.polls_until_done)

    def shutdown(self, cancel: bool = False, cancel_msg: str = "") -> None:
        self.shutdown_calls.append(cancel)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_output_and_fakes() -> Iterator[None]:
    """Undo global state left behind by JSON-mode CLI runs and fake managers."""
    set_quiet(False)
    FakeTransferManager.instances = []
    FakeTransferManager.errors = {}
    FakeTransferManager.polls_until_done = 0
    yield
    set_quiet(False)


@pytest.fixture
def fake_s3() -> FakeS3Client:
    """Fake S3 client with one existing bucket, ``test-bucket``."""
    return FakeS3Client(buckets={TEST_BUCKET})


@pytest.fixture
def fake_resolver(fake_s3: FakeS3Client) -> MagicMock:
    """Resolver that always hands out the fake client."""
    handle = ClientHandle(client=fake_s3, session=MagicMock(), region=None, endpoint_url=None)
    return MagicMock(return_value=handle)


@pytest.fixture
def fake_manager() -> type[FakeTransferManager]:
    """The fake TransferManager class; instances are recorded on ``.instances``."""
    return FakeTransferManager


@pytest.fixture
def fake_uploader() -> Any:
    """The real upload executor wired to the fake transfer manager."""
    return functools.partial(upload, manager_factory=FakeTransferManager, poll_interval=0)


@pytest.fixture
def aws_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate botocore from the host: no AWS env vars, empty shared files.

    Returns the directory holding ``credentials`` and ``config``.
    """
    for var in (
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
        "AWS_SESSION_TOKEN",
        "AWS_SECURITY_TOKEN",
        "AWS_PROFILE",
        "AWS_DEFAULT_PROFILE",
        "AWS_REGION",
        "AWS_DEFAULT_REGION",
        "AWS_ENDPOINT_URL",
        "AWS_ENDPOINT_URL_S3",
    ):
        monkeypatch.delenv(var, raising=False)

    aws_dir = tmp_path / ".aws"
    aws_dir.mkdir()
    (aws_dir / "credentials").write_text("")
    (aws_dir / "config").write_text("")
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(aws_dir / "credentials"))
    monkeypatch.setenv("AWS_CONFIG_FILE", str(aws_dir / "config"))
    monkeypatch.setenv("AWS_EC2_METADATA_DISABLED", "true")
    return aws_dir


@pytest.fixture
def aws_profiles(aws_env: Path) -> Path:
    """Shared credentials/config files with a default and a named profile."""
    (aws_env / "credentials").write_text(
        """[default]
aws_access_key_id = AKIADEFAULTKEY
aws_secret_access_key = defaultsecret

[myprofile]
aws_access_key_id = AKIAPROFILEKEY
aws_secret_access_key = profilesecret
"""
    )
    (aws_env / "config").write_text(
        """[default]
region = us-east-1

[profile myprofile]
region = eu-west-1
"""
    )
    return aws_env


@pytest.fixture
def single_file(tmp_path: Path) -> Path:
    """``file.txt`` containing ``abc``."""
    path = tmp_path / "file.txt"
    path.write_text("abc")
    return path


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """Directory with ``a.txt`` at the top and ``sub/b.txt`` nested.

    Layout:
        tree/a.txt          "alpha"
        tree/sub/b.txt      "bravo!"
        tree/sub/deep/c.txt "charlie"
    """
    root = tmp_path / "tree"
    (root / "sub" / "deep").mkdir(parents=True)
    (root / "a.txt").write_text("alpha")
    (root / "sub" / "b.txt").write_text("bravo!")
    (root / "sub" / "deep" / "c.txt").write_text("charlie")
    return root
