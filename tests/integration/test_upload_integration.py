"""Integration tests for the full upload flow.

These run the real settings resolution, the real client resolver (a real
boto3 client built from explicit keys and a custom endpoint) and the real
upload executor. Only the network is replaced: the bucket check is answered
by botocore's Stubber and objects are written by the fake transfer manager.
"""

from __future__ import annotations

import functools
from pathlib import Path
from typing import Any

import pytest
from botocore.stub import Stubber

from s3upload.client import ClientHandle, bucket_exists, resolve_client
from s3upload.config import CredentialSpec, EndpointSpec, load_invocation
from s3upload.errors import BucketNotFoundError
from s3upload.execute import execute
from s3upload.upload import upload

BUCKET = "test-bucket"
ENDPOINT = "http://localhost:9000"


class StubbedResolver:
    """Builds a real client, then answers its HEAD bucket calls from a Stubber.

    Objects land in ``objects`` via the fake transfer manager.
    """

    def __init__(self, bucket_exists: bool = True) -> None:
        self.bucket_exists = bucket_exists
        self.handles: list[ClientHandle] = []
        self.stubbers: list[Stubber] = []

    def __call__(self, credentials: CredentialSpec, endpoint: EndpointSpec) -> ClientHandle:
        handle = resolve_client(credentials, endpoint)
        stubber = Stubber(handle.client)
        if self.bucket_exists:
            stubber.add_response("head_bucket", {}, {"Bucket": BUCKET})
        else:
            stubber.add_client_error(
                "head_bucket",
                service_error_code="404",
                service_message="Not Found",
                http_status_code=404,
            )
        stubber.activate()
        self.handles.append(handle)
        self.stubbers.append(stubber)
        return handle


class RecordingManager:
    """Transfer manager that keeps uploads in a shared dict instead of S3."""

    objects: dict[str, bytes] = {}
    acls: dict[str, Any] = {}

    def __init__(self, client: Any, config: Any = None) -> None:
        self.client = client

    def upload(
        self,
        fileobj: str,
        bucket: str,
        key: str,
        extra_args: dict[str, Any] | None = None,
        subscribers: list[Any] | None = None,
    ) -> Any:
        from concurrent.futures import Future

        data = Path(fileobj).read_bytes()
        RecordingManager.objects[key] = data
        RecordingManager.acls[key] = (extra_args or {}).get("ACL")
        for subscriber in subscribers or []:
            subscriber.on_progress(future=None, bytes_transferred=len(data))
        future: Future[None] = Future()
        future.set_result(None)
        return future

    def shutdown(self, cancel: bool = False, cancel_msg: str = "") -> None:
        pass


@pytest.fixture(autouse=True)
def _reset_recording() -> None:
    RecordingManager.objects = {}
    RecordingManager.acls = {}


@pytest.fixture
def clean_settings_env(aws_env: Path, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    import os

    for name in list(os.environ):
        if name.startswith("S3_UPLOAD_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


def _run(resolver: StubbedResolver, cli_values: dict[str, Any]) -> Any:
    invocation = load_invocation(cli_values)
    return execute(
        invocation.request,
        invocation.credentials,
        invocation.endpoint,
        resolver=resolver,
        uploader=functools.partial(upload, manager_factory=RecordingManager, poll_interval=0),
    )


def _settings(source: Path, destination: str, **extra: Any) -> dict[str, Any]:
    return {
        "source": str(source),
        "bucket_name": BUCKET,
        "destination": destination,
        "access_key": "TEST_ACCESS_KEY_ID",
        "secret_key": "TEST_SECRET_KEY",
        "endpoint": ENDPOINT,
        "region": "us-east-1",
        **extra,
    }


class TestEndToEnd:
    """Settings -> resolver -> bucket check -> upload -> report."""

    @pytest.mark.integration
    def test_file_upload_with_explicit_keys(
        self, clean_settings_env: None, single_file: Path
    ) -> None:
        resolver = StubbedResolver()

        report = _run(resolver, _settings(single_file, "uploads/file.txt"))

        assert report.outcome.completed is True
        assert report.outcome.bytes_transferred == 3
        assert RecordingManager.objects == {"uploads/file.txt": b"abc"}
        assert RecordingManager.acls == {"uploads/file.txt": "bucket-owner-full-control"}

        handle = resolver.handles[0]
        assert handle.credentials().access_key == "TEST_ACCESS_KEY_ID"
        assert handle.client.meta.endpoint_url == ENDPOINT
        resolver.stubbers[0].assert_no_pending_responses()

    @pytest.mark.integration
    def test_recursive_directory_upload(
        self, clean_settings_env: None, source_tree: Path
    ) -> None:
        report = _run(StubbedResolver(), _settings(source_tree, "out", recursive=True))

        assert report.outcome.objects == 3
        assert RecordingManager.objects == {
            "out/a.txt": b"alpha",
            "out/sub/b.txt": b"bravo!",
            "out/sub/deep/c.txt": b"charlie",
        }

    @pytest.mark.integration
    def test_non_recursive_directory_upload(
        self, clean_settings_env: None, source_tree: Path
    ) -> None:
        _run(StubbedResolver(), _settings(source_tree, "out"))

        assert set(RecordingManager.objects) == {"out/a.txt"}

    @pytest.mark.integration
    def test_dry_run_leaves_destination_absent(
        self, clean_settings_env: None, source_tree: Path
    ) -> None:
        """After a dry run the destination key does not exist."""
        report = _run(
            StubbedResolver(), _settings(source_tree, "out", recursive=True, do_not_upload=True)
        )

        assert report.dry_run is True
        assert RecordingManager.objects == {}

    @pytest.mark.integration
    def test_missing_bucket_from_real_client(
        self, clean_settings_env: None, single_file: Path
    ) -> None:
        resolver = StubbedResolver(bucket_exists=False)

        with pytest.raises(BucketNotFoundError):
            _run(resolver, _settings(single_file, "k"))

        assert RecordingManager.objects == {}


class TestBucketExistsWithRealClient:
    """bucket_exists against botocore's real error parsing."""

    @pytest.mark.integration
    def test_404_is_missing(self, aws_env: Path) -> None:
        handle = resolve_client(
            load_invocation(_settings(Path("x"), "k")).credentials,
            EndpointSpec(endpoint_url=ENDPOINT, region="us-east-1"),
        )
        with Stubber(handle.client) as stubber:
            stubber.add_client_error(
                "head_bucket", service_error_code="404", http_status_code=404
            )

            assert bucket_exists(handle.client, BUCKET) is False

    @pytest.mark.integration
    def test_403_counts_as_existing(self, aws_env: Path) -> None:
        handle = resolve_client(
            load_invocation(_settings(Path("x"), "k")).credentials,
            EndpointSpec(endpoint_url=ENDPOINT, region="us-east-1"),
        )
        with Stubber(handle.client) as stubber:
            stubber.add_client_error(
                "head_bucket", service_error_code="403", http_status_code=403
            )

            assert bucket_exists(handle.client, BUCKET) is True
