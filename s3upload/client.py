"""Build a configured S3 client from credential and endpoint settings.

Credential precedence:
1. Explicit access key pair (static credentials, beats any profile or env var)
2. Named profile from ~/.aws/credentials / ~/.aws/config
3. botocore's default chain: environment variables, shared config file,
   container and instance metadata

Region: an explicit region pins the client. With a custom endpoint and no
explicit region, the signing region comes from the session's default
region chain (AWS_REGION, AWS_DEFAULT_REGION, profile config) at
resolution time.

Resolution makes no network calls. Bad credentials only surface once the
client is used (bucket check or transfer).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.credentials import Credentials
from botocore.exceptions import ClientError, ProfileNotFound

from s3upload.config import CredentialSpec, EndpointSpec, ExplicitKeys, NamedProfile
from s3upload.errors import ProfileNotFoundError

logger = logging.getLogger(__name__)

SessionFactory = Callable[..., boto3.session.Session]

# Error codes HEAD bucket returns for a bucket that does not exist
_MISSING_BUCKET_CODES = frozenset({"404", "NoSuchBucket", "NotFound"})
# The bucket exists but belongs to someone else or denies HEAD
_FORBIDDEN_BUCKET_CODES = frozenset({"403", "AccessDenied", "Forbidden"})


@dataclass
class ClientHandle:
    """A ready-to-use S3 client together with the session that produced it.

    Attributes:
        client: boto3 S3 client.
        session: Session holding the resolved credentials.
        region: Region the client signs requests for (None if unset).
        endpoint_url: Custom endpoint, if one was configured.
    """

    client: Any
    session: boto3.session.Session
    region: str | None
    endpoint_url: str | None

    def credentials(self) -> Credentials | None:
        """Credentials the client will sign with (may consult the default chain)."""
        return self.session.get_credentials()


def _normalize_endpoint(endpoint_url: str) -> str:
    """Add https:// to endpoints given as bare host[:port]."""
    if "://" in endpoint_url:
        return endpoint_url
    return f"https://{endpoint_url}"


def _build_session(
    credentials: CredentialSpec, session_factory: SessionFactory
) -> boto3.session.Session:
    if isinstance(credentials, ExplicitKeys):
        logger.debug("Using explicit access key %s...", credentials.access_key[:4])
        return session_factory(
            aws_access_key_id=credentials.access_key,
            aws_secret_access_key=credentials.secret_key,
        )

    if isinstance(credentials, NamedProfile):
        logger.debug("Using credentials from profile %s", credentials.profile_name)
        try:
            return session_factory(profile_name=credentials.profile_name)
        except ProfileNotFound as err:
            raise ProfileNotFoundError(credentials.profile_name) from err

    logger.debug("Using default credential chain")
    return session_factory()


def resolve_client(
    credentials: CredentialSpec,
    endpoint: EndpointSpec,
    *,
    session_factory: SessionFactory = boto3.session.Session,
) -> ClientHandle:
    """Create an S3 client for the given credential source and endpoint.

    Args:
        credentials: Which credential source to use.
        endpoint: Optional endpoint override and region pin.
        session_factory: Callable building a boto3 Session (swappable in tests).

    Returns:
        ClientHandle wrapping the client and its session.

    Raises:
        ProfileNotFoundError: If a named profile is not configured.
    """
    session = _build_session(credentials, session_factory)

    region = endpoint.region
    client_kwargs: dict[str, str] = {}

    endpoint_url = None
    if endpoint.endpoint_url:
        endpoint_url = _normalize_endpoint(endpoint.endpoint_url)
        client_kwargs["endpoint_url"] = endpoint_url
        if region is None:
            region = session.region_name

    if region:
        client_kwargs["region_name"] = region

    logger.debug("Creating S3 client (region=%s, endpoint=%s)", region, endpoint_url)
    client = session.client("s3", **client_kwargs)

    return ClientHandle(
        client=client,
        session=session,
        region=region or session.region_name,
        endpoint_url=endpoint_url,
    )


def bucket_exists(client: Any, bucket_name: str) -> bool:
    """Check whether a bucket exists with a HEAD request.

    A 403 counts as existing: the bucket is there but the caller cannot read
    it, and the transfer itself will report the permission problem.

    Raises:
        ClientError: For any error other than not-found or forbidden.
    """
    try:
        client.head_bucket(Bucket=bucket_name)
    except ClientError as err:
        code = str(err.response.get("Error", {}).get("Code", ""))
        logger.debug("head_bucket error code=%s for %s", code, bucket_name)
        if code in _MISSING_BUCKET_CODES:
            return False
        if code in _FORBIDDEN_BUCKET_CODES:
            return True
        raise
    return True
