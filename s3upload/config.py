"""Configuration records and settings resolution for s3-upload.

Settings are resolved with the following precedence (highest to lowest):
1. CLI option
2. Environment variable (S3_UPLOAD_<KEY>)
3. Project config file (``s3-upload.yaml`` in the working directory, or the
   file given with ``--config``)
4. Built-in default

The resolved settings are turned into plain immutable records that are
passed to :func:`s3upload.execute.execute`:

    from s3upload.config import load_invocation

    invocation = load_invocation({"source": "dist/app.zip"}, config_path=None)
    execute(invocation.request, invocation.credentials, invocation.endpoint)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

import yaml

from s3upload.constants import CONFIG_FILENAME, ENV_PREFIX
from s3upload.errors import ConfigParseError, InvalidSettingError, MissingSettingError

# Every parameter the upload accepts, in display order
KNOWN_SETTINGS: tuple[str, ...] = (
    "source",
    "bucket_name",
    "destination",
    "access_key",
    "secret_key",
    "profile",
    "region",
    "endpoint",
    "recursive",
    "show_progress",
    "do_not_upload",
)

REQUIRED_SETTINGS: frozenset[str] = frozenset({"source", "bucket_name", "destination"})

BOOLEAN_DEFAULTS: dict[str, bool] = {
    "do_not_upload": False,
    "recursive": False,
    "show_progress": True,
}

SECRET_SETTINGS: frozenset[str] = frozenset({"access_key", "secret_key"})

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off"})


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class UploadRequest:
    """What to upload and where.

    Attributes:
        source: Local file or directory to upload.
        bucket_name: Destination bucket.
        destination: Object key (file upload) or key prefix (directory upload).
        recursive: Descend into subdirectories of a directory source.
        dry_run: Validate everything but skip the transfer.
        show_progress: Render progress while the transfer runs.
    """

    source: Path
    bucket_name: str
    destination: str
    recursive: bool = False
    dry_run: bool = False
    show_progress: bool = True

    @property
    def target_url(self) -> str:
        return f"s3://{self.bucket_name}/{self.destination}"


@dataclass(frozen=True)
class ExplicitKeys:
    """Static access key pair supplied by the caller."""

    access_key: str
    secret_key: str

    def __repr__(self) -> str:
        return f"ExplicitKeys(access_key={self.access_key!r}, secret_key='****')"


@dataclass(frozen=True)
class NamedProfile:
    """Credentials looked up by profile name in the shared AWS files."""

    profile_name: str


@dataclass(frozen=True)
class DefaultChain:
    """botocore's default credential chain (env, config files, metadata)."""


CredentialSpec = Union[ExplicitKeys, NamedProfile, DefaultChain]


@dataclass(frozen=True)
class EndpointSpec:
    """Optional endpoint override and region pin."""

    endpoint_url: str | None = None
    region: str | None = None


@dataclass(frozen=True)
class Invocation:
    """Everything one upload run needs."""

    request: UploadRequest
    credentials: CredentialSpec
    endpoint: EndpointSpec


def credential_spec(
    access_key: str | None, secret_key: str | None, profile: str | None
) -> CredentialSpec:
    """Pick the credential source: explicit keys > named profile > default chain.

    A lone access key or lone secret key does not count as explicit keys.
    """
    if access_key and secret_key:
        return ExplicitKeys(access_key, secret_key)
    if profile:
        return NamedProfile(profile)
    return DefaultChain()


# =============================================================================
# Config file
# =============================================================================


def get_config_path(config_path: Path | None = None) -> Path:
    """Return the config file to read: the explicit one or ./s3-upload.yaml."""
    if config_path is not None:
        return config_path
    return Path.cwd() / CONFIG_FILENAME


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load the project config file.

    Returns:
        Config dictionary. Returns empty dict if the file doesn't exist or is empty.

    Raises:
        ConfigParseError: If the file is not valid YAML or not a mapping.
    """
    config_file = get_config_path(config_path)

    if not config_file.exists():
        return {}

    content = config_file.read_text()
    if not content.strip():
        return {}

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as err:
        raise ConfigParseError(str(config_file), str(err)) from err

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParseError(str(config_file), "top level must be a mapping")
    return data


# =============================================================================
# Settings resolution
# =============================================================================


def _get_env_var_name(key: str) -> str:
    """Convert a setting key to its environment variable (bucket_name -> S3_UPLOAD_BUCKET_NAME)."""
    return f"{ENV_PREFIX}{key.upper()}"


def get_setting(
    key: str,
    cli_value: Any | None = None,
    config: dict[str, Any] | None = None,
) -> Any | None:
    """Resolve a single setting with full precedence.

    Args:
        key: Setting key (e.g., "bucket_name")
        cli_value: Value passed on the command line (highest precedence)
        config: Parsed project config file

    Returns:
        Resolved value, or the built-in default (None for most keys).
    """
    if cli_value is not None:
        return cli_value

    env_value = os.environ.get(_get_env_var_name(key))
    if env_value is not None:
        return env_value

    if config and config.get(key) is not None:
        return config[key]

    return BOOLEAN_DEFAULTS.get(key)


def _get_setting_source(
    key: str, cli_value: Any | None, config: dict[str, Any] | None
) -> str:
    """Return where a setting's value comes from: cli, env, file or default."""
    if cli_value is not None:
        return "cli"
    if _get_env_var_name(key) in os.environ:
        return "env"
    if config and config.get(key) is not None:
        return "file"
    return "default"


def parse_bool(key: str, value: Any) -> bool:
    """Interpret a boolean setting coming from the CLI, env or YAML."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise InvalidSettingError(key, value, "a boolean such as true/false")


def _mask(key: str, value: Any) -> Any:
    if key not in SECRET_SETTINGS or value is None:
        return value
    text = str(value)
    if key == "access_key" and len(text) > 4:
        return f"{text[:4]}****"
    return "****"


def list_settings(
    cli_values: dict[str, Any] | None = None,
    config_path: Path | None = None,
) -> dict[str, dict[str, Any]]:
    """List every known setting with its resolved value and source.

    Secret values are masked.

    Returns:
        Dict mapping setting keys to {"value": ..., "source": ...}
    """
    cli_values = cli_values or {}
    config = load_config(config_path)

    result: dict[str, dict[str, Any]] = {}
    for key in KNOWN_SETTINGS:
        cli_value = cli_values.get(key)
        value = get_setting(key, cli_value, config)
        result[key] = {
            "value": _mask(key, value),
            "source": _get_setting_source(key, cli_value, config),
        }
    return result


def resolve_settings(
    cli_values: dict[str, Any] | None = None,
    config_path: Path | None = None,
) -> dict[str, Any]:
    """Resolve all known settings; booleans are parsed, empty strings become None.

    Raises:
        MissingSettingError: If a required setting has no value.
        InvalidSettingError: If a boolean setting cannot be parsed.
        ConfigParseError: If the config file is malformed.
    """
    cli_values = cli_values or {}
    config = load_config(config_path)

    settings: dict[str, Any] = {}
    for key in KNOWN_SETTINGS:
        value = get_setting(key, cli_values.get(key), config)
        if key in BOOLEAN_DEFAULTS:
            settings[key] = parse_bool(key, value)
            continue
        if isinstance(value, str) and not value.strip():
            value = None
        if value is None and key in REQUIRED_SETTINGS:
            raise MissingSettingError(key)
        settings[key] = value
    return settings


def load_invocation(
    cli_values: dict[str, Any] | None = None,
    config_path: Path | None = None,
) -> Invocation:
    """Resolve settings and build the records for one upload run."""
    settings = resolve_settings(cli_values, config_path)

    request = UploadRequest(
        source=Path(settings["source"]),
        bucket_name=str(settings["bucket_name"]),
        destination=str(settings["destination"]),
        recursive=settings["recursive"],
        dry_run=settings["do_not_upload"],
        show_progress=settings["show_progress"],
    )
    credentials = credential_spec(
        settings["access_key"], settings["secret_key"], settings["profile"]
    )
    endpoint = EndpointSpec(endpoint_url=settings["endpoint"], region=settings["region"])
    return Invocation(request=request, credentials=credentials, endpoint=endpoint)
