"""Configuration loading and Pydantic models for the gallery service."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

DEFAULT_PUBLIC_URL_TEMPLATE = "https://{bucket}.s3.{region}.amazonaws.com/{key}"


class ServerConfig(BaseModel):
    """Server binding and runtime configuration."""

    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    log_format: str = "text"
    shutdown_timeout: int = 30


class StorageConfig(BaseModel):
    """Object store (S3) configuration."""

    backend: str = "aws"
    bucket: str = "gallery-assets"
    region: str = "us-east-1"
    upload_prefix: str = "uploads/"
    endpoint_url: str = ""
    presign_expires: int = 60
    public_url_template: str = DEFAULT_PUBLIC_URL_TEMPLATE


class MetadataConfig(BaseModel):
    """Metadata table (DynamoDB) configuration.

    ``region`` left empty means "same region as the object store".
    """

    engine: str = "dynamodb"
    table: str = "uploads"
    region: str = ""
    endpoint_url: str = ""
    list_limit: int = 100


class ObservabilityConfig(BaseModel):
    """Metrics configuration."""

    metrics: bool = True


class GalleryConfig(BaseModel):
    """Top-level gallery configuration."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    metadata: MetadataConfig = Field(default_factory=MetadataConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    @property
    def service_region(self) -> str:
        """Region used for the metadata table, falling back to the S3 region."""
        return self.metadata.region or self.storage.region


def _parse_server(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the server section from YAML data into a dict for Pydantic."""
    if data is None:
        return {}
    return {
        "host": data.get("host", "0.0.0.0"),
        "port": data.get("port", 3000),
        "log_level": data.get("log_level", "INFO"),
        "log_format": data.get("log_format", "text"),
        "shutdown_timeout": data.get("shutdown_timeout", 30),
    }


def _merge_backend_keys(
    result: dict[str, Any],
    flat: dict[str, Any],
    nested: Any,
    keys: tuple[str, ...],
) -> None:
    """Copy backend keys from the flat section, then from the nested one."""
    for source in (flat, nested if isinstance(nested, dict) else {}):
        for key in keys:
            if key in source:
                result[key] = source[key]


def _parse_storage(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the storage section from YAML data.

    ``bucket``, ``region`` and ``endpoint_url`` may sit directly under
    ``storage`` or in the nested ``storage.aws`` section; the nested value wins.
    """
    if data is None:
        return {}

    result: dict[str, Any] = {
        "backend": data.get("backend", "aws"),
        "upload_prefix": data.get("upload_prefix", "uploads/"),
        "presign_expires": data.get("presign_expires", 60),
        "public_url_template": data.get("public_url_template", DEFAULT_PUBLIC_URL_TEMPLATE),
    }

    _merge_backend_keys(result, data, data.get("aws"), ("bucket", "region", "endpoint_url"))

    return result


def _parse_metadata(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the metadata section from YAML data.

    ``table``, ``region`` and ``endpoint_url`` may sit directly under
    ``metadata`` or in the nested ``metadata.dynamodb`` section.
    """
    if data is None:
        return {}

    result: dict[str, Any] = {
        "engine": data.get("engine", "dynamodb"),
        "list_limit": data.get("list_limit", 100),
    }

    _merge_backend_keys(
        result, data, data.get("dynamodb"), ("table", "region", "endpoint_url")
    )

    return result


def _parse_observability(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the observability section from YAML data."""
    if data is None:
        return {}
    return {"metrics": data.get("metrics", True)}


def load_config(path: Path | None = None) -> GalleryConfig:
    """Load a GalleryConfig from a YAML file.

    A missing file is not an error: defaults are used, the same as an
    empty document.

    Args:
        path: Path to the YAML configuration file, or None for defaults.

    Returns:
        A fully populated GalleryConfig validated by Pydantic.

    Raises:
        yaml.YAMLError: If the file is not valid YAML.
    """
    raw: dict[str, Any] = {}
    if path is not None and path.is_file():
        with open(path, "r") as fh:
            raw = yaml.safe_load(fh) or {}

    return GalleryConfig(
        server=ServerConfig(**_parse_server(raw.get("server"))),
        storage=StorageConfig(**_parse_storage(raw.get("storage"))),
        metadata=MetadataConfig(**_parse_metadata(raw.get("metadata"))),
        observability=ObservabilityConfig(**_parse_observability(raw.get("observability"))),
    )


def apply_env_overrides(
    config: GalleryConfig, environ: Mapping[str, str] | None = None
) -> GalleryConfig:
    """Apply the environment variables the service has always honoured.

    PORT, S3_BUCKET, S3_REGION, S3_UPLOAD_PREFIX, DDB_TABLE and AWS_REGION.
    Unset or empty variables leave the loaded value untouched.

    Args:
        config: The configuration to update in place.
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        The same config instance, for chaining.
    """
    env = os.environ if environ is None else environ

    if env.get("PORT"):
        config.server.port = int(env["PORT"])
    if env.get("S3_BUCKET"):
        config.storage.bucket = env["S3_BUCKET"]
    if env.get("S3_REGION"):
        config.storage.region = env["S3_REGION"]
    if env.get("S3_UPLOAD_PREFIX"):
        config.storage.upload_prefix = env["S3_UPLOAD_PREFIX"]
    if env.get("DDB_TABLE"):
        config.metadata.table = env["DDB_TABLE"]
    if env.get("AWS_REGION"):
        config.metadata.region = env["AWS_REGION"]

    return config
