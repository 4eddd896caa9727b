"""Configuration loading for the enrichment job.

This module reads the YAML configuration file, validates its shape and
derives everything the job builder needs: the run identifier, normalized
bucket locations and the locations of the ETL assets. The result is an
immutable JobConfig that is created once per invocation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationError

_HOSTED_ASSETS_BUCKET = "s3://snowplow-hosted-assets/"
_HOSTED_ASSETS_HTTP = "http://snowplow-hosted-assets.s3.amazonaws.com/"
_RUN_ID_FORMAT = "%Y-%m-%d-%H-%M-%S"


class ConfigError(ValueError):
    """Raised when the configuration cannot be loaded or is not supported."""


class EtlImplementation(str, Enum):
    """Processing engine used for the enrichment step."""

    HIVE = "hive"
    HADOOP = "hadoop"


class CollectorFormat(str, Enum):
    """Format of the raw collector logs."""

    CLOUDFRONT = "cloudfront"
    CLJ_TOMCAT = "clj-tomcat"


class StorageFormat(str, Enum):
    """Target storage format, selects the HiveQL script."""

    HIVE = "hive"
    REDSHIFT = "redshift"
    MYSQL_INFOBRIGHT = "mysql-infobright"


@dataclass(frozen=True)
class Credentials:
    """
    Databricks credentials.

    Attributes:
        profile: Profile name from ~/.databrickscfg.
        host: Workspace URL, used together with token.
        token: Personal access token.
    """

    profile: str | None = None
    host: str | None = None
    token: str | None = None


@dataclass(frozen=True)
class Buckets:
    """Object storage locations, all ending with a slash."""

    assets: str
    log: str
    processing: str
    out: str
    out_bad_rows: str
    out_errors: str | None = None


@dataclass(frozen=True)
class Assets:
    """Locations of the artifacts executed by the job."""

    maxmind: str
    hadoop_jar: str
    serde: str
    hiveql: str | None = None


@dataclass(frozen=True)
class ClusterSettings:
    """
    Cluster shape plus the extra settings overlays.

    The overlays are plain mappings merged onto the rendered job and step
    definitions by key overwrite.
    """

    engine_version: str
    node_type: str
    num_workers: int
    placement: str | None = None
    ssh_key: str | None = None
    job_overrides: Mapping[str, Any] = field(default_factory=dict)
    script_step_overrides: Mapping[str, Any] = field(default_factory=dict)
    program_step_overrides: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class JobConfig:
    """Validated, read-only configuration for a single invocation."""

    credentials: Credentials
    job_name: str
    implementation: EtlImplementation
    collector_format: CollectorFormat
    storage_format: StorageFormat
    continue_on_unexpected_error: bool
    run_id: str
    buckets: Buckets
    assets: Assets
    cluster: ClusterSettings


class _Section(BaseModel):
    model_config = ConfigDict(extra="ignore")


class _DatabricksSection(_Section):
    profile: str | None = None
    host: str | None = None
    token: str | None = None


class _VersionsSection(_Section):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    hadoop_etl_version: str
    serde_version: str
    hive_hiveql_version: str | None = None
    redshift_hiveql_version: str | None = None
    mysql_infobright_hiveql_version: str | None = None


class _BucketsSection(_Section):
    assets: str = Field(min_length=1)
    log: str = Field(min_length=1)
    processing: str = Field(min_length=1)
    out: str = Field(min_length=1)
    out_bad_rows: str = Field(min_length=1)
    out_errors: str | None = None


class _S3Section(_Section):
    buckets: _BucketsSection


class _ClusterSection(_Section):
    engine_version: str = Field(min_length=1)
    node_type: str = Field(min_length=1)
    num_workers: int = Field(default=2, ge=0)
    placement: str | None = None
    ssh_key: str | None = None
    job: dict[str, Any] | None = None
    script_step: dict[str, Any] | None = None
    program_step: dict[str, Any] | None = None


class _EtlSection(_Section):
    job_name: str = Field(min_length=1)
    implementation: str
    collector_format: str
    storage_format: str
    continue_on_unexpected_error: StrictBool
    hiveql_notebook: str | None = None


class _RawConfig(_Section):
    databricks: _DatabricksSection = Field(default_factory=_DatabricksSection)
    snowplow: _VersionsSection
    s3: _S3Section
    cluster: _ClusterSection
    etl: _EtlSection


def trail_slash(location: str) -> str:
    """Return the location with exactly one trailing slash added if missing."""
    return location if location.endswith("/") else f"{location}/"


def generate_run_id(now: datetime | None = None) -> str:
    """Return the run identifier for an invocation started at `now`."""
    return (now or datetime.now()).strftime(_RUN_ID_FORMAT)


def _parse_choice(enum_cls: type[Enum], value: str, label: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        raise ConfigError(f"{label} '{value}' not supported") from None


def _format_validation_error(exc: ValidationError) -> str:
    """Flatten pydantic errors into `section.key: message` lines."""
    lines = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        lines.append(f"{loc}: {err.get('msg')}")
    return "Invalid configuration:\n  " + "\n  ".join(lines)


def _build_buckets(raw: _BucketsSection, process_bucket: str | None) -> Buckets:
    processing = process_bucket if process_bucket is not None else raw.processing
    return Buckets(
        assets=trail_slash(raw.assets),
        log=trail_slash(raw.log),
        processing=trail_slash(processing),
        out=trail_slash(raw.out),
        out_bad_rows=trail_slash(raw.out_bad_rows),
        out_errors=trail_slash(raw.out_errors) if raw.out_errors else None,
    )


def _build_assets(
    buckets: Buckets,
    versions: _VersionsSection,
    implementation: EtlImplementation,
    storage_format: StorageFormat,
    hiveql_notebook: str | None = None,
) -> Assets:
    """
    Construct the asset locations from the assets bucket and versions.

    The hosted assets bucket is public, so the MaxMind file is read over
    plain HTTP in that case. Notebook tasks only resolve workspace or Git
    paths, so `hiveql_notebook` replaces the HiveQL asset location when set.
    """
    if buckets.assets == _HOSTED_ASSETS_BUCKET:
        asset_host = _HOSTED_ASSETS_HTTP
    else:
        asset_host = buckets.assets

    asset_path = f"{buckets.assets}3-enrich"

    version_key = f"{storage_format.value.replace('-', '_')}_hiveql_version"
    hiveql_version = getattr(versions, version_key)
    if hiveql_notebook:
        hiveql = hiveql_notebook
    elif hiveql_version:
        hiveql = (
            f"{asset_path}/hive-etl/hiveql/{storage_format.value}-etl-"
            f"{hiveql_version}.q"
        )
    elif implementation is EtlImplementation.HIVE:
        raise ConfigError(
            f"snowplow.{version_key} is required for storage_format "
            f"'{storage_format.value}'"
        )
    else:
        hiveql = None

    return Assets(
        maxmind=f"{asset_host}third-party/maxmind/GeoLiteCity.dat",
        hadoop_jar=(
            f"{asset_path}/hadoop-etl/snowplow-hadoop-etl-"
            f"{versions.hadoop_etl_version}.jar"
        ),
        serde=(
            f"{asset_path}/hive-etl/serdes/snowplow-log-deserializers-"
            f"{versions.serde_version}.jar"
        ),
        hiveql=hiveql,
    )


def parse_config(
    data: Mapping[str, Any],
    *,
    process_bucket: str | None = None,
    now: datetime | None = None,
) -> JobConfig:
    """
    Validate an already parsed configuration mapping into a JobConfig.

    Args:
        data: Mapping as read from the YAML file.
        process_bucket: Optional override for the processing bucket.
        now: Invocation time used to derive the run identifier.

    Returns:
        The immutable JobConfig for this invocation.

    Raises:
        ConfigError: If the mapping has the wrong shape or holds
            unsupported values.
    """
    if not isinstance(data, Mapping):
        raise ConfigError("Configuration must be a mapping at the top level")

    try:
        raw = _RawConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(_format_validation_error(exc)) from exc

    implementation = _parse_choice(
        EtlImplementation, raw.etl.implementation, "etl_implementation"
    )
    collector_format = _parse_choice(
        CollectorFormat, raw.etl.collector_format, "collector_format"
    )
    storage_format = _parse_choice(
        StorageFormat, raw.etl.storage_format, "storage_format"
    )

    buckets = _build_buckets(raw.s3.buckets, process_bucket)
    continue_on = raw.etl.continue_on_unexpected_error
    if (
        implementation is EtlImplementation.HADOOP
        and continue_on
        and buckets.out_errors is None
    ):
        raise ConfigError(
            "s3.buckets.out_errors is required when continue_on_unexpected_error "
            "is true for the hadoop implementation"
        )

    cluster = raw.cluster
    return JobConfig(
        credentials=Credentials(
            profile=raw.databricks.profile,
            host=raw.databricks.host,
            token=raw.databricks.token,
        ),
        job_name=raw.etl.job_name,
        implementation=implementation,
        collector_format=collector_format,
        storage_format=storage_format,
        continue_on_unexpected_error=continue_on,
        run_id=generate_run_id(now),
        buckets=buckets,
        assets=_build_assets(
            buckets,
            raw.snowplow,
            implementation,
            storage_format,
            hiveql_notebook=raw.etl.hiveql_notebook,
        ),
        cluster=ClusterSettings(
            engine_version=cluster.engine_version,
            node_type=cluster.node_type,
            num_workers=cluster.num_workers,
            placement=cluster.placement,
            ssh_key=cluster.ssh_key,
            job_overrides=dict(cluster.job or {}),
            script_step_overrides=dict(cluster.script_step or {}),
            program_step_overrides=dict(cluster.program_step or {}),
        ),
    )


def load_config(
    path: str | Path,
    *,
    process_bucket: str | None = None,
    now: datetime | None = None,
) -> JobConfig:
    """Read and validate the YAML configuration file at `path`."""
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigError(
            f"Configuration file '{config_path}' does not exist, or is not a file."
        )
    try:
        data = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as exc:
        raise ConfigError(f"Configuration file '{config_path}' is not valid YAML: {exc}") from exc
    return parse_config(data or {}, process_bucket=process_bucket, now=now)
