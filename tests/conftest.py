from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path

import pytest

# Ensure tests always import the local src tree, not an older installed wheel.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from etlrunner.core.config import (  # noqa: E402
    Assets,
    Buckets,
    ClusterSettings,
    CollectorFormat,
    Credentials,
    EtlImplementation,
    JobConfig,
    StorageFormat,
)


def _base_config() -> JobConfig:
    return JobConfig(
        credentials=Credentials(profile="etl"),
        job_name="Snowplow ETL",
        implementation=EtlImplementation.HADOOP,
        collector_format=CollectorFormat.CLOUDFRONT,
        storage_format=StorageFormat.HIVE,
        continue_on_unexpected_error=False,
        run_id="2024-01-01-00-00-00",
        buckets=Buckets(
            assets="s3://assets/",
            log="s3://logs/",
            processing="s3://processing/",
            out="s3://out/",
            out_bad_rows="s3://bad/",
            out_errors="s3://errors/",
        ),
        assets=Assets(
            maxmind="s3://assets/third-party/maxmind/GeoLiteCity.dat",
            hadoop_jar="s3://assets/3-enrich/hadoop-etl/snowplow-hadoop-etl-0.3.4.jar",
            serde="s3://assets/3-enrich/hive-etl/serdes/snowplow-log-deserializers-0.5.5.jar",
            hiveql="s3://assets/3-enrich/hive-etl/hiveql/hive-etl-0.5.7.q",
        ),
        cluster=ClusterSettings(
            engine_version="13.3.x-scala2.12",
            node_type="m5.xlarge",
            num_workers=2,
            placement="us-east-1a",
        ),
    )


@pytest.fixture
def make_config():
    """Return a factory building a JobConfig with selected fields replaced."""

    def _make(**changes) -> JobConfig:
        return replace(_base_config(), **changes)

    return _make
