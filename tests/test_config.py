import copy
from datetime import datetime

import pytest
import yaml

from etlrunner.core.config import (
    CollectorFormat,
    ConfigError,
    EtlImplementation,
    StorageFormat,
    generate_run_id,
    load_config,
    parse_config,
    trail_slash,
)

_RAW = {
    "databricks": {"profile": "etl"},
    "snowplow": {
        "hadoop_etl_version": "0.3.4",
        "serde_version": "0.5.5",
        "hive_hiveql_version": "0.5.7",
        "redshift_hiveql_version": "0.1.0",
    },
    "s3": {
        "buckets": {
            "assets": "s3://my-assets",
            "log": "s3://my-logs",
            "in": "s3://my-in",
            "processing": "s3://my-processing",
            "out": "s3://my-out",
            "out_bad_rows": "s3://my-bad",
            "out_errors": "s3://my-errors",
            "archive": "s3://my-archive",
        }
    },
    "cluster": {
        "engine_version": "13.3.x-scala2.12",
        "node_type": "m5.xlarge",
        "num_workers": 3,
        "placement": "us-east-1a",
        "job": {"autotermination_minutes": 30},
        "program_step": {"timeout_seconds": 7200},
    },
    "etl": {
        "job_name": "Snowplow ETL",
        "implementation": "hadoop",
        "collector_format": "cloudfront",
        "storage_format": "hive",
        "continue_on_unexpected_error": False,
    },
}

_NOW = datetime(2024, 1, 1, 0, 0, 0)


def _raw(**etl):
    data = copy.deepcopy(_RAW)
    data["etl"].update(etl)
    return data


def test_trail_slash_only_adds_missing_slash():
    assert trail_slash("s3://bucket") == "s3://bucket/"
    assert trail_slash("s3://bucket/") == "s3://bucket/"


def test_generate_run_id_format():
    assert generate_run_id(datetime(2013, 5, 6, 7, 8, 9)) == "2013-05-06-07-08-09"


def test_parse_config_normalizes_and_derives_fields():
    config = parse_config(_raw(), now=_NOW)

    assert config.implementation is EtlImplementation.HADOOP
    assert config.collector_format is CollectorFormat.CLOUDFRONT
    assert config.storage_format is StorageFormat.HIVE
    assert config.run_id == "2024-01-01-00-00-00"
    assert config.buckets.processing == "s3://my-processing/"
    assert config.buckets.out_errors == "s3://my-errors/"
    assert config.credentials.profile == "etl"
    assert config.cluster.num_workers == 3
    assert config.cluster.job_overrides == {"autotermination_minutes": 30}
    assert config.cluster.program_step_overrides == {"timeout_seconds": 7200}
    assert config.cluster.script_step_overrides == {}


def test_parse_config_builds_asset_locations():
    assets = parse_config(_raw(), now=_NOW).assets

    assert assets.maxmind == "s3://my-assets/third-party/maxmind/GeoLiteCity.dat"
    assert assets.hadoop_jar == (
        "s3://my-assets/3-enrich/hadoop-etl/snowplow-hadoop-etl-0.3.4.jar"
    )
    assert assets.serde == (
        "s3://my-assets/3-enrich/hive-etl/serdes/snowplow-log-deserializers-0.5.5.jar"
    )
    assert assets.hiveql == "s3://my-assets/3-enrich/hive-etl/hiveql/hive-etl-0.5.7.q"


def test_hosted_assets_bucket_reads_maxmind_over_http():
    data = _raw()
    data["s3"]["buckets"]["assets"] = "s3://snowplow-hosted-assets"

    assets = parse_config(data, now=_NOW).assets

    assert assets.maxmind == (
        "http://snowplow-hosted-assets.s3.amazonaws.com/third-party/maxmind/GeoLiteCity.dat"
    )
    assert assets.hadoop_jar.startswith("s3://snowplow-hosted-assets/3-enrich/")


def test_hiveql_version_follows_storage_format():
    config = parse_config(
        _raw(implementation="hive", storage_format="redshift"), now=_NOW
    )

    assert config.assets.hiveql.endswith("/hiveql/redshift-etl-0.1.0.q")


def test_missing_hiveql_version_is_an_error_for_hive():
    with pytest.raises(ConfigError, match="mysql_infobright_hiveql_version"):
        parse_config(
            _raw(implementation="hive", storage_format="mysql-infobright"), now=_NOW
        )


def test_missing_hiveql_version_is_ignored_for_hadoop():
    config = parse_config(_raw(storage_format="mysql-infobright"), now=_NOW)

    assert config.assets.hiveql is None


def test_process_bucket_overrides_processing():
    config = parse_config(_raw(), process_bucket="s3://other", now=_NOW)

    assert config.buckets.processing == "s3://other/"


@pytest.mark.parametrize(
    ("field", "value", "label"),
    [
        ("implementation", "pig", "etl_implementation"),
        ("collector_format", "apache", "collector_format"),
        ("storage_format", "postgres", "storage_format"),
    ],
)
def test_unsupported_choices_are_rejected(field, value, label):
    with pytest.raises(ConfigError, match=f"{label} '{value}' not supported"):
        parse_config(_raw(**{field: value}), now=_NOW)


def test_continue_on_unexpected_error_must_be_boolean():
    with pytest.raises(ConfigError, match="continue_on_unexpected_error"):
        parse_config(_raw(continue_on_unexpected_error="yes"), now=_NOW)


def test_errors_bucket_required_for_hadoop_continue_on_error():
    data = _raw(continue_on_unexpected_error=True)
    del data["s3"]["buckets"]["out_errors"]

    with pytest.raises(ConfigError, match="out_errors"):
        parse_config(data, now=_NOW)


def test_missing_section_is_reported():
    data = _raw()
    del data["cluster"]

    with pytest.raises(ConfigError, match="cluster"):
        parse_config(data, now=_NOW)


def test_load_config_reads_yaml(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(yaml.safe_dump(_raw()))

    config = load_config(path, now=_NOW)

    assert config.job_name == "Snowplow ETL"
    assert config.buckets.log == "s3://my-logs/"


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="does not exist"):
        load_config(tmp_path / "missing.yml")


def test_load_config_invalid_yaml(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("etl: [unclosed")

    with pytest.raises(ConfigError, match="not valid YAML"):
        load_config(path)


def test_hiveql_notebook_replaces_script_location():
    config = parse_config(
        _raw(implementation="hive", hiveql_notebook="/Repos/etl/hive-etl"), now=_NOW
    )

    assert config.assets.hiveql == "/Repos/etl/hive-etl"


def test_hiveql_notebook_makes_version_optional():
    config = parse_config(
        _raw(
            implementation="hive",
            storage_format="mysql-infobright",
            hiveql_notebook="/Workspace/etl/infobright-etl",
        ),
        now=_NOW,
    )

    assert config.assets.hiveql == "/Workspace/etl/infobright-etl"
