"""Job description builder.

Translates a validated JobConfig into the JobDescription submitted to the
cluster. The Hive implementation becomes a single script step driven by named
variables; the Hadoop implementation becomes a single program step driven by
positional arguments, with its output locations partitioned by run id.
"""

from __future__ import annotations

import logging

from etlrunner.core.config import EtlImplementation, JobConfig
from etlrunner.core.jobs import ClusterSpec, JobDescription, ProgramStep, ScriptStep

logger = logging.getLogger(__name__)

HADOOP_ETL_JOB_CLASS = "com.snowplowanalytics.snowplow.enrich.hadoop.EtlJob"
HIVE_STEP_NAME = "hive_etl"
HADOOP_STEP_NAME = "hadoop_etl"


def _partition(location: str, run_id: str) -> str:
    """Suffix a slash-terminated location with the run id as a path segment."""
    return f"{location}{run_id}/"


def build_hive_step(config: JobConfig) -> ScriptStep:
    """Build the HiveQL script step. Locations are not partitioned here."""
    return ScriptStep(
        name=HIVE_STEP_NAME,
        script=config.assets.hiveql,
        variables={
            "SERDE_FILE": config.assets.serde,
            "CLOUDFRONT_LOGS": config.buckets.processing,
            "EVENTS_TABLE": config.buckets.out,
            "COLLECTOR_FORMAT": config.collector_format.value,
            "CONTINUE_ON": "1" if config.continue_on_unexpected_error else "0",
        },
        overrides=dict(config.cluster.script_step_overrides),
    )


def build_hadoop_step(config: JobConfig) -> ProgramStep:
    """
    Build the Hadoop ETL program step.

    The job always runs in --hdfs mode. Without continue-on-error the
    --exceptions_folder pair is left out entirely, which makes the job fail
    on the first unexpected error.
    """
    buckets = config.buckets
    arguments = [
        HADOOP_ETL_JOB_CLASS,
        "--hdfs",
        "--input_folder", buckets.processing,
        "--input_format", config.collector_format.value,
        "--maxmind_file", config.assets.maxmind,
        "--output_folder", _partition(buckets.out, config.run_id),
        "--bad_rows_folder", _partition(buckets.out_bad_rows, config.run_id),
    ]

    if config.continue_on_unexpected_error:
        arguments += [
            "--exceptions_folder",
            _partition(buckets.out_errors, config.run_id),
        ]

    return ProgramStep(
        name=HADOOP_STEP_NAME,
        jar=config.assets.hadoop_jar,
        arguments=tuple(arguments),
        overrides=dict(config.cluster.program_step_overrides),
    )


def build_job_description(config: JobConfig) -> JobDescription:
    """
    Build the job description for one invocation.

    Args:
        config: Validated configuration.

    Returns:
        A JobDescription with exactly one step for the configured
        implementation. Calling this twice with the same config yields equal
        descriptions.
    """
    logger.info(
        "Initializing %s job '%s' (run %s)",
        config.implementation.value,
        config.job_name,
        config.run_id,
    )

    if config.implementation is EtlImplementation.HIVE:
        step = build_hive_step(config)
    else:
        step = build_hadoop_step(config)

    cluster = config.cluster
    return JobDescription(
        name=config.job_name,
        cluster=ClusterSpec(
            engine_version=cluster.engine_version,
            node_type=cluster.node_type,
            num_workers=cluster.num_workers,
            placement=cluster.placement,
            ssh_key=cluster.ssh_key,
            log_uri=config.buckets.log,
        ),
        steps=(step,),
        overrides=dict(cluster.job_overrides),
    )
