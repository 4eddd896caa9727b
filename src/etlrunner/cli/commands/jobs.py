"""Commands for submitting and supervising the enrichment job."""

from pathlib import Path

import typer
from databricks.sdk.errors import DatabricksError

from etlrunner.cli.common.context import build_jobs_context
from etlrunner.cli.common.exits import die, exit_from_exc, ok_exit, warn_exit
from etlrunner.cli.common.logs import configure_logging
from etlrunner.cli.common.options import (
    ConfigOpt,
    DryRunOpt,
    ProcessBucketOpt,
    ProfileOpt,
    RunIdArg,
    VerboseOpt,
)
from etlrunner.cli.common.output import out
from etlrunner.core.builder import build_job_description
from etlrunner.core.config import ConfigError, JobConfig, load_config
from etlrunner.core.runs import (
    JobFailedError,
    TransientConnectivityError,
    run_job,
    wait_for_job,
)

app = typer.Typer(
    help="Submit and supervise the enrichment job",
    no_args_is_help=True,
)


@app.callback()
def _init(verbose: bool = VerboseOpt):
    """Configure logging for the job commands."""
    configure_logging(verbose)


def _load_config(config: Path, process_bucket: str | None) -> JobConfig:
    """Load the configuration, exiting with a readable message on error."""
    try:
        return load_config(config, process_bucket=process_bucket)
    except ConfigError as exc:
        exit_from_exc(exc)


@app.command()
def describe(
    config: Path = ConfigOpt,
    process_bucket: str | None = ProcessBucketOpt,
):
    """
    Show the job that would be submitted for a configuration.
    """
    job_config = _load_config(config, process_bucket)
    out.description(build_job_description(job_config))


@app.command()
def run(
    config: Path = ConfigOpt,
    profile: str | None = ProfileOpt,
    process_bucket: str | None = ProcessBucketOpt,
    dry_run: bool = DryRunOpt,
):
    """
    Submit the job and wait until it completes.
    """
    job_config = _load_config(config, process_bucket)
    out.description(build_job_description(job_config))

    if dry_run:
        warn_exit("Dry-run enabled: no job was submitted", code=0)

    appctx = build_jobs_context(job_config.credentials, profile=profile)

    try:
        with out.status("Running job..."):
            job_id = run_job(appctx.adapter, job_config)
    except JobFailedError as exc:
        exit_from_exc(exc)
    except TransientConnectivityError as exc:
        exit_from_exc(exc, message=f"Could not reach Databricks: {exc}")
    except DatabricksError as exc:
        exit_from_exc(exc, message=f"Databricks API error: {exc}")

    ok_exit(f"Job {job_id} completed successfully")


@app.command()
def wait(
    run_id: int = RunIdArg,
    profile: str | None = ProfileOpt,
):
    """
    Wait for an already submitted job to complete.
    """
    appctx = build_jobs_context(None, profile=profile)

    try:
        with out.status(f"Waiting for run {run_id}..."):
            succeeded = wait_for_job(appctx.adapter, str(run_id))
    except DatabricksError as exc:
        exit_from_exc(exc, message=f"Databricks API error: {exc}")

    if not succeeded:
        die(str(JobFailedError(str(run_id))))
    ok_exit(f"Job {run_id} completed successfully")
