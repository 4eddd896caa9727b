"""Core job submission and supervision logic.

This module contains the domain-level functions for submitting a job
description to the remote cluster and waiting for it to finish. Everything is
synchronous: build, submit and poll run one after the other, and the polling
loop suspends by sleeping a fixed interval between status queries. Remote
access goes through an adapter so the loop can be tested against fakes.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Iterable, Protocol

from etlrunner.core.builder import build_job_description
from etlrunner.core.config import JobConfig
from etlrunner.core.jobs import JobDescription

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 120
TRANSIENT_RETRY_SECONDS = 300

RUNNING_STATES = frozenset({"WAITING", "RUNNING", "PENDING", "SHUTTING_DOWN"})
FAILED_STATES = frozenset({"FAILED", "CANCELLED"})


class TransientConnectivityError(ConnectionError):
    """Raised by adapters when a remote call could not complete."""


class JobFailedError(RuntimeError):
    """Raised when a submitted job finished with at least one failed step."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(
            f"Job {job_id} failed, check the Databricks run page and cluster "
            "logs for details."
        )


class JobRunsAdapter(Protocol):
    """Interface for submitting jobs and querying their step states."""

    def submit(self, description: JobDescription) -> str:
        """Submit a job description and return the remote job id."""
        ...

    def get_step_states(self, job_id: str) -> list[str]:
        """Return the current state of every step of the job, in order."""
        ...


@dataclass(frozen=True)
class StepCounts:
    """Number of running and failed steps in one status report."""

    running: int
    failed: int


def classify_step_states(states: Iterable[str]) -> StepCounts:
    """
    Count running and failed steps.

    States outside both sets are neither running nor failed, which makes them
    count as succeeded.
    """
    running = 0
    failed = 0
    for state in states:
        if state in RUNNING_STATES:
            running += 1
        if state in FAILED_STATES:
            failed += 1
    return StepCounts(running=running, failed=failed)


def submit_job(adapter: JobRunsAdapter, description: JobDescription) -> str:
    """
    Submit a job description to the remote cluster.

    This is a single remote call without retry; any error is fatal to the
    invocation and propagates to the caller.

    Args:
        adapter: Remote cluster adapter.
        description: The job to submit.

    Returns:
        The job id assigned by the remote service.
    """
    logger.info(
        "Submitting job '%s' with %d step(s)", description.name, len(description.steps)
    )
    return adapter.submit(description)


def wait_for_job(
    adapter: JobRunsAdapter,
    job_id: str,
    poll_interval: float = POLL_INTERVAL_SECONDS,
    retry_interval: float = TRANSIENT_RETRY_SECONDS,
) -> bool:
    """
    Block until the job has no running steps left.

    The adapter is polled every `poll_interval` seconds. A transient
    connectivity error while polling is not a job failure: it is logged and
    the query is retried after `retry_interval` seconds, indefinitely. Any
    other error propagates.

    Args:
        adapter: Remote cluster adapter.
        job_id: Id of the job to watch.
        poll_interval: Seconds to wait while steps are still running.
        retry_interval: Seconds to wait after a transient error.

    Returns:
        True if no step failed, False otherwise.
    """
    logger.info("Waiting for job %s to complete...", job_id)
    while True:
        try:
            counts = classify_step_states(adapter.get_step_states(job_id))
        except TransientConnectivityError as exc:
            logger.warning(
                "Got connectivity error %s, waiting %d seconds before checking job %s again",
                exc,
                retry_interval,
                job_id,
            )
            time.sleep(retry_interval)
            continue

        if counts.running == 0:
            return counts.failed == 0

        time.sleep(poll_interval)


def run_job(adapter: JobRunsAdapter, config: JobConfig) -> str:
    """
    Build, submit and wait for the job described by `config`.

    Args:
        adapter: Remote cluster adapter.
        config: Validated configuration for this invocation.

    Returns:
        The id of the job, once it has completed successfully.

    Raises:
        JobFailedError: If the job finished with a failed step.
    """
    description = build_job_description(config)
    job_id = submit_job(adapter, description)
    logger.info("Job %s started", job_id)

    if not wait_for_job(adapter, job_id):
        logger.error("Job %s did not succeed", job_id)
        raise JobFailedError(job_id)

    logger.info("Job %s completed successfully.", job_id)
    return job_id
