from __future__ import annotations

from typing import Any

import requests
from databricks.sdk import WorkspaceClient
from databricks.sdk.service import jobs

from etlrunner.core.jobs import JobDescription, ScriptStep, Step
from etlrunner.core.runs import TransientConnectivityError

# Errors raised when a request could not reach the workspace at all.
_TRANSIENT_ERRORS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    ConnectionError,
    TimeoutError,
)

# Databricks run life cycle states that mean the task has not finished yet.
_LIFE_CYCLE_STEP_STATES = {
    "PENDING": "PENDING",
    "QUEUED": "PENDING",
    "BLOCKED": "PENDING",
    "WAITING_FOR_RETRY": "PENDING",
    "RUNNING": "RUNNING",
    "TERMINATING": "SHUTTING_DOWN",
}

_RESULT_STEP_STATES = {
    "SUCCESS": "COMPLETED",
    "FAILED": "FAILED",
    "TIMEDOUT": "FAILED",
    "UPSTREAM_FAILED": "FAILED",
    "CANCELED": "CANCELLED",
    "UPSTREAM_CANCELED": "CANCELLED",
}


def _value(state: Any) -> str | None:
    """Return the string value of an SDK enum (or None)."""
    if state is None:
        return None
    return str(getattr(state, "value", state))


def to_step_state(state: jobs.RunState | None) -> str:
    """
    Translate a Databricks run state into the step state vocabulary.

    Unknown values are returned unchanged so callers can decide how to treat
    them.
    """
    if state is None:
        return "PENDING"

    life_cycle = _value(state.life_cycle_state)
    if life_cycle in _LIFE_CYCLE_STEP_STATES:
        return _LIFE_CYCLE_STEP_STATES[life_cycle]

    result = _value(state.result_state)
    if result:
        return _RESULT_STEP_STATES.get(result, result)

    if life_cycle == "INTERNAL_ERROR":
        return "FAILED"
    return life_cycle or "PENDING"


def render_cluster(description: JobDescription) -> dict[str, Any]:
    """Render the cluster metadata as a `new_cluster` payload, overlay applied."""
    cluster = description.cluster
    payload: dict[str, Any] = {
        "spark_version": cluster.engine_version,
        "node_type_id": cluster.node_type,
        "num_workers": cluster.num_workers,
    }
    if cluster.placement:
        payload["aws_attributes"] = {"zone_id": cluster.placement}
    if cluster.ssh_key:
        payload["ssh_public_keys"] = [cluster.ssh_key]
    if cluster.log_uri:
        payload["cluster_log_conf"] = {"s3": {"destination": cluster.log_uri}}

    payload.update(description.overrides)
    return payload


def render_task(
    step: Step, cluster: dict[str, Any], depends_on: str | None = None
) -> dict[str, Any]:
    """Render one step as a runs/submit task payload, overlay applied."""
    payload: dict[str, Any] = {"task_key": step.name, "new_cluster": dict(cluster)}

    if isinstance(step, ScriptStep):
        payload["notebook_task"] = {
            "notebook_path": step.script,
            "base_parameters": dict(step.variables),
        }
    else:
        payload["spark_submit_task"] = {"parameters": [step.jar, *step.arguments]}

    if depends_on:
        payload["depends_on"] = [{"task_key": depends_on}]

    payload.update(step.overrides)
    return payload


def render_tasks(description: JobDescription) -> list[dict[str, Any]]:
    """Render all steps; each step after the first depends on the previous one."""
    cluster = render_cluster(description)
    tasks = []
    previous = None
    for step in description.steps:
        tasks.append(render_task(step, cluster, depends_on=previous))
        previous = step.name
    return tasks


class DatabricksJobsAdapter:
    """Adapter around Databricks SDK one-time run APIs."""

    def __init__(self, client: WorkspaceClient):
        """Create a jobs adapter for a Databricks workspace."""
        self.client = client

    def submit(self, description: JobDescription) -> str:
        """Submit the description as a one-time run and return its run id."""
        tasks = [jobs.SubmitTask.from_dict(task) for task in render_tasks(description)]
        try:
            run = self.client.jobs.submit(run_name=description.name, tasks=tasks)
        except _TRANSIENT_ERRORS as exc:
            raise TransientConnectivityError(str(exc)) from exc
        return str(run.run_id)

    def get_step_states(self, job_id: str) -> list[str]:
        """Return the step state of every task in the run, in task order."""
        try:
            run = self.client.jobs.get_run(int(job_id))
        except _TRANSIENT_ERRORS as exc:
            raise TransientConnectivityError(str(exc)) from exc

        if not run.tasks:
            return [to_step_state(run.state)]
        return [to_step_state(task.state) for task in run.tasks]
