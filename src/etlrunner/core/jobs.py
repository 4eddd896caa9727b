"""Core job description models.

This module defines the locally built description of the work submitted to
the remote cluster: the cluster metadata plus an ordered sequence of steps.
A step is one of two variants, a script step (a script plus named variables)
or a program step (an executable artifact plus positional arguments).

The models are immutable and free of any Databricks specifics; rendering them
into an API request is the adapter's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union


@dataclass(frozen=True)
class ClusterSpec:
    """
    Cluster metadata for a job.

    Attributes:
        engine_version: Runtime version tag of the cluster.
        node_type: Instance type used for the cluster nodes.
        num_workers: Number of worker nodes.
        placement: Optional availability zone hint.
        ssh_key: Optional public key installed on the cluster nodes.
        log_uri: Optional storage location for cluster logs.
    """

    engine_version: str
    node_type: str
    num_workers: int
    placement: str | None = None
    ssh_key: str | None = None
    log_uri: str | None = None


@dataclass(frozen=True)
class ScriptStep:
    """
    Interpreter-style step.

    Attributes:
        name: Step key, unique within the job.
        script: Location of the script to execute.
        variables: Named variables the script reads.
        overrides: Extra settings merged onto the rendered step.
    """

    name: str
    script: str
    variables: Mapping[str, str]
    overrides: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProgramStep:
    """
    Executable-artifact step.

    Attributes:
        name: Step key, unique within the job.
        jar: Location of the artifact to execute.
        arguments: Positional arguments passed to the artifact.
        overrides: Extra settings merged onto the rendered step.
    """

    name: str
    jar: str
    arguments: tuple[str, ...]
    overrides: Mapping[str, Any] = field(default_factory=dict)


Step = Union[ScriptStep, ProgramStep]


@dataclass(frozen=True)
class JobDescription:
    """
    Everything needed to submit one job to the remote cluster.

    Attributes:
        name: Human-readable job name.
        cluster: Cluster metadata shared by all steps.
        steps: Steps in execution order.
        overrides: Extra settings merged onto the rendered cluster.
    """

    name: str
    cluster: ClusterSpec
    steps: tuple[Step, ...]
    overrides: Mapping[str, Any] = field(default_factory=dict)
