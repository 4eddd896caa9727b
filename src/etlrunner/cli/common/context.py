"""Application context management for the CLI."""

from dataclasses import dataclass, replace

from databricks.sdk import WorkspaceClient

from etlrunner.cli.common.exits import exit_from_exc
from etlrunner.core.adapters.databricksjobs import DatabricksJobsAdapter
from etlrunner.core.auth import AuthError, get_client
from etlrunner.core.config import Credentials


@dataclass
class JobsAppContext:
    """Application context holding the Databricks client and jobs adapter."""

    client: WorkspaceClient
    adapter: DatabricksJobsAdapter


def build_jobs_context(
    credentials: Credentials | None, *, profile: str | None = None
) -> JobsAppContext:
    """Build the application context with Databricks client and adapter.

    Args:
        credentials: Credentials from the configuration file, if any.
        profile: Optional profile name overriding the configured one.

    Returns:
        JobsAppContext: Application context with configured client and adapter.
    """
    credentials = credentials or Credentials()
    if profile:
        credentials = replace(credentials, profile=profile)
    try:
        client = get_client(credentials)
    except AuthError as exc:
        exit_from_exc(exc)
    return JobsAppContext(client=client, adapter=DatabricksJobsAdapter(client))
