"""Common CLI options for the CLI."""

import typer

ConfigOpt = typer.Option(
    ...,
    "--config",
    "-c",
    help="Configuration file (YAML)",
    exists=True,
    dir_okay=False,
    readable=True,
)

ProfileOpt = typer.Option(
    None,
    "--profile",
    "-p",
    help="Databricks CLI profile (from ~/.databrickscfg), overrides the config file",
)

ProcessBucketOpt = typer.Option(
    None,
    "--process-bucket",
    "-b",
    help="Run only on the specified processing bucket",
)

DryRunOpt = typer.Option(
    False,
    "--dry-run",
    help="Show the job that would be submitted, but don't submit anything",
)

VerboseOpt = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Enable debug logging",
)

RunIdArg = typer.Argument(..., help="Databricks run id of a submitted job")
