"""CLI application for the enrichment job runner."""

import typer

from etlrunner.cli.commands.jobs import app as jobs_app

app = typer.Typer(
    help="etlrunner - run the enrichment ETL on Databricks",
    no_args_is_help=True,
)

app.add_typer(jobs_app, name="jobs", help="Submit / supervise the enrichment job.")


if __name__ == "__main__":
    app()
