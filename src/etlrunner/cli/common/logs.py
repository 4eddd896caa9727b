"""Logging setup for the CLI.

Core modules log through the standard logging module; the CLI routes those
records to the shared rich console so they interleave cleanly with spinners
and tables.
"""

import logging

from rich.logging import RichHandler

from etlrunner.cli.common.output import console


def configure_logging(verbose: bool = False) -> None:
    """Install a RichHandler on the root logger (INFO, or DEBUG if verbose)."""
    handler = RichHandler(
        console=console,
        show_path=verbose,
        rich_tracebacks=True,
        log_time_format="[%Y-%m-%d %H:%M:%S]",
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )
    if not verbose:
        logging.getLogger("databricks.sdk").setLevel(logging.WARNING)
