"""Output formatting utilities for the CLI."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Mapping

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from etlrunner.core.jobs import JobDescription, ScriptStep

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

console = Console(theme=_THEME)


def _pairs(arguments: tuple[str, ...]) -> list[tuple[str, str]]:
    """
    Split program arguments into display rows.

    Leading bare arguments get an empty name; `--flag value` pairs are
    shown side by side.
    """
    rows: list[tuple[str, str]] = []
    i = 0
    while i < len(arguments):
        arg = arguments[i]
        if arg.startswith("--") and i + 1 < len(arguments):
            nxt = arguments[i + 1]
            if not nxt.startswith("--"):
                rows.append((arg, nxt))
                i += 2
                continue
        rows.append(("", arg) if not arg.startswith("--") else (arg, ""))
        i += 1
    return rows


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    def info(self, msg: str) -> None:
        """Print an info message."""
        console.print(f"[title]›[/] {msg}")

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with console.status(msg, spinner="dots"):
            yield

    def success(self, msg: str) -> None:
        """Print a success message."""
        console.print(f"[ok]✓[/] {msg}")

    def warn(self, msg: str) -> None:
        """Print a warning message."""
        console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        """Print an error message."""
        console.print(f"[err]✗[/] {msg}")

    def header(self, title: str) -> None:
        """Print a header message."""
        console.print(f"[title]{title}[/]")

    def kv(self, items: Mapping[str, Any]) -> None:
        """Print key-value pairs."""
        for k, v in items.items():
            console.print(f"[meta]{k}[/]: {v}")

    def description(self, description: JobDescription) -> None:
        """
        Render a job description: cluster metadata followed by one table
        per step (variables for script steps, arguments for program steps).
        """
        cluster = description.cluster
        self.header(f"Job: {description.name}")
        self.kv(
            {
                "engine version": cluster.engine_version,
                "node type": cluster.node_type,
                "workers": cluster.num_workers,
                "placement": cluster.placement or "-",
                "log uri": cluster.log_uri or "-",
            }
        )
        if description.overrides:
            self.kv({"cluster overrides": dict(description.overrides)})

        for step in description.steps:
            if isinstance(step, ScriptStep):
                t = Table(title=f"{step.name} (script: {step.script})")
                t.add_column("Variable", style="ok", no_wrap=True)
                t.add_column("Value")
                for name, value in step.variables.items():
                    t.add_row(name, value)
            else:
                t = Table(title=f"{step.name} (jar: {step.jar})")
                t.add_column("Argument", style="ok", no_wrap=True)
                t.add_column("Value")
                for name, value in _pairs(step.arguments):
                    t.add_row(name, value)
            console.print(t)
            if step.overrides:
                self.kv({"step overrides": dict(step.overrides)})


out = Out()
