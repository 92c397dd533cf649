"""convergecheck CLI: run post-convergence verification from a run summary."""

import dataclasses
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich.markup import escape
from rich.table import Table

from convergecheck import __version__
from convergecheck.cli._helpers import console, parse_options, setup_logging
from convergecheck.config import load_options
from convergecheck.errors import ConfigError, VerificationError
from convergecheck.handler import VerificationHandler
from convergecheck.hooks import ReportHooks
from convergecheck.resolver import resolve
from convergecheck.run_state import LocalRunContext, RunStatus

app = typer.Typer(
    name="convergecheck",
    help="Verify a host after a configuration-management run.",
    rich_markup_mode="rich",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"convergecheck {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version", "-V",
            help="Show version",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """convergecheck: post-convergence verification harness."""


@app.command()
def verify(
    run_status: Annotated[
        Path,
        typer.Option("--run-status", "-r", help="Run summary (YAML or JSON) written by the engine"),
    ],
    path: Annotated[
        str | None, typer.Option("--path", "-p", help="Glob of test suite files")
    ] = None,
    filter_: Annotated[
        str | None, typer.Option("--filter", "-k", help="Only run tests matching this expression")
    ] = None,
    seed: Annotated[
        int | None, typer.Option("--seed", "-s", help="Seed for the test order")
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Verbose report")
    ] = False,
    managed: Annotated[
        bool, typer.Option("--managed", help="Log failures without failing the run")
    ] = False,
    config: Annotated[
        Path | None, typer.Option("--config", "-c", help="YAML options file")
    ] = None,
) -> None:
    """Run the verification suite against this host."""
    setup_logging(verbose)
    try:
        options = load_options(
            config,
            overrides={
                "path": path,
                "filter": filter_,
                "seed": seed,
                "verbose": verbose or None,
                "managed": managed or None,
            },
        )
    except (ConfigError, OSError) as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from None

    try:
        status = RunStatus.from_file(run_status, LocalRunContext())
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error loading run summary:[/red] {e}")
        raise typer.Exit(1) from None

    hooks = ReportHooks([VerificationHandler(options)])
    results = hooks.run(status)
    for result in results:
        _print_summary(result)
    ReportHooks.terminate_if_failed(results)
    if None in results:
        raise typer.Exit(1)


def _print_summary(result) -> None:
    if result is None:
        console.print("[red]Verification handler crashed, see log.[/red]")
        return
    if result.convergence_failed:
        console.print("[yellow]Convergence failed, verification skipped.[/yellow]")
        return
    if not result.suites:
        console.print("[yellow]No test suites found.[/yellow]")
        return
    console.print(
        f"{len(result.suites)} suite(s), {result.executed} test(s) run, "
        f"{len(result.deselected)} out of scope, "
        f"{result.failures} failure(s)"
    )
    for nodeid in result.failed_tests:
        console.print(f"  [red]FAIL[/red] {escape(nodeid)}")
    for failure in result.load_failures:
        console.print(f"  [red]LOAD[/red] {escape(failure.path)}")
    if result.failed and result.exit_code is None:
        console.print("[yellow]Failures logged only (managed mode).[/yellow]")


@app.command()
def inspect(
    kind: Annotated[str, typer.Argument(help="Resource kind (file, service, mount, ...)")],
    name: Annotated[str, typer.Argument(help="Resource name")],
    option: Annotated[
        list[str] | None,
        typer.Option("--option", "-o", help="Kind-specific argument, key=value"),
    ] = None,
) -> None:
    """Show the observed state of one resource on this host."""
    options = parse_options(option or [])
    try:
        observed = resolve(LocalRunContext(), kind, name, **options)
    except VerificationError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    table = Table(title=f"{observed.kind} {observed.name}")
    table.add_column("Attribute")
    table.add_column("Value")
    for f in dataclasses.fields(observed):
        table.add_row(f.name, escape(repr(getattr(observed, f.name))))
    console.print(table)
