"""Shared utilities for the convergecheck CLI."""

import logging

import typer
from rich.console import Console

console = Console()


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )


def parse_options(pairs: list[str]) -> dict[str, str]:
    """Parse ``key=value`` pairs, or exit on a malformed one."""
    options = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            console.print(f"[red]Invalid option:[/red] {pair} (expected key=value)")
            raise typer.Exit(1)
        options[key] = value
    return options
