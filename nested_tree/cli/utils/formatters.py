"""Styled output for CLI commands.

Errors go to stderr so ``--format json`` output on stdout stays parseable.
"""

import click

_STYLES = {
    "success": ("✓", {"fg": "green"}),
    "error": ("✗", {"fg": "red", "err": True}),
    "warning": ("⚠", {"fg": "yellow"}),
    "info": ("ℹ", {"fg": "blue"}),
}


def _emit(kind: str, message: str) -> None:
    symbol, style = _STYLES[kind]
    click.secho(f"{symbol} {message}", **style)


def success(message: str) -> None:
    _emit("success", message)


def error(message: str) -> None:
    _emit("error", message)


def warning(message: str) -> None:
    _emit("warning", message)


def info(message: str) -> None:
    _emit("info", message)


def header(message: str) -> None:
    click.secho(f"\n{message}", fg="cyan", bold=True)


def tree_line(name: str, node_id: int, left: int, right: int, depth: int) -> str:
    """One line of ``show`` output, indented two spaces per level."""
    return f"{'  ' * depth}{name} [{node_id}] ({left}, {right})"
