"""Main CLI entry point for nested-tree management commands."""

import click

from nested_tree.cli.commands import server, tree
from nested_tree.infra.logging import setup_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="nested-tree")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Nested Tree CLI - maintain a nested-set forest from the shell.

    The database is taken from DB_URL (default: ./tree.db).

    \b
    Quick Start:
      nested-tree init                       # Create tables
      nested-tree add Electronics            # New root
      nested-tree add Phones --parent 1      # Last child of node 1
      nested-tree mv 2 --root --position 0   # Make node 2 the first root
      nested-tree show                       # Print the forest
      nested-tree verify                     # Check bounds consistency
      nested-tree serve                      # Run the HTTP API
    """
    ctx.ensure_object(dict)


cli.add_command(tree.init)
cli.add_command(tree.add)
cli.add_command(tree.rm)
cli.add_command(tree.mv)
cli.add_command(tree.up)
cli.add_command(tree.down)
cli.add_command(tree.show)
cli.add_command(tree.path)
cli.add_command(tree.verify)
cli.add_command(server.serve)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
