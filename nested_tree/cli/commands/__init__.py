"""CLI command modules."""

from nested_tree.cli.commands import server, tree

__all__ = ["server", "tree"]
