"""Command line interface for btrfs-restic."""

from .dispatcher import create_subcommand_parser, main

__all__ = ["create_subcommand_parser", "main"]
