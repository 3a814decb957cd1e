"""Command-line interface for rootcache."""

from rootcache.cli.main import cli

__all__ = ["cli"]
