"""Command line interface for the interchange layer.

Built with Click and Rich.
"""

from bibxchange.cli.main import cli

__all__ = ["cli"]
