"""Command-line interface for mpresolver.

This module provides the CLI using Typer with rich output for
user-friendly feedback and progress reporting.

Key features:
- Progress bars for relation processing
- Verbose/quiet output modes
- Relation listing
- Diagnostic summaries by kind
"""

from mpresolver.cli.app import cli, main

__all__ = ["cli", "main"]
