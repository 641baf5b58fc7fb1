"""Command line interface for daffodil-bin."""

from __future__ import annotations

from daffodil_bin.cli.main import cli

__all__: list[str] = ["cli"]
