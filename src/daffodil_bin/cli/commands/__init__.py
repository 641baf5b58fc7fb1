"""CLI command modules.

Each module defines one subcommand, loaded lazily by the main group.
"""

from __future__ import annotations

__all__: list[str] = []
