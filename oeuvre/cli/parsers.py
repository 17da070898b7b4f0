"""CLI argument parsers and validators."""

from __future__ import annotations

from pathlib import Path

import typer

from ..core.config import find_config_file
from ..core.errors import ConfigurationError


def parse_site_path(value: str) -> Path:
    """Resolve the PATH argument to a config file."""
    try:
        return find_config_file(value or None)
    except ConfigurationError as e:
        raise typer.BadParameter(f"No site config found: {e}", param_hint="PATH") from e
