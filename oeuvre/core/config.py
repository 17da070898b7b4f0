"""Locating and loading ``site.toml`` configuration files."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path

from pydantic import ValidationError

from .errors import ConfigurationError
from .models import SiteConfig

logger = logging.getLogger(__name__)

DEFAULT_FILE_NAME = "site.toml"


def find_config_file(input_path: str | Path | None = None) -> Path:
    """Find the config file for a site.

    Looks in one of the following places:

    - ``input_path`` if it is a file
    - ``input_path/site.toml`` if it is a directory
    - ``./site.toml`` if ``input_path`` is None

    Args:
        input_path: File or directory given on the command line

    Returns:
        Absolute path to the config file
    """
    path = Path.cwd() if input_path is None else Path(input_path)
    if not path.is_file():
        path = path / DEFAULT_FILE_NAME

    path = path.resolve()
    if not path.is_file():
        raise ConfigurationError(f"{path} not found.")
    return path


def parse_config(text: str, source: Path | str = "<string>") -> SiteConfig:
    """Parse TOML text into a SiteConfig without resolving directories."""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            f"{source} could not be parsed as a config file. Cause: {e}"
        ) from e

    try:
        return SiteConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"{source} is not a valid config file. Cause: {e}") from e


def load_config(path: Path) -> SiteConfig:
    """Load a config file and resolve its directories.

    ``dir`` and ``output_dir`` are resolved against the directory holding
    the config file, so a site builds the same wherever it is invoked from.

    Args:
        path: Path to the TOML config file

    Returns:
        Config whose ``dir`` and ``output_dir`` are absolute
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"{path} could not be opened. Cause: {e}") from e

    config = parse_config(text, path)
    config_dir = path.parent
    resolved = config.model_copy(
        update={
            "dir": (config_dir / config.dir).resolve(),
            "output_dir": (config_dir / config.output_dir).resolve(),
        }
    )
    logger.debug(f"Input directory: {resolved.dir}")
    logger.debug(f"Output directory: {resolved.output_dir}")
    return resolved
