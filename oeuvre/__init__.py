"""Oeuvre - static site generator for declarative XML sites.

Templates, snippets, datasets and pages go in; a mirrored tree of rendered
documents comes out.
"""

__version__ = "0.1.0"

# Configure logging for library use
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

from .core.config import find_config_file, load_config
from .core.models import SiteConfig
from .site import Site, build_site

# Re-export main CLI entry point
from .cli import main

__all__ = ["Site", "SiteConfig", "build_site", "find_config_file", "load_config", "main"]
