"""Main CLI application."""

from __future__ import annotations

import logging

import typer
from typing_extensions import Annotated

from ..core.config import load_config
from ..core.errors import OeuvreError
from ..site import build_site
from .parsers import parse_site_path

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="oeuvre",
    help="Static site generator for declarative XML templates, snippets and data.",
)


@app.command()
def build(
    path: Annotated[
        str,
        typer.Argument(
            help="Directory containing site.toml, or a path to a TOML config file (default: cwd).",
            metavar="PATH",
        ),
    ] = "",
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose logging.",
        ),
    ] = False,
) -> None:
    """Build a site into its output directory."""
    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    config_path = parse_site_path(path)
    logger.info(f"Reading config file {config_path}")

    try:
        config = load_config(config_path)
        outputs = build_site(config)
    except OeuvreError as e:
        logger.error(str(e))
        raise typer.Exit(code=1) from e

    logger.info(f"Built {len(outputs)} page(s) into {config.output_dir}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
