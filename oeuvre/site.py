"""Site build pipeline: discovery, registries, rendering and writing."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from .core.errors import ConfigurationError
from .core.models import Dataset, Page, RenderedDocument, SiteConfig, Snippet, SourceFile, Template
from .discovery.files import CATEGORIES, discover
from .registry.data import load_datasets
from .registry.pages import load_pages
from .registry.snippets import check_includes, load_snippets
from .registry.templates import load_templates
from .rendering.engine import RenderEngine
from .rendering.io import write_site
from .rendering.output import map_outputs

logger = logging.getLogger(__name__)


def build_exclusions(config: SiteConfig) -> list[str]:
    """Configured exclusions plus the output directory, when it lies inside the input."""
    input_dir = Path(config.dir).resolve()
    output_dir = Path(config.output_dir).resolve()
    if output_dir == input_dir or output_dir in input_dir.parents:
        raise ConfigurationError(
            f"Output directory {output_dir} would replace the input directory {input_dir}"
        )

    exclude = list(config.exclude)
    if input_dir in output_dir.parents:
        exclude.append(f"{output_dir.relative_to(input_dir).as_posix()}/**/*")
    return exclude


def unclaimed_pages(discovered: Mapping[str, list[SourceFile]]) -> list[SourceFile]:
    """Pages not already claimed by another category.

    The default page pattern matches every XML file, templates and data
    included; those are never rendered as pages.
    """
    claimed = {
        source.path
        for category, sources in discovered.items()
        if category != "pages"
        for source in sources
    }
    return [source for source in discovered["pages"] if source.path not in claimed]


class Site:
    """Every registry of a site, fully loaded before anything is rendered."""

    def __init__(
        self,
        config: SiteConfig,
        templates: Mapping[str, Template],
        snippets: Mapping[str, Snippet],
        datasets: Mapping[str, Dataset],
        pages: list[Page],
        assets: list[SourceFile],
    ) -> None:
        self.config = config
        self.templates = templates
        self.snippets = snippets
        self.datasets = datasets
        self.pages = pages
        self.assets = assets

    @classmethod
    def load(cls, config: SiteConfig) -> Site:
        """Discover and load all inputs of a site, failing on the first error."""
        exclude = build_exclusions(config)
        discovered = discover(
            Path(config.dir),
            {category: getattr(config, category) for category in CATEGORIES},
            exclude,
        )

        logger.info("Reading templates")
        templates = load_templates(discovered["templates"])
        logger.info("Reading snippets")
        snippets = load_snippets(discovered["snippets"])
        check_includes(templates, snippets)
        logger.info("Reading datasets")
        datasets = load_datasets(discovered["datasets"], discovered["datarows"])
        logger.info("Reading pages")
        pages = load_pages(unclaimed_pages(discovered))

        return cls(config, templates, snippets, datasets, pages, discovered["assets"])

    def render(self) -> list[RenderedDocument]:
        """Render every page and assign output paths."""
        engine = RenderEngine(
            self.templates, self.snippets, self.datasets, doctype=self.config.doctype
        )
        return map_outputs(engine.render_all(self.pages))

    def build(self) -> list[Path]:
        """Render the site and write it to the output directory."""
        documents = self.render()
        logger.info("Writing pages")
        return write_site(documents, self.assets, Path(self.config.output_dir))


def build_site(config: SiteConfig) -> list[Path]:
    """Load, render and write a site.

    Args:
        config: Config with resolved directories

    Returns:
        Paths of the written pages
    """
    return Site.load(config).build()
