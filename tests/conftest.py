from pathlib import Path

import pytest

from oeuvre.core.models import SiteConfig

from .helpers import write_files


@pytest.fixture()
def make_site(tmp_path: Path):
    """Write a site tree under tmp_path and return a config pointing at it."""

    def _make(files: dict[str, str], **overrides: object) -> SiteConfig:
        write_files(tmp_path, files)
        return SiteConfig(dir=tmp_path, output_dir=tmp_path / "output", **overrides)

    return _make
