"""File I/O for writing a rendered site."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Iterable
from pathlib import Path

from ..core.errors import OutputCollisionError, WriteError
from ..core.models import RenderedDocument, SourceFile

logger = logging.getLogger(__name__)


def ensure_parent(path: Path) -> None:
    """Ensure parent directories exist for the given path.

    Args:
        path: Path whose parent directories should be created
    """
    path.parent.mkdir(parents=True, exist_ok=True)


def write_text(path: Path, text: str, mode: int = 0o644) -> None:
    """Write text to a file, creating its directories.

    Args:
        path: Destination file path
        text: Text content to write
        mode: File permissions (octal)
    """
    ensure_parent(path)
    path.write_text(text, encoding="utf-8")
    os.chmod(path, mode)


def copy_asset(source: Path, destination: Path) -> None:
    """Copy a static file verbatim, keeping its metadata."""
    ensure_parent(destination)
    shutil.copy2(source, destination)


def swap_directory(staging: Path, output_dir: Path) -> None:
    """Move a fully written staging directory into place.

    The previous output directory is moved aside first and only removed once
    the new one is in place.
    """
    os.chmod(staging, 0o755)
    if not output_dir.exists():
        os.replace(staging, output_dir)
        return

    previous = Path(tempfile.mkdtemp(prefix=f".{output_dir.name}.previous.", dir=str(output_dir.parent)))
    os.rmdir(previous)
    os.replace(output_dir, previous)
    try:
        os.replace(staging, output_dir)
    except OSError:
        os.replace(previous, output_dir)
        raise
    shutil.rmtree(previous)


def write_site(
    documents: Iterable[RenderedDocument],
    assets: Iterable[SourceFile],
    output_dir: Path,
    file_mode: int = 0o644,
) -> list[Path]:
    """Write rendered documents and copy assets into ``output_dir``.

    Everything is written to a staging directory beside ``output_dir`` and
    swapped in at the end, so a failed build never leaves partial output.

    Args:
        documents: Documents with their output paths assigned
        assets: Static files, copied to their input-relative paths
        output_dir: Final output directory
        file_mode: Permissions for written documents

    Returns:
        Paths of the written documents inside ``output_dir``
    """
    documents = list(documents)
    assets = list(assets)

    claimed = {document.output_path: document.page for document in documents}
    for asset in assets:
        page = claimed.get(asset.input_relative)
        if page is not None:
            raise OutputCollisionError(str(asset.input_relative), page, str(asset.path))

    try:
        ensure_parent(output_dir)
        staging = Path(tempfile.mkdtemp(prefix=f".{output_dir.name}.", dir=str(output_dir.parent)))
    except OSError as e:
        raise WriteError(f"Output directory {output_dir} could not be created. Cause: {e}") from e

    written: list[Path] = []
    try:
        for document in documents:
            if document.output_path is None:
                raise WriteError(f"Page {document.page} has no output path")
            write_text(staging / document.output_path, document.text, mode=file_mode)
            written.append(output_dir / document.output_path)
            logger.debug(f"- Wrote page {document.output_path}")

        for asset in assets:
            copy_asset(asset.path, staging / asset.input_relative)
            logger.debug(f"- Copied file {asset.input_relative}")

        swap_directory(staging, output_dir)
    except OSError as e:
        raise WriteError(f"Failed to write site to {output_dir}. Cause: {e}") from e
    finally:
        if staging.exists():
            shutil.rmtree(staging, ignore_errors=True)

    logger.info(f"Wrote {len(written)} page(s) and {len(assets)} asset(s) to {output_dir}")
    return written
