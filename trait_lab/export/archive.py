"""Metadata records and zip packaging for a generated collection."""
from __future__ import annotations

import json
import logging
import re
import zipfile
from pathlib import Path
from typing import Any, Dict, Iterable, Sequence

from ..items import GeneratedItem

LOGGER = logging.getLogger("traitlab.export")


def build_metadata(
    item: GeneratedItem,
    number: int,
    collection_name: str,
    description: str | None = None,
) -> Dict[str, Any]:
    """Metadata record for the *number*-th item (1-based)."""

    return {
        "name": f"{collection_name} #{number}",
        "description": description or f"Generated from {collection_name}",
        "image": f"{number}.png",
        "attributes": [
            {"trait_type": triple.category, "value": triple.trait} for triple in item.traits
        ],
    }


def _file_stem(collection_name: str) -> str:
    return re.sub(r"\s+", "_", collection_name.strip())


def archive_filename(collection_name: str) -> str:
    return _file_stem(collection_name) + ".zip"


def item_filename(collection_name: str, number: int) -> str:
    stem = _file_stem(collection_name)
    return f"{stem}_{number}.png"


def write_archive(
    items: Sequence[GeneratedItem],
    path: Path | str,
    collection_name: str,
    *,
    description: str | None = None,
) -> Path:
    """Write ``images/<n>.png`` and ``metadata/<n>.json`` for every item.

    *path* is either the archive file itself or a directory that receives
    ``<collection_name>.zip``.
    """

    path = Path(path)
    if path.suffix.lower() != ".zip":
        path = path / archive_filename(collection_name)
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for number, item in enumerate(items, start=1):
            archive.writestr(f"images/{number}.png", item.image)
            metadata = build_metadata(item, number, collection_name, description)
            archive.writestr(
                f"metadata/{number}.json",
                json.dumps(metadata, ensure_ascii=False, indent=2),
            )
    LOGGER.info("wrote %d items to %s", len(items), path)
    return path


def write_directory(
    items: Iterable[GeneratedItem],
    out_dir: Path | str,
    collection_name: str,
    *,
    description: str | None = None,
) -> list[Path]:
    """Write each item as ``<collection>_<n>.png`` next to a ``.json`` record."""

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for number, item in enumerate(items, start=1):
        image_path = out_dir / item_filename(collection_name, number)
        image_path.write_bytes(item.image)
        metadata = build_metadata(item, number, collection_name, description)
        image_path.with_suffix(".json").write_text(
            json.dumps(metadata, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        written.append(image_path)
    return written


__all__ = [
    "archive_filename",
    "build_metadata",
    "item_filename",
    "write_archive",
    "write_directory",
]
