"""Build a :class:`TraitRegistry` from a directory of layer images."""
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

import yaml

from ..schema import MANIFEST_SCHEMA, SchemaValidationError, validate
from .model import DEFAULT_RARITY, Rule, RuleKind, TraitCategory, TraitRegistry, TraitVariant

LOGGER = logging.getLogger("traitlab.loader")

IMAGE_SUFFIXES = (".png", ".webp", ".jpg", ".jpeg")
MANIFEST_NAMES = ("manifest.yaml", "manifest.yml", "manifest.json")

_ORDER_PREFIX = re.compile(r"^(\d+)[_\- ]+(.+)$")


def _read_manifest(path: Path) -> Mapping[str, Any]:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if not isinstance(data, Mapping):
        raise SchemaValidationError("manifest must contain a mapping at the top level", path=[path.name])
    validate(data, MANIFEST_SCHEMA)
    return data


def _layer_name(folder: Path) -> Tuple[int | None, str]:
    match = _ORDER_PREFIX.match(folder.name)
    if match:
        return int(match.group(1)), match.group(2)
    return None, folder.name


def _images_in(folder: Path) -> List[Path]:
    return [p for p in sorted(folder.iterdir()) if p.is_file() and p.suffix.lower() in IMAGE_SUFFIXES]


def load_from_folders(root: Path | str) -> TraitRegistry:
    """One category per sub-folder, one trait per image file.

    Folders named ``<n>_<name>`` are ordered by ``n``; the rest follow in
    alphabetical order. Trait names are the file stems; rarity defaults to 100.
    """

    root = Path(root)
    folders = [p for p in sorted(root.iterdir()) if p.is_dir()]
    keyed = []
    for position, folder in enumerate(folders):
        prefix, name = _layer_name(folder)
        keyed.append(((0, prefix) if prefix is not None else (1, position), name, folder))
    keyed.sort(key=lambda entry: entry[0])

    categories: List[TraitCategory] = []
    for order, (_, name, folder) in enumerate(keyed):
        category = TraitCategory(name=name, order=order)
        for image_path in _images_in(folder):
            category.variants.append(TraitVariant(name=image_path.stem, image=image_path.read_bytes()))
        LOGGER.info("layer %s: %d traits", name, len(category.variants))
        categories.append(category)
    return TraitRegistry(categories)


def load_from_manifest(path: Path | str) -> TraitRegistry:
    """Load categories, rarities and rules declared in a manifest file.

    Rule targets are written as ``"<category>/<trait>"``. References that do not
    resolve are kept verbatim and behave as no-ops during generation.
    """

    path = Path(path)
    data = _read_manifest(path)
    base = path.parent
    categories: List[TraitCategory] = []
    by_name: Dict[str, str] = {}
    pending: List[Tuple[TraitVariant, List[Mapping[str, Any]]]] = []

    for position, raw_category in enumerate(data["categories"]):
        category = TraitCategory(name=str(raw_category["name"]), order=int(raw_category.get("order", position)))
        for raw_trait in raw_category.get("traits", []) or []:
            image_path = base / str(raw_trait["file"])
            variant = TraitVariant(
                name=str(raw_trait["name"]),
                image=image_path.read_bytes(),
                rarity=int(raw_trait.get("rarity", DEFAULT_RARITY)),
            )
            category.variants.append(variant)
            by_name[f"{category.name}/{variant.name}"] = variant.id
            pending.append((variant, list(raw_trait.get("rules", []) or [])))
        categories.append(category)

    for variant, raw_rules in pending:
        for raw_rule in raw_rules:
            targets = []
            for ref in raw_rule.get("targets", []) or []:
                resolved = by_name.get(str(ref))
                if resolved is None:
                    LOGGER.warning("rule on %s references unknown trait %s", variant.name, ref)
                    resolved = str(ref)
                targets.append(resolved)
            variant.rules.append(
                Rule(kind=RuleKind(raw_rule["type"]), targets=tuple(targets), value=raw_rule.get("value"))
            )
    return TraitRegistry(categories)


def load_registry(root: Path | str) -> TraitRegistry:
    """Load a manifest from *root* when present, otherwise scan layer folders."""

    root = Path(root)
    if root.is_file():
        return load_from_manifest(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Trait directory not found: {root}")
    for name in MANIFEST_NAMES:
        candidate = root / name
        if candidate.is_file():
            LOGGER.info("loading manifest %s", candidate)
            return load_from_manifest(candidate)
    return load_from_folders(root)


__all__ = ["IMAGE_SUFFIXES", "load_from_folders", "load_from_manifest", "load_registry"]
