"""Trait categories, variants and rules."""

from .loader import load_from_folders, load_from_manifest, load_registry
from .model import (
    DEFAULT_RARITY,
    RegistryError,
    Rule,
    RuleKind,
    TraitCategory,
    TraitRegistry,
    TraitVariant,
    VariantIndex,
)

__all__ = [
    "DEFAULT_RARITY",
    "RegistryError",
    "Rule",
    "RuleKind",
    "TraitCategory",
    "TraitRegistry",
    "TraitVariant",
    "VariantIndex",
    "load_from_folders",
    "load_from_manifest",
    "load_registry",
]
