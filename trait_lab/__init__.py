"""Layered trait collection generator."""
from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - type checking helper
    from .config import TraitLabConfig, load_config
    from .items import GeneratedItem, TraitTriple
    from .orchestrator import CollectionOrchestrator, CollectionRun
    from .registry import Rule, RuleKind, TraitCategory, TraitRegistry, TraitVariant, load_registry

__all__ = [
    "CollectionOrchestrator",
    "CollectionRun",
    "GeneratedItem",
    "Rule",
    "RuleKind",
    "TraitCategory",
    "TraitLabConfig",
    "TraitRegistry",
    "TraitTriple",
    "TraitVariant",
    "load_config",
    "load_registry",
]

_MODULES = {
    "TraitLabConfig": ".config",
    "load_config": ".config",
    "GeneratedItem": ".items",
    "TraitTriple": ".items",
    "CollectionOrchestrator": ".orchestrator",
    "CollectionRun": ".orchestrator",
    "Rule": ".registry",
    "RuleKind": ".registry",
    "TraitCategory": ".registry",
    "TraitRegistry": ".registry",
    "TraitVariant": ".registry",
    "load_registry": ".registry",
}


def __getattr__(name: str) -> Any:  # pragma: no cover - dispatch helper
    module_name = _MODULES.get(name)
    if module_name is None:
        raise AttributeError(name)
    value = getattr(import_module(module_name, __name__), name)
    globals()[name] = value
    return value
