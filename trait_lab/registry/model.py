"""In-memory model of trait categories, variants and their rules."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Sequence, Union

from ..io_utils import to_data_uri

LOGGER = logging.getLogger("traitlab.registry")

DEFAULT_RARITY = 100

ImagePayload = Union[bytes, str, Path]


class RegistryError(ValueError):
    """Raised when the registry is edited with inconsistent data."""


class RuleKind(str, Enum):
    MUTUAL_EXCLUSION = "doesnt_mix"
    RESTRICTED_PAIRING = "only_mix"
    FORCED_PAIRING = "always_pairs"
    MINIMUM_APPEARANCE = "appears_at_least"

    @property
    def label(self) -> str:
        return _RULE_LABELS[self]


_RULE_LABELS = {
    RuleKind.MUTUAL_EXCLUSION: "Doesn't Mix With",
    RuleKind.RESTRICTED_PAIRING: "Only Mix With",
    RuleKind.FORCED_PAIRING: "Always Pairs With",
    RuleKind.MINIMUM_APPEARANCE: "Appears At Least",
}


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class Rule:
    """Directional constraint owned by a single variant.

    ``targets`` lists variant ids the subject interacts with. ``value`` is only
    meaningful for :attr:`RuleKind.MINIMUM_APPEARANCE`, where it holds the
    number of items the subject must appear in across one run.
    """

    kind: RuleKind
    targets: tuple[str, ...] = ()
    value: int | None = None
    id: str = field(default_factory=lambda: _new_id("rule"))

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", RuleKind(self.kind))
        object.__setattr__(self, "targets", tuple(str(t) for t in self.targets))
        if self.kind is RuleKind.MINIMUM_APPEARANCE:
            if self.value is None or int(self.value) < 1:
                raise RegistryError(f"rule {self.id}: minimum appearance needs a positive value")
            object.__setattr__(self, "value", int(self.value))
        else:
            if not self.targets:
                raise RegistryError(f"rule {self.id}: {self.kind.value} needs at least one target")
            object.__setattr__(self, "value", None)

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "type": self.kind.value,
            "targetTraitIds": list(self.targets),
        }
        if self.value is not None:
            payload["value"] = self.value
        return payload

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Rule":
        kind = raw.get("type", raw.get("kind"))
        try:
            parsed = RuleKind(kind)
        except ValueError as exc:
            raise RegistryError(f"unknown rule type {kind!r}") from exc
        targets = raw.get("targetTraitIds", raw.get("targets")) or []
        kwargs: Dict[str, Any] = {"kind": parsed, "targets": tuple(targets), "value": raw.get("value")}
        if raw.get("id"):
            kwargs["id"] = str(raw["id"])
        return cls(**kwargs)


@dataclass
class TraitVariant:
    """One selectable image option inside a category."""

    name: str
    image: ImagePayload
    rarity: int = DEFAULT_RARITY
    rules: List[Rule] = field(default_factory=list)
    id: str = field(default_factory=lambda: _new_id("img"))

    def __post_init__(self) -> None:
        self.rarity = _checked_rarity(self.rarity)

    def rules_of(self, kind: RuleKind) -> Iterator[Rule]:
        return (rule for rule in self.rules if rule.kind is kind)

    def minimum_appearance(self) -> int | None:
        """Largest minimum-appearance quota attached to this variant."""

        values = [rule.value for rule in self.rules_of(RuleKind.MINIMUM_APPEARANCE) if rule.value]
        return max(values) if values else None

    def as_dict(self) -> Dict[str, Any]:
        image = self.image
        if isinstance(image, bytes):
            image = to_data_uri(image)
        return {
            "id": self.id,
            "name": self.name,
            "dataUrl": str(image),
            "rarity": self.rarity,
            "rules": [rule.as_dict() for rule in self.rules],
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "TraitVariant":
        kwargs: Dict[str, Any] = {
            "name": str(raw.get("name", "")),
            "image": raw.get("dataUrl", raw.get("image", "")),
            "rarity": raw.get("rarity", DEFAULT_RARITY),
            "rules": [Rule.from_dict(rule) for rule in raw.get("rules", []) or []],
        }
        if raw.get("id"):
            kwargs["id"] = str(raw["id"])
        return cls(**kwargs)


@dataclass
class TraitCategory:
    """Ordered group of mutually alternative variants; ``order`` is its z-order."""

    name: str
    order: int = 0
    variants: List[TraitVariant] = field(default_factory=list)
    expanded: bool = True
    id: str = field(default_factory=lambda: _new_id("cat"))

    def variant(self, variant_id: str) -> TraitVariant | None:
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "order": self.order,
            "expanded": self.expanded,
            "images": [variant.as_dict() for variant in self.variants],
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], *, default_order: int = 0) -> "TraitCategory":
        kwargs: Dict[str, Any] = {
            "name": str(raw.get("name", "")),
            "order": int(raw.get("order", default_order)),
            "expanded": bool(raw.get("expanded", True)),
            "variants": [
                TraitVariant.from_dict(item)
                for item in raw.get("images", raw.get("variants", [])) or []
            ],
        }
        if raw.get("id"):
            kwargs["id"] = str(raw["id"])
        return cls(**kwargs)


@dataclass(frozen=True)
class VariantIndex:
    """Lookup tables derived from a registry snapshot.

    Built once per run so the evaluator and propagator resolve a variant's
    owning category without rescanning every category.
    """

    category_by_variant: Mapping[str, str]
    variants: Mapping[str, TraitVariant]

    def category_of(self, variant_id: str) -> str | None:
        return self.category_by_variant.get(variant_id)

    def variant(self, variant_id: str) -> TraitVariant | None:
        return self.variants.get(variant_id)

    def __contains__(self, variant_id: object) -> bool:
        return variant_id in self.variants


class TraitRegistry:
    """Owns every category and exposes the editing operations of the tool."""

    def __init__(self, categories: Iterable[TraitCategory] | None = None) -> None:
        self._categories: List[TraitCategory] = list(categories or [])

    # ------------------------------------------------------------------
    # Lookup
    @property
    def categories(self) -> Sequence[TraitCategory]:
        return tuple(self._categories)

    def ordered_categories(self) -> List[TraitCategory]:
        return sorted(self._categories, key=lambda category: category.order)

    def category(self, category_id: str) -> TraitCategory:
        for category in self._categories:
            if category.id == category_id:
                return category
        raise RegistryError(f"unknown category {category_id!r}")

    def variant(self, variant_id: str) -> TraitVariant:
        for category in self._categories:
            found = category.variant(variant_id)
            if found is not None:
                return found
        raise RegistryError(f"unknown trait {variant_id!r}")

    def category_of(self, variant_id: str) -> TraitCategory | None:
        for category in self._categories:
            if category.variant(variant_id) is not None:
                return category
        return None

    def build_index(self) -> VariantIndex:
        category_by_variant: Dict[str, str] = {}
        variants: Dict[str, TraitVariant] = {}
        for category in self._categories:
            for variant in category.variants:
                if variant.id in variants:
                    LOGGER.warning("trait id %s appears in more than one category", variant.id)
                    continue
                category_by_variant[variant.id] = category.id
                variants[variant.id] = variant
        return VariantIndex(category_by_variant=category_by_variant, variants=variants)

    def is_empty(self) -> bool:
        return all(not category.variants for category in self._categories)

    def __len__(self) -> int:
        return len(self._categories)

    # ------------------------------------------------------------------
    # Categories
    def add_category(self, name: str | None = None) -> TraitCategory:
        category = TraitCategory(
            name=name or f"Layer {len(self._categories) + 1}",
            order=max((c.order for c in self._categories), default=-1) + 1,
        )
        self._categories.append(category)
        return category

    def remove_category(self, category_id: str) -> None:
        category = self.category(category_id)
        self._categories.remove(category)
        self._renumber(self.ordered_categories())

    def rename_category(self, category_id: str, name: str) -> None:
        self.category(category_id).name = name

    def move_category(self, category_id: str, offset: int) -> None:
        """Swap a category with its neighbour and renumber every order index."""

        ordered = self.ordered_categories()
        position = ordered.index(self.category(category_id))
        target = position + offset
        if offset == 0 or target < 0 or target >= len(ordered):
            return
        ordered[position], ordered[target] = ordered[target], ordered[position]
        self._renumber(ordered)

    def _renumber(self, ordered: List[TraitCategory]) -> None:
        for index, category in enumerate(ordered):
            category.order = index
        self._categories = ordered

    # ------------------------------------------------------------------
    # Variants
    def add_variant(
        self,
        category_id: str,
        name: str,
        image: ImagePayload,
        *,
        rarity: int = DEFAULT_RARITY,
        variant_id: str | None = None,
    ) -> TraitVariant:
        category = self.category(category_id)
        variant = TraitVariant(name=name, image=image, rarity=rarity)
        if variant_id:
            variant.id = variant_id
        category.variants.append(variant)
        return variant

    def remove_variant(self, variant_id: str) -> None:
        category = self.category_of(variant_id)
        if category is None:
            raise RegistryError(f"unknown trait {variant_id!r}")
        category.variants = [variant for variant in category.variants if variant.id != variant_id]

    def set_rarity(self, variant_id: str, rarity: int) -> None:
        self.variant(variant_id).rarity = _checked_rarity(rarity)

    # ------------------------------------------------------------------
    # Rules
    def add_rule(
        self,
        variant_id: str,
        kind: RuleKind | str,
        targets: Iterable[str] = (),
        *,
        value: int | None = None,
    ) -> Rule:
        variant = self.variant(variant_id)
        rule = Rule(kind=RuleKind(kind), targets=tuple(targets), value=value)
        variant.rules.append(rule)
        return rule

    def remove_rule(self, variant_id: str, rule_id: str) -> None:
        variant = self.variant(variant_id)
        variant.rules = [rule for rule in variant.rules if rule.id != rule_id]

    # ------------------------------------------------------------------
    # Serialisation
    def as_dict(self) -> List[Dict[str, Any]]:
        return [category.as_dict() for category in self._categories]

    @classmethod
    def from_dict(cls, raw: Iterable[Mapping[str, Any]]) -> "TraitRegistry":
        categories = [
            TraitCategory.from_dict(entry, default_order=position)
            for position, entry in enumerate(raw or [])
        ]
        return cls(categories)


def _checked_rarity(value: Any) -> int:
    try:
        rarity = int(value)
    except (TypeError, ValueError) as exc:
        raise RegistryError(f"rarity must be an integer, got {value!r}") from exc
    if rarity < 1:
        raise RegistryError(f"rarity must be positive, got {rarity}")
    return rarity


__all__ = [
    "DEFAULT_RARITY",
    "ImagePayload",
    "RegistryError",
    "Rule",
    "RuleKind",
    "TraitCategory",
    "TraitRegistry",
    "TraitVariant",
    "VariantIndex",
]
