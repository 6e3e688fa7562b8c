"""Generated collection members."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Sequence

from .io_utils import decode_data_uri, to_data_uri
from .registry.model import TraitCategory


class TraitTriple(NamedTuple):
    category: str
    trait: str
    trait_id: str

    def as_dict(self) -> Dict[str, str]:
        return {"category": self.category, "trait": self.trait, "traitId": self.trait_id}


def _item_id() -> str:
    return f"item-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class GeneratedItem:
    """Rendered image plus the exact trait selection used to draw it."""

    image: bytes
    traits: tuple[TraitTriple, ...]
    id: str = field(default_factory=_item_id)

    @property
    def trait_ids(self) -> List[str]:
        return [triple.trait_id for triple in self.traits]

    def data_uri(self) -> str:
        return to_data_uri(self.image, "image/png")

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "dataUrl": self.data_uri(),
            "traits": [triple.as_dict() for triple in self.traits],
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "GeneratedItem":
        traits = tuple(
            TraitTriple(str(t["category"]), str(t["trait"]), str(t["traitId"]))
            for t in raw.get("traits", [])
        )
        return cls(image=decode_data_uri(str(raw["dataUrl"])), traits=traits, id=str(raw["id"]))


def build_triples(selections: Mapping[str, str], categories: Sequence[TraitCategory]) -> tuple[TraitTriple, ...]:
    """Trait triples for *selections* in ascending category order."""

    triples: List[TraitTriple] = []
    for category in sorted(categories, key=lambda c: c.order):
        variant_id = selections.get(category.id)
        if variant_id is None:
            continue
        variant = category.variant(variant_id)
        if variant is None:
            continue
        triples.append(TraitTriple(category.name, variant.name, variant.id))
    return tuple(triples)


def trait_frequencies(items: Iterable[GeneratedItem]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for item in items:
        for trait_id in item.trait_ids:
            counts[trait_id] = counts.get(trait_id, 0) + 1
    return counts


__all__ = ["GeneratedItem", "TraitTriple", "build_triples", "trait_frequencies"]
