"""Run-scoped appearance counters for minimum-appearance quotas.

The orchestrator reads the counters before every item's category pass and
writes them once the item has been rendered. Quota-bound traits that are still
short of their minimum are offered to the sampler first, which front-loads them
within a finite collection. This is a heuristic: conflicting exclusion rules
can leave a quota unmet, in which case the run still completes and the shortfall
is reported by :meth:`QuotaState.unmet`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, NamedTuple

from ..registry.model import TraitCategory, TraitRegistry, TraitVariant


class QuotaShortfall(NamedTuple):
    trait_id: str
    required: int
    seen: int


def eligible_for_quota(category: TraitCategory, counts: Mapping[str, int]) -> List[TraitVariant]:
    """Variants of *category* whose minimum appearance count is not met yet."""

    eligible: List[TraitVariant] = []
    for variant in category.variants:
        required = variant.minimum_appearance()
        if required is not None and counts.get(variant.id, 0) < required:
            eligible.append(variant)
    return eligible


@dataclass
class QuotaState:
    counts: Dict[str, int] = field(default_factory=dict)

    def count(self, trait_id: str) -> int:
        return self.counts.get(trait_id, 0)

    def record(self, trait_ids: Iterable[str]) -> None:
        for trait_id in trait_ids:
            self.counts[trait_id] = self.counts.get(trait_id, 0) + 1

    def reset(self) -> None:
        self.counts.clear()

    def snapshot(self) -> Dict[str, int]:
        return dict(self.counts)

    def unmet(self, registry: TraitRegistry) -> List[QuotaShortfall]:
        shortfalls: List[QuotaShortfall] = []
        for category in registry.ordered_categories():
            for variant in category.variants:
                required = variant.minimum_appearance()
                if required is None:
                    continue
                seen = self.count(variant.id)
                if seen < required:
                    shortfalls.append(QuotaShortfall(variant.id, required, seen))
        return shortfalls


__all__ = ["QuotaShortfall", "QuotaState", "eligible_for_quota"]
