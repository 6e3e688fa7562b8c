"""Per-item category pass: quota preference, rule filtering and sampling."""
from __future__ import annotations

import logging
from typing import Dict, Mapping, Sequence

from ..registry.model import TraitCategory, TraitVariant, VariantIndex
from .quota import eligible_for_quota
from .rules import Selections, admissible
from .sampler import WeightedSampler

LOGGER = logging.getLogger("traitlab.selector")


class TraitSelector:
    """Selector applying quota preference, rule admissibility and rarity weights."""

    def __init__(self, sampler: WeightedSampler, index: VariantIndex) -> None:
        self.sampler = sampler
        self.index = index

    def _pick_from(
        self,
        pool: Sequence[TraitVariant],
        selected: Selections,
        category: TraitCategory,
    ) -> TraitVariant | None:
        candidates = admissible(pool, selected, self.index)
        return self.sampler.pick(candidates, category.id)

    def pick_for_category(
        self,
        category: TraitCategory,
        selected: Selections,
        counts: Mapping[str, int],
    ) -> TraitVariant | None:
        if not category.variants:
            return None
        under_quota = eligible_for_quota(category, counts)
        choice: TraitVariant | None = None
        if under_quota:
            choice = self._pick_from(under_quota, selected, category)
        if choice is None:
            choice = self._pick_from(category.variants, selected, category)
        if choice is None:
            LOGGER.debug("category %s skipped due to rules", category.name)
        return choice

    def select(
        self,
        categories: Sequence[TraitCategory],
        counts: Mapping[str, int],
        selected: Mapping[str, str] | None = None,
    ) -> Dict[str, str]:
        """Run the greedy forward pass over *categories* in the given order.

        Categories already present in *selected* are left untouched. The
        returned mapping is a new dict of category id to variant id.
        """

        working: Dict[str, str] = dict(selected or {})
        for category in categories:
            if category.id in working:
                continue
            choice = self.pick_for_category(category, working, counts)
            if choice is not None:
                working[category.id] = choice.id
        return working


__all__ = ["TraitSelector"]
