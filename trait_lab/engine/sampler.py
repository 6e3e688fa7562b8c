"""Rarity-weighted selection among admissible traits."""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Sequence

from ..registry.model import TraitVariant

LOGGER = logging.getLogger("traitlab.sampler")


@dataclass
class WeightedSampler:
    """Pick one variant with probability proportional to its rarity weight."""

    rng: random.Random = field(default_factory=random.Random)

    def pick(self, admissible: Sequence[TraitVariant], category_id: str | None = None) -> TraitVariant | None:
        if not admissible:
            LOGGER.debug("no admissible traits for category %s", category_id)
            return None
        total = sum(variant.rarity for variant in admissible)
        remainder = self.rng.random() * total
        for variant in admissible:
            remainder -= variant.rarity
            if remainder <= 0:
                return variant
        # floating point drift can leave a positive remainder
        return admissible[-1]


__all__ = ["WeightedSampler"]
