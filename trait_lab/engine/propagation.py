"""Forced-pairing expansion of an item's selections."""
from __future__ import annotations

import logging
from typing import Dict, Mapping

from ..registry.model import RuleKind, VariantIndex

LOGGER = logging.getLogger("traitlab.propagation")


def propagate(initial: Mapping[str, str], index: VariantIndex) -> Dict[str, str]:
    """Add forced pairings until a full scan adds nothing new.

    Each category is written at most once, so the loop ends after at most one
    pass per category. A forced target whose category is already filled is
    dropped; the first selection for a category always wins.
    """

    result: Dict[str, str] = dict(initial)
    changed = True
    while changed:
        changed = False
        for variant_id in list(result.values()):
            variant = index.variant(variant_id)
            if variant is None:
                continue
            for rule in variant.rules_of(RuleKind.FORCED_PAIRING):
                for target in rule.targets:
                    if target not in index:
                        continue
                    category_id = index.category_of(target)
                    if category_id in result:
                        if result[category_id] != target:
                            LOGGER.debug(
                                "forced pairing %s -> %s dropped, category %s already holds %s",
                                variant_id,
                                target,
                                category_id,
                                result[category_id],
                            )
                        continue
                    result[category_id] = target
                    changed = True
    return result


__all__ = ["propagate"]
