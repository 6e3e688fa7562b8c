"""Rule admissibility checks for a single candidate trait."""
from __future__ import annotations

from typing import Iterable, List, Mapping

from ..registry.model import RuleKind, TraitVariant, VariantIndex

# category id -> variant id already committed for the current item
Selections = Mapping[str, str]


def _violates_exclusion(targets: Iterable[str], chosen: set[str]) -> bool:
    return any(target in chosen for target in targets)


def _violates_restriction(
    targets: tuple[str, ...],
    selected: Selections,
    chosen: set[str],
    index: VariantIndex,
) -> bool:
    if not targets or not selected:
        return False
    if any(target in chosen for target in targets):
        return False
    target_categories = {index.category_of(target) for target in targets}
    target_categories.discard(None)
    # Only blocks once a target category has committed to a non-target trait.
    return any(category_id in target_categories for category_id in selected)


def is_admissible(candidate: TraitVariant, selected: Selections, index: VariantIndex) -> bool:
    """Return True if *candidate* may join the traits in *selected*.

    Forced pairing and minimum appearance rules are resolved elsewhere and are
    ignored here.
    """

    if not candidate.rules:
        return True
    chosen = set(selected.values())
    for rule in candidate.rules:
        if rule.kind is RuleKind.MUTUAL_EXCLUSION:
            if _violates_exclusion(rule.targets, chosen):
                return False
        elif rule.kind is RuleKind.RESTRICTED_PAIRING:
            if _violates_restriction(rule.targets, selected, chosen, index):
                return False
    return True


def admissible(
    variants: Iterable[TraitVariant],
    selected: Selections,
    index: VariantIndex,
) -> List[TraitVariant]:
    return [variant for variant in variants if is_admissible(variant, selected, index)]


__all__ = ["Selections", "admissible", "is_admissible"]
