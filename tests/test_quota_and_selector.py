from __future__ import annotations

import random

from trait_lab.engine.quota import QuotaShortfall, QuotaState, eligible_for_quota
from trait_lab.engine.sampler import WeightedSampler
from trait_lab.engine.selector import TraitSelector
from trait_lab.registry.model import RuleKind, TraitCategory, TraitRegistry, TraitVariant


def _eyes_registry() -> TraitRegistry:
    registry = TraitRegistry(
        [
            TraitCategory(
                name="Eyes",
                order=0,
                id="eyes",
                variants=[
                    TraitVariant(name="Laser", image=b"", rarity=1, id="laser"),
                    TraitVariant(name="Normal", image=b"", rarity=100, id="normal"),
                ],
            )
        ]
    )
    registry.add_rule("laser", RuleKind.MINIMUM_APPEARANCE, value=5)
    return registry


def test_eligible_until_minimum_reached() -> None:
    category = _eyes_registry().category("eyes")
    assert [v.id for v in eligible_for_quota(category, {})] == ["laser"]
    assert [v.id for v in eligible_for_quota(category, {"laser": 4})] == ["laser"]
    assert eligible_for_quota(category, {"laser": 5}) == []


def test_largest_minimum_wins_when_several_rules() -> None:
    registry = _eyes_registry()
    registry.add_rule("laser", RuleKind.MINIMUM_APPEARANCE, value=8)
    category = registry.category("eyes")
    assert [v.id for v in eligible_for_quota(category, {"laser": 6})] == ["laser"]
    assert registry.variant("laser").minimum_appearance() == 8


def test_quota_state_counts_and_reports_shortfall() -> None:
    registry = _eyes_registry()
    quotas = QuotaState()
    quotas.record(["laser", "normal"])
    quotas.record(["laser"])

    assert quotas.count("laser") == 2
    assert quotas.snapshot() == {"laser": 2, "normal": 1}
    assert quotas.unmet(registry) == [QuotaShortfall("laser", 5, 2)]

    quotas.reset()
    assert quotas.count("laser") == 0


def test_selector_prefers_quota_traits() -> None:
    registry = _eyes_registry()
    selector = TraitSelector(WeightedSampler(random.Random(7)), registry.build_index())
    categories = registry.ordered_categories()
    assert selector.select(categories, {}) == {"eyes": "laser"}
    assert selector.select(categories, {"laser": 5}) in ({"eyes": "laser"}, {"eyes": "normal"})


def test_selector_falls_back_when_quota_traits_blocked() -> None:
    registry = _eyes_registry()
    background = TraitCategory(
        name="Background",
        order=-1,
        id="bg",
        variants=[TraitVariant(name="Night", image=b"", id="night")],
    )
    registry = TraitRegistry([background, *registry.categories])
    registry.add_rule("laser", RuleKind.MUTUAL_EXCLUSION, ["night"])
    selector = TraitSelector(WeightedSampler(random.Random(7)), registry.build_index())

    result = selector.select(registry.ordered_categories(), {})
    assert result == {"bg": "night", "eyes": "normal"}


def test_selector_skips_category_with_no_admissible_trait() -> None:
    registry = TraitRegistry(
        [
            TraitCategory(name="Body", order=0, id="body", variants=[TraitVariant(name="Robot", image=b"", id="robot")]),
            TraitCategory(name="Hat", order=1, id="hat", variants=[TraitVariant(name="Cap", image=b"", id="cap")]),
            TraitCategory(name="Empty", order=2, id="empty"),
        ]
    )
    registry.add_rule("cap", RuleKind.MUTUAL_EXCLUSION, ["robot"])
    selector = TraitSelector(WeightedSampler(random.Random(0)), registry.build_index())

    assert selector.select(registry.ordered_categories(), {}) == {"body": "robot"}


def test_selector_leaves_preselected_categories_alone() -> None:
    registry = _eyes_registry()
    selector = TraitSelector(WeightedSampler(random.Random(0)), registry.build_index())
    assert selector.select(registry.ordered_categories(), {}, {"eyes": "normal"}) == {"eyes": "normal"}
